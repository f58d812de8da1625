from unittest import mock

import pytest

from neocd.profiler import ProfilingCategory, TimeProfiler, new_accumulators


def test_new_accumulators_are_zero_for_every_category():
    totals = new_accumulators()
    assert set(totals) == set(ProfilingCategory)
    assert all(value == 0.0 for value in totals.values())


def test_end_adds_elapsed_milliseconds():
    totals = new_accumulators()
    with mock.patch("time.perf_counter", side_effect=[1.0, 1.5]):
        profiler = TimeProfiler(ProfilingCategory.CPU_Z80, totals)
        profiler.end()
    assert totals[ProfilingCategory.CPU_Z80] == pytest.approx(500.0)
    assert totals[ProfilingCategory.TOTAL] == 0.0


def test_end_twice_counts_once():
    totals = new_accumulators()
    with mock.patch("time.perf_counter", side_effect=[2.0, 2.25]):
        profiler = TimeProfiler(ProfilingCategory.AUDIO_CD, totals)
        profiler.end()
        profiler.end()
    assert totals[ProfilingCategory.AUDIO_CD] == pytest.approx(250.0)


def test_context_manager_accumulates_across_uses():
    totals = new_accumulators()
    with mock.patch("time.perf_counter", side_effect=[0.0, 0.125, 1.0, 1.125]):
        with TimeProfiler(ProfilingCategory.TOTAL, totals):
            pass
        first = totals[ProfilingCategory.TOTAL]
        with TimeProfiler(ProfilingCategory.TOTAL, totals):
            pass
    assert totals[ProfilingCategory.TOTAL] == pytest.approx(2 * first)


def test_real_clock_is_non_negative():
    totals = {}
    with TimeProfiler(ProfilingCategory.VIDEO_AND_IRQ, totals):
        pass
    assert totals[ProfilingCategory.VIDEO_AND_IRQ] >= 0.0


def test_invalid_category_rejected():
    with pytest.raises(ValueError):
        TimeProfiler(99, new_accumulators())