import pytest

from neocd.handlers_mapped import MappedRamHandlers, VideoRegisterHandlers
from neocd.machine import Interrupt, MachineState
from neocd.memory import Memory, MemoryArea
from neocd.timer import CYCLES_PER_FRAME, pixel_to_master
from neocd.timergroup import TimerGroup, TimerId
from neocd.video import HirqControl, Video


@pytest.fixture
def memory():
    return Memory()


@pytest.fixture
def mapped(memory):
    return MappedRamHandlers(memory)


@pytest.fixture
def parts(memory):
    video = Video(memory)
    machine = MachineState()
    timers = TimerGroup()
    handlers = VideoRegisterHandlers(memory, video, machine, timers, lambda: 0)
    return handlers, video, machine, timers


def test_mapped_without_bus_grant(mapped, memory):
    memory.area_select = MemoryArea.FIX
    assert mapped.read_byte(1) == 0xFF
    assert mapped.read_word(0) == 0xFFFF
    mapped.write_byte(1, 0x12)
    assert memory.fix_ram[0] == 0


def test_mapped_area_mismatch(mapped, memory):
    memory.area_select = MemoryArea.SPR
    memory.bus_request = MemoryArea.FIX
    assert mapped.read_byte(0) == 0xFF


def test_mapped_fix(mapped, memory):
    memory.area_select = MemoryArea.FIX
    memory.bus_request = MemoryArea.FIX
    mapped.write_byte(1, 0x5A)
    mapped.write_byte(2, 0x77)
    assert memory.fix_ram[0] == 0x5A
    assert memory.fix_ram[1] == 0
    assert mapped.read_byte(1) == 0x5A
    assert mapped.read_byte(0) == 0xFF
    assert mapped.read_word(1) == 0xFF5A


def test_mapped_spr_bank(mapped, memory):
    memory.area_select = MemoryArea.SPR
    memory.bus_request = MemoryArea.SPR | MemoryArea.FIX
    memory.spr_bank_select = 1
    mapped.write_word(0x10, 0x1234)
    assert memory.spr_ram[0x100010:0x100012] == b"\x12\x34"
    assert mapped.read_word(0x11) == 0x1234
    assert mapped.read_byte(0x11) == 0x34


def test_mapped_pcm_bank(mapped, memory):
    memory.area_select = MemoryArea.PCM
    memory.bus_request = MemoryArea.PCM
    memory.pcm_bank_select = 1
    mapped.write_byte(3, 7)
    assert memory.pcm_ram[0x80001] == 7
    assert mapped.read_word(2) == 0xFF07


def test_mapped_z80(mapped, memory):
    memory.area_select = MemoryArea.Z80
    memory.bus_request = MemoryArea.Z80
    mapped.write_word(4, 0x1AB)
    assert memory.z80_ram[2] == 0xAB
    assert mapped.read_byte(5) == 0xAB


def test_videoram_write_sequence(parts, memory):
    handlers, video, _, _ = parts
    handlers.write_word(0x0, 0x100)
    handlers.write_word(0x4, 1)
    handlers.write_word(0x2, 0xABCD)
    assert memory.video_ram[0x100] == 0xABCD
    assert video.videoram_offset == 0x101
    memory.video_ram[0x101] = 0x4321
    handlers.write_word(0x0, 0x101)
    assert handlers.read_word(0x2) == 0x4321
    assert handlers.read_byte(0x0) == 0x43
    assert handlers.read_word(0x4) == 1


@pytest.mark.parametrize("start, expected", [(0x7FFF, 0x0000), (0xFFFF, 0x8000)])
def test_videoram_offset_wraps_in_half(parts, start, expected):
    handlers, video, _, _ = parts
    handlers.write_word(0x4, 1)
    handlers.write_word(0x0, start)
    handlers.write_word(0x2, 0)
    assert video.videoram_offset == expected


def test_byte_write_duplicates_data(parts):
    handlers, video, _, _ = parts
    handlers.write_byte(0x4, 0x12)
    assert video.videoram_modulo == 0x1212
    handlers.write_byte(0x5, 0x34)
    assert video.videoram_modulo == 0x1212
    assert handlers.read_byte(0x5) == 0xFF


def test_control_register(parts):
    handlers, video, _, _ = parts
    handlers.write_word(0x6, 0x05F8)
    assert video.auto_animation_speed == 5
    assert video.auto_animation_disabled is True
    assert video.hirq_control == 0xF0


def test_beam_position_register(parts):
    handlers, video, machine, _ = parts
    video.auto_animation_counter = 13
    machine.remaining_cycles_this_frame = CYCLES_PER_FRAME
    value = handlers.read_word(0x6)
    assert value & 7 == 13 & 7
    assert value >> 7 == 0x1F0
    for remaining in range(0, CYCLES_PER_FRAME, CYCLES_PER_FRAME // 7):
        machine.remaining_cycles_this_frame = remaining
        vertical = handlers.read_word(0x6) >> 7
        assert 0x100 - 8 <= vertical < 0x200
        assert vertical - 0x100 in (machine.screen_y(), machine.screen_y() - 264)


def test_relative_hirq_arms_timer(parts):
    handlers, video, _, timers = parts
    handlers.write_word(0x6, int(HirqControl.RELATIVE))
    handlers.write_word(0x8, 0)
    handlers.write_word(0xA, 10)
    assert video.hirq_register == 10
    assert timers[TimerId.HBL].is_active()
    assert timers[TimerId.HBL].delay == pixel_to_master(11)


def test_hirq_register_without_relative(parts):
    handlers, video, _, timers = parts
    handlers.write_word(0x8, 0x1234)
    handlers.write_word(0xA, 0x5678)
    assert video.hirq_register == 0x12345678
    assert not timers[TimerId.HBL].is_active()


def test_irq_acknowledge(parts):
    handlers, _, machine, _ = parts
    machine.set_interrupt(Interrupt.RASTER)
    machine.set_interrupt(Interrupt.VERTICAL_BLANK)
    handlers.write_word(0xC, 0x02)
    assert machine.pending_interrupts == Interrupt.VERTICAL_BLANK
    assert machine.irq_level == 1
    handlers.write_word(0xC, 0x04)
    assert machine.pending_interrupts == 0
    assert machine.irq_level == 0


def test_unknown_register_reads(parts):
    handlers, _, _, _ = parts
    assert handlers.read_word(0x8) == 0xFFFF
    assert handlers.read_word(0xE) == 0xFFFF