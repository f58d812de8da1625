import pytest

from neocd.machine import Interrupt, MachineState, Nationality
from neocd.timer import (
    CYCLES_PER_FRAME,
    VBL_IRQ_X,
    VBL_IRQ_Y,
    m68k_to_master,
    pixel_to_master,
)


def test_interrupt_levels_follow_priority():
    machine = MachineState()
    assert machine.update_interrupts() == 0
    machine.set_interrupt(Interrupt.VERTICAL_BLANK)
    assert machine.update_interrupts() == 1
    machine.set_interrupt(Interrupt.CDROM_DECODER)
    assert machine.update_interrupts() == 2
    assert machine.cdrom_vector == 0x54
    machine.set_interrupt(Interrupt.CDROM_COMMUNICATION)
    assert machine.update_interrupts() == 2
    assert machine.cdrom_vector == 0x58
    machine.set_interrupt(Interrupt.RASTER)
    assert machine.update_interrupts() == 3


def test_clear_interrupt_lowers_level_and_signals_line():
    machine = MachineState()
    seen = []
    machine.irq_line = seen.append
    machine.set_interrupt(Interrupt.RASTER)
    machine.set_interrupt(Interrupt.VERTICAL_BLANK)
    machine.update_interrupts()
    machine.clear_interrupt(Interrupt.RASTER)
    machine.update_interrupts()
    assert seen == [3, 1]
    assert machine.pending_interrupts == int(Interrupt.VERTICAL_BLANK)


def test_screen_position_at_frame_start():
    machine = MachineState()
    machine.remaining_cycles_this_frame = CYCLES_PER_FRAME
    assert machine.screen_x() == VBL_IRQ_X
    assert machine.screen_y() == VBL_IRQ_Y


def test_screen_position_after_one_line():
    machine = MachineState()
    machine.remaining_cycles_this_frame = CYCLES_PER_FRAME - pixel_to_master(384)
    assert machine.screen_x() == VBL_IRQ_X
    assert machine.screen_y() == VBL_IRQ_Y + 1


def test_irq_enable_masks():
    machine = MachineState()
    assert not machine.is_vbl_enabled()
    machine.irq_mask2 = 0x731
    assert machine.is_vbl_enabled()
    machine.irq_mask1 = 0x550
    assert machine.is_cd_decoder_irq_enabled()
    assert not machine.is_cd_communication_irq_enabled()
    machine.cd_communication_n_reset = True
    assert machine.is_cd_communication_irq_enabled()
    assert machine.is_hbl_enabled()


def test_m68k_master_cycles_this_frame():
    machine = MachineState()
    machine.remaining_cycles_this_frame = CYCLES_PER_FRAME
    assert machine.m68k_master_cycles_this_frame(0) == 0
    assert machine.m68k_master_cycles_this_frame(100) == m68k_to_master(100)


def test_reset_keeps_nationality_and_clears_registers():
    machine = MachineState()
    machine.machine_nationality = Nationality.EUROPE
    machine.irq_mask1 = 0x550
    machine.z80_disable = False
    machine.audio_result = 7
    machine.reset()
    assert machine.machine_nationality == Nationality.EUROPE
    assert machine.irq_mask1 == 0
    assert machine.z80_disable is True
    assert machine.audio_result == 0


def test_save_and_load_round_trip():
    machine = MachineState()
    machine.irq_mask1 = 0x550
    machine.remaining_cycles_this_frame = -12
    machine.current_time_seconds = 1.25
    machine.audio_command = 0x42
    machine.fast_forward = True
    data = machine.save_state()
    assert len(data) == MachineState.STATE_SIZE

    other = MachineState()
    other.load_state(data)
    assert other.irq_mask1 == 0x550
    assert other.remaining_cycles_this_frame == -12
    assert other.current_time_seconds == 1.25
    assert other.audio_command == 0x42
    assert other.fast_forward is True
    assert other.save_state() == data


def test_load_state_rejects_wrong_size():
    with pytest.raises(ValueError):
        MachineState().load_state(b"\x00" * 3)