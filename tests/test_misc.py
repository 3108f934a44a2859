"""Tests for miscellaneous instructions (Fxxx)."""

import pytest
from chip8vm import execute, step, OutOfBounds, FONT_START
from chip8vm.constants import FONT_DATA
from chip8vm.emulator import load_rom
from conftest import set_registers, setup_sprite_in_memory


class TestTimers:
    """Test timer-related instructions."""

    def test_misc_timer_instructions(self, fresh_state):
        """Test timer set and get operations."""
        state = fresh_state

        state = execute(state, 0x6030)  # V0 = 48
        state = execute(state, 0xF015)  # Set delay timer to V0
        assert state.delay_timer == 48

        state = execute(state, 0x6120)  # V1 = 32
        state = execute(state, 0xF118)  # Set sound timer to V1
        assert state.sound_timer == 32

        state = execute(state, 0xF207)  # V2 = delay timer
        assert state.V[2] == 48


class TestBCD:
    """Test BCD conversion."""

    @pytest.mark.parametrize("value,digits", [
        (156, [1, 5, 6]),
        (0, [0, 0, 0]),
        (255, [2, 5, 5]),
        (7, [0, 0, 7]),
        (40, [0, 4, 0]),
    ])
    def test_bcd_conversion(self, fresh_state, value, digits):
        state = set_registers(fresh_state, V4=value)
        state = execute(state, 0xA300)  # I = 0x300
        state = execute(state, 0xF433)

        assert [int(b) for b in state.memory[0x300:0x303]] == digits
        assert state.I == 0x300

    def test_bcd_at_end_of_memory(self, fresh_state):
        state = execute(fresh_state, 0xAFFD)  # last three bytes
        state = set_registers(state, V0=123)

        state = execute(state, 0xF033)

        assert [int(b) for b in state.memory[0xFFD:]] == [1, 2, 3]

    def test_bcd_out_of_bounds(self, fresh_state):
        state = execute(fresh_state, 0xAFFE)

        with pytest.raises(OutOfBounds):
            execute(state, 0xF033)


class TestFont:

    def test_font_loaded_at_0x050(self, fresh_state):
        assert [int(b) for b in fresh_state.memory[FONT_START:FONT_START + 80]] == [int(b) for b in FONT_DATA]

    @pytest.mark.parametrize("digit", range(16))
    def test_font_character(self, fresh_state, digit):
        """FX29 - I points at the 5-byte glyph for the low nibble of VX."""
        state = set_registers(fresh_state, V3=digit)
        state = execute(state, 0xF329)
        assert state.I == 0x050 + 5 * digit

    def test_font_character_uses_low_nibble(self, fresh_state):
        state = set_registers(fresh_state, V3=0x1B)
        state = execute(state, 0xF329)
        assert state.I == 0x050 + 5 * 0xB


class TestRegisterDumpAndLoad:
    """FX55/FX65 move V0..VX and leave I alone."""

    def test_store_registers(self, fresh_state):
        state = set_registers(fresh_state, V0=0x11, V1=0x22, V2=0x33, V3=0x44)
        state = execute(state, 0xA400)

        state = execute(state, 0xF255)  # store V0..V2

        assert [int(b) for b in state.memory[0x400:0x404]] == [0x11, 0x22, 0x33, 0x00]
        assert state.I == 0x400

    def test_load_registers(self, fresh_state):
        state = setup_sprite_in_memory(fresh_state, 0x500, [0xAA, 0xBB, 0xCC, 0xDD])
        state = set_registers(state, V3=0x99)
        state = execute(state, 0xA500)

        state = execute(state, 0xF265)  # load V0..V2

        assert [int(v) for v in state.V[:4]] == [0xAA, 0xBB, 0xCC, 0x99]
        assert state.I == 0x500

    def test_store_then_load_all(self, fresh_state):
        values = {f"V{i:X}": i * 3 for i in range(16)}
        state = set_registers(fresh_state, **values)
        state = execute(state, 0xA600)
        state = execute(state, 0xFF55)

        cleared = state.replace(V=fresh_state.V)
        restored = execute(cleared, 0xFF65)

        assert [int(v) for v in restored.V] == [i * 3 for i in range(16)]

    def test_store_out_of_bounds(self, fresh_state):
        state = execute(fresh_state, 0xAFFE)

        execute(state, 0xF155)  # I..I+1 fits
        with pytest.raises(OutOfBounds):
            execute(state, 0xF255)

    def test_load_out_of_bounds(self, fresh_state):
        state = execute(fresh_state, 0xAFFF)

        with pytest.raises(OutOfBounds):
            execute(state, 0xF165)


class TestWaitForKey:
    """FX0A - Wait until the key named by VX is pressed."""

    def test_wait_for_key_blocking(self, fresh_state):
        state = set_registers(fresh_state, V0=0x7)
        initial_pc = state.pc

        state = execute(state, 0xF00A)

        # PC rewinds so the instruction repeats
        assert state.pc == initial_pc - 2

    def test_wait_for_key_pressed(self, fresh_state):
        state = set_registers(fresh_state, V0=0x7)
        state = state.replace(keypad=state.keypad.at[7].set(True))
        initial_pc = state.pc

        state = execute(state, 0xF00A)

        assert state.pc == initial_pc

    def test_other_key_keeps_waiting(self, fresh_state):
        state = set_registers(fresh_state, V0=0x7)
        state = state.replace(keypad=state.keypad.at[3].set(True))

        assert execute(state, 0xF00A).pc == state.pc - 2

    def test_value_above_f_does_not_wait(self, fresh_state):
        state = set_registers(fresh_state, V0=0x17)
        assert execute(state, 0xF00A).pc == state.pc

    def test_repeated_steps_until_key(self, fresh_state):
        state = load_rom(fresh_state, bytes([0xF0, 0x0A, 0x61, 0x01]))
        state = set_registers(state, V0=0x4)

        for _ in range(5):
            state, _ = step(state)
            assert state.pc == 0x200

        state = state.replace(keypad=state.keypad.at[4].set(True))
        state, _ = step(state)
        assert state.pc == 0x202
        state, _ = step(state)
        assert state.V[1] == 1


class TestAddToIndex:

    def test_add_to_index(self, fresh_state):
        """FX1E - Add VX to I register."""
        state = execute(fresh_state, 0x6010)  # V0 = 0x10
        state = execute(state, 0xA300)  # I = 0x300
        state = execute(state, 0xF01E)  # I += V0

        assert state.I == 0x310
        assert state.V[15] == 0

    def test_add_to_index_overflow(self, fresh_state):
        """FX1E past 0xFFF sets VF and keeps the full sum in I."""
        state = execute(fresh_state, 0x60FF)  # V0 = 0xFF
        state = execute(state, 0xAF80)  # I = 0xF80
        state = execute(state, 0xF01E)  # I += V0

        assert state.I == 0x107F
        assert state.V[15] == 1

    def test_add_to_index_clears_flag(self, fresh_state):
        state = set_registers(fresh_state, V0=1, VF=1)
        state = execute(state, 0xF01E)
        assert state.V[15] == 0

    def test_access_after_overflow_faults(self, fresh_state):
        state = execute(fresh_state, 0x60FF)
        state = execute(state, 0xAF80)
        state = execute(state, 0xF01E)

        with pytest.raises(OutOfBounds):
            execute(state, 0xF033)
