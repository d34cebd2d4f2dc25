"""Tests for program loading and the fetch-decode-execute cycle."""

import jax.numpy as jnp
import pytest
from vipax import (
    create_state, fetch, step, load_program, load_rom, Quirks,
    DecodeError, MemoryAccessError, ProgramTooLargeError, StackUnderflowError,
    PROGRAM_START, FONT_START,
)
from vipax.constants import FONT_DATA, MAX_PROGRAM_SIZE, MEMORY_SIZE
from conftest import program


class TestInitialState:
    def test_fresh_state(self, fresh_state):
        assert fresh_state.pc == PROGRAM_START
        assert fresh_state.I == 0
        assert int(fresh_state.V.sum()) == 0
        assert fresh_state.stack.pointer == 0
        assert not bool(fresh_state.display.any())
        assert not fresh_state.waiting_for_key

    def test_font_loaded(self, fresh_state):
        font = fresh_state.memory[FONT_START:FONT_START + len(FONT_DATA)]
        assert jnp.array_equal(font, FONT_DATA)


class TestLoadProgram:
    def test_load_program(self, fresh_state):
        state = load_program(fresh_state, bytes([0x12, 0x34, 0x56]))
        assert [int(b) for b in state.memory[0x200:0x203]] == [0x12, 0x34, 0x56]

    def test_empty_program(self, fresh_state):
        state = load_program(fresh_state, b"")
        assert jnp.array_equal(state.memory, fresh_state.memory)

    def test_largest_program(self, fresh_state):
        state = load_program(fresh_state, b"\xAB" * MAX_PROGRAM_SIZE)
        assert state.memory[MEMORY_SIZE - 1] == 0xAB

    def test_program_too_large(self, fresh_state):
        with pytest.raises(ProgramTooLargeError):
            load_program(fresh_state, b"\x00" * (MAX_PROGRAM_SIZE + 1))

    def test_load_rom(self, fresh_state, tmp_path):
        rom = tmp_path / "test.ch8"
        rom.write_bytes(program(0x00E0, 0x1200))
        state = load_rom(fresh_state, str(rom))
        assert fetch(state) == 0x00E0


class TestFetch:
    def test_big_endian(self, fresh_state):
        state = load_program(fresh_state, bytes([0xA2, 0xF0]))
        assert fetch(state) == 0xA2F0

    def test_fetch_past_end_of_memory(self, fresh_state):
        state = fresh_state.replace(pc=jnp.asarray(0xFFF, dtype=jnp.uint16))
        with pytest.raises(MemoryAccessError) as excinfo:
            fetch(state)
        assert excinfo.value.pc == 0xFFF

    def test_fetch_wraps_with_quirk(self):
        state = create_state(quirks=Quirks(wrap_memory=True))
        state = state.replace(memory=state.memory.at[0xFFF].set(0x60).at[0x000].set(0x07))
        state = state.replace(pc=jnp.asarray(0xFFF, dtype=jnp.uint16))
        assert fetch(state) == 0x6007


class TestStep:
    def test_step_sequence(self, fresh_state):
        state = load_program(fresh_state, program(0x6005, 0x7003, 0xA300))
        for _ in range(3):
            state = step(state)
        assert state.V[0] == 8
        assert state.I == 0x300
        assert state.pc == PROGRAM_START + 6

    def test_jump_loop(self, fresh_state):
        state = load_program(fresh_state, program(0x1200))
        state = step(state)
        assert state.pc == PROGRAM_START

    def test_step_ticks_timers(self, fresh_state):
        state = load_program(fresh_state, program(0x6000, 0x6000))
        state = state.replace(delay_timer=jnp.asarray(2, dtype=jnp.uint8))
        state = state.replace(sound_timer=jnp.asarray(1, dtype=jnp.uint8))

        state = step(state)
        assert state.delay_timer == 1
        assert state.sound_timer == 0

        state = step(state)
        assert state.delay_timer == 0
        assert state.sound_timer == 0, "Timers stop at zero"

    def test_timer_read_sees_tick(self, fresh_state):
        """The tick happens before the instruction executes."""
        state = load_program(fresh_state, program(0xF107))
        state = state.replace(delay_timer=jnp.asarray(10, dtype=jnp.uint8))
        state = step(state)
        assert state.V[1] == 9

    def test_decoupled_timers_do_not_tick(self):
        state = create_state(timers_per_step=False)
        state = load_program(state, program(0x6000))
        state = state.replace(delay_timer=jnp.asarray(3, dtype=jnp.uint8))
        state = step(state)
        assert state.delay_timer == 3


class TestErrors:
    def test_error_leaves_state_untouched(self, fresh_state):
        state = load_program(fresh_state, program(0x6042, 0x00EE))
        state = step(state)
        before = state

        with pytest.raises(StackUnderflowError) as excinfo:
            step(state)

        assert excinfo.value.opcode == 0x00EE
        assert excinfo.value.pc == PROGRAM_START + 2
        assert state is before
        assert state.pc == PROGRAM_START + 2
        assert state.V[0] == 0x42

    def test_undefined_instruction_in_program(self, fresh_state):
        state = load_program(fresh_state, program(0xFFFF))
        with pytest.raises(DecodeError) as excinfo:
            step(state)
        assert excinfo.value.pc == PROGRAM_START

    def test_memory_error_has_context(self, fresh_state):
        state = load_program(fresh_state, program(0xAFFF, 0xF133))
        state = step(state)
        with pytest.raises(MemoryAccessError) as excinfo:
            step(state)
        assert excinfo.value.opcode == 0xF133
        assert excinfo.value.pc == PROGRAM_START + 2
