"""Tests for the host-facing machine and its clock."""

import time

import numpy as np
import pytest
from vipax import Machine, MachineConfig, KeyState, Quirks, StackUnderflowError, PROGRAM_START
from vipax.quirks import get_quirks
from vipax.timers import Clock
from conftest import program


def make_machine(quiet_logger, **kwargs):
    return Machine(MachineConfig(**kwargs), logger=quiet_logger)


class TestMachine:
    def test_reset(self, machine):
        machine.load(program(0x6001))
        machine.step()
        machine.reset()
        assert machine.state.pc == PROGRAM_START
        assert machine.state.V[0] == 0
        assert machine.state.memory[PROGRAM_START] == 0

    def test_load_rom(self, machine, tmp_path):
        rom = tmp_path / "rom.ch8"
        rom.write_bytes(program(0x6A2B))
        machine.load_rom(str(rom))
        machine.step()
        assert machine.state.V[0xA] == 0x2B

    def test_step_error_keeps_state(self, machine):
        machine.load(program(0x00EE))
        before = machine.state
        with pytest.raises(StackUnderflowError):
            machine.step()
        assert machine.state is before

    def test_trace_logs_instructions(self, capsys):
        from vipax.logging import MachineLogger

        logger = MachineLogger(log_level="DEBUG", use_colors=False, show_timestamps=False)
        machine = Machine(logger=logger, trace=True)
        machine.load(program(0x8124))
        machine.step()

        assert "ADD V1, V2" in capsys.readouterr().out

    def test_quirks_reach_state(self, quiet_logger):
        machine = make_machine(quiet_logger, quirks=get_quirks("modern"))
        assert machine.state.quirks == Quirks.modern()

    def test_stack_size(self, quiet_logger):
        machine = make_machine(quiet_logger, stack_size=12)
        assert machine.state.stack.depth == 12


class TestMachineSurface:
    def test_display_snapshot(self, machine):
        machine.load(program(0xA050, 0x6205, 0x6301, 0xD231))  # Top row of glyph 0 at (5, 1)
        for _ in range(4):
            machine.step()

        snapshot = machine.display_snapshot()
        assert snapshot.shape == (32, 64)
        assert snapshot.dtype == np.bool_
        assert snapshot[1, 5:9].all()
        assert not snapshot[5, 1]

    def test_display_snapshot_read_only(self, machine):
        snapshot = machine.display_snapshot()
        with pytest.raises(ValueError):
            snapshot[0, 0] = True

    def test_sound_active(self, machine):
        machine.load(program(0x6002, 0xF018, 0x1204))
        assert not machine.sound_active()

        machine.step()
        machine.step()
        assert machine.sound_active()

        machine.step()  # Tick: 2 -> 1
        assert machine.sound_active()
        machine.step()  # Tick: 1 -> 0
        assert not machine.sound_active()

    def test_set_keys_resolves_wait(self, machine):
        machine.load(program(0xF30A, 0x6001))
        machine.step()
        assert machine.state.waiting_for_key

        machine.step()
        assert machine.state.pc == PROGRAM_START + 2

        keys = [None] * 16
        keys[7] = KeyState.PRESSED
        machine.set_keys(keys)
        assert machine.state.V[3] == 7
        machine.step()
        assert machine.state.V[0] == 1


class TestRunFrame:
    def test_coupled_frame_runs_one_instruction(self, machine):
        """With coupled timers one frame executes one instruction per timer tick."""
        machine.load(program(0x7001, 0x1200))
        machine.run_frame()
        assert machine.state.V[0] == 1
        assert machine.state.pc == PROGRAM_START + 2

    def test_coupled_frames_tick_timers(self, machine):
        machine.load(program(0x603C, 0xF015, 0x1204))
        machine.run(62)
        assert machine.state.delay_timer == 0

    def test_decoupled_frame(self, quiet_logger):
        machine = make_machine(quiet_logger, decouple_timers=True, cpu_hz=600, timer_hz=60)
        machine.load(program(0x7001, 0x1200))
        machine.state = machine.state.replace(delay_timer=machine.state.delay_timer + 5)

        machine.run_frame()  # 10 instructions, 1 tick

        assert machine.state.V[0] == 5
        assert machine.state.delay_timer == 4

    def test_decoupled_timers_tick_while_waiting(self, quiet_logger):
        machine = make_machine(quiet_logger, decouple_timers=True)
        machine.load(program(0xF00A))
        machine.state = machine.state.replace(sound_timer=machine.state.sound_timer + 3)

        machine.run_frame()
        assert machine.state.waiting_for_key
        machine.run_frame()
        machine.run_frame()

        assert not machine.sound_active()

    def test_decoupled_catch_up_is_bounded(self, quiet_logger):
        machine = make_machine(quiet_logger, decouple_timers=True, cpu_hz=120)
        machine.load(program(0x7001, 0x1200))

        machine.run_frame(10.0)  # Capped at 0.25 s: 30 instructions

        assert machine.state.V[0] == 15

    def test_skips_cost_no_more_than_other_instructions(self, quiet_logger):
        """A skip-heavy loop runs at the same pace as a plain one."""
        def seconds_for(words):
            machine = make_machine(quiet_logger)
            machine.load(program(*words))
            for _ in range(4):
                machine.step()
            started = time.perf_counter()
            for _ in range(40):
                machine.step()
            return time.perf_counter() - started

        plain = seconds_for([0x6000, 0x1200])
        skipping = seconds_for([0x3001, 0x1200])

        assert skipping < 3 * plain + 0.05

    def test_record(self, machine):
        machine.load(program(0xA050, 0xD015, 0x00E0, 0x1202))
        displays = machine.run(3, record=True)
        assert len(displays) == 3
        assert displays[0].shape == (64, 32)
        assert not displays[0].any()
        assert displays[1].any()
        assert not displays[2].any()

    def test_run_without_record(self, machine):
        machine.load(program(0x1200))
        assert machine.run(2) is None


class TestClock:
    def test_rates(self):
        clock = Clock(cpu_hz=700, timer_hz=60, max_frame_time=1.0)
        assert clock.advance(1.0) == (700, 60)

    def test_long_frame_is_capped(self):
        """A stalled host does not build up a backlog of cycles."""
        clock = Clock(cpu_hz=700, timer_hz=60)
        assert clock.advance(10.0) == (175, 15)
        assert clock.advance(1 / 60) == (11, 1)

    def test_negative_frame_time(self):
        clock = Clock(cpu_hz=700, timer_hz=60)
        assert clock.advance(-1.0) == (0, 0)

    def test_fractions_carry(self):
        clock = Clock(cpu_hz=700, timer_hz=60)
        total_cycles = total_ticks = 0
        for _ in range(60):
            cycles, ticks = clock.advance(1 / 60)
            total_cycles += cycles
            total_ticks += ticks
        assert abs(total_cycles - 700) <= 1
        assert abs(total_ticks - 60) <= 1

    def test_reset(self):
        clock = Clock(cpu_hz=10, timer_hz=10)
        clock.advance(0.05)
        clock.reset()
        assert clock.advance(0.05) == (0, 0)

    @pytest.mark.parametrize("cpu_hz,timer_hz", [(0, 60), (700, -1)])
    def test_invalid_rates(self, cpu_hz, timer_hz):
        with pytest.raises(ValueError):
            Clock(cpu_hz, timer_hz)
