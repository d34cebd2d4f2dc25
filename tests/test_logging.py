"""Tests for console logging."""

import pytest
from vipax import Machine, MachineConfig, StackUnderflowError
from vipax.logging import ConsoleLogger, MachineLogger, frames_with_progress
from conftest import program


def plain_logger(level="DEBUG"):
    return MachineLogger(log_level=level, use_colors=False, show_timestamps=False)


class TestConsoleLogger:
    def test_level_filtering(self, capsys):
        logger = ConsoleLogger(log_level="WARNING", use_colors=False, show_timestamps=False)
        logger.info("hidden")
        logger.warning("shown")

        out = capsys.readouterr().out
        assert "hidden" not in out
        assert "[ WARNING][vipax] shown" in out

    def test_unknown_level(self):
        with pytest.raises(ValueError):
            ConsoleLogger(log_level="LOUD")


class TestMachineLogger:
    def test_error_report(self, capsys):
        machine = Machine(MachineConfig(), logger=plain_logger())
        machine.load(program(0x00EE))
        with pytest.raises(StackUnderflowError):
            machine.step()

        out = capsys.readouterr().out
        assert "Return with an empty stack (opcode 0x00EE, pc 0x0200) [RET]" in out
        assert "PC:0200" in out

    def test_key_wait_events(self, capsys):
        machine = Machine(MachineConfig(), logger=plain_logger())
        machine.load(program(0xF20A))
        machine.step()
        keys = [None] * 16
        keys[0xB] = "pressed"
        machine.set_keys(keys)

        out = capsys.readouterr().out
        assert "Waiting for key into V2" in out
        assert "Got key B into V2" in out


def test_frames_with_progress():
    assert list(frames_with_progress(3, enabled=False)) == [0, 1, 2]
