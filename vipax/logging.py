"""Console logging utilities for vipax.

A small levelled console logger, an emulator-specific subclass that reports
machine lifecycle events and instruction traces, and a tqdm progress helper
for headless runs.
"""

import time
import sys
from typing import Iterator, Optional

from tqdm import tqdm

from vipax.decode import disassemble

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

ANSI_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
ANSI_RESET = "\033[0m"


class ConsoleLogger:
    """Console logger with levels, elapsed-time stamps and ANSI colors.

    Colors are only used when stdout is a terminal.
    """

    def __init__(
        self,
        name: str = "vipax",
        log_level: str = "INFO",
        use_colors: bool = True,
        show_timestamps: bool = True,
    ):
        if log_level.upper() not in LEVELS:
            raise ValueError(f"Unknown log level '{log_level}'. Available: {list(LEVELS)}")
        self.name = name
        self.log_level = log_level.upper()
        self.use_colors = use_colors and getattr(sys.stdout, "isatty", lambda: False)()
        self.show_timestamps = show_timestamps
        self.start_time = time.time()

    def enabled_for(self, level: str) -> bool:
        return LEVELS.index(level.upper()) >= LEVELS.index(self.log_level)

    def format(self, level: str, message: str) -> str:
        level = level.upper()
        prefix = f"[{level:>8s}]"
        if self.use_colors:
            prefix = f"{ANSI_COLORS[level]}{prefix}{ANSI_RESET}"
        if self.show_timestamps:
            prefix = f"[{time.time() - self.start_time:8.2f}s]{prefix}"
        return f"{prefix}[{self.name}] {message}"

    def log(self, level: str, message: str):
        if self.enabled_for(level):
            print(self.format(level, message), flush=True)

    def debug(self, message: str):
        self.log("DEBUG", message)

    def info(self, message: str):
        self.log("INFO", message)

    def warning(self, message: str):
        self.log("WARNING", message)

    def error(self, message: str):
        self.log("ERROR", message)

    def critical(self, message: str):
        self.log("CRITICAL", message)


class MachineLogger(ConsoleLogger):
    """Logger for machine lifecycle events and instruction traces."""

    def __init__(self, name: str = "vipax", **kwargs):
        super().__init__(name, **kwargs)

    def log_reset(self, config):
        self.info("=" * 60)
        self.info("Machine reset with configuration:")
        for key, value in config.items():
            self.info(f"  {key}: {value}")
        self.info("=" * 60)

    def log_program_loaded(self, size: int, source: Optional[str] = None):
        origin = f" from {source}" if source else ""
        self.info(f"Loaded {size} bytes{origin} at 0x200")

    def log_instruction(self, pc: int, instruction: int):
        self.debug(f"0x{pc:03X}: {instruction:04X}  {disassemble(instruction)}")

    def log_key_wait(self, register: int):
        self.debug(f"Waiting for key into V{register:X}")

    def log_key_received(self, key: int, register: int):
        self.debug(f"Got key {key:X} into V{register:X}")

    def log_error(self, error: Exception, instruction: Optional[int] = None):
        if instruction is not None:
            self.error(f"{error} [{disassemble(instruction)}]")
        else:
            self.error(str(error))

    def log_registers(self, state):
        """Log all 16 registers plus I, PC and timers on four lines."""
        for i in range(0, 16, 4):
            parts = [f"V{j:X}:{int(state.V[j]):02X}" for j in range(i, i + 4)]
            self.debug(" ".join(parts))
        self.debug(
            f"I:{int(state.I):04X} PC:{int(state.pc):04X} "
            f"DT:{int(state.delay_timer):3d} ST:{int(state.sound_timer):3d}"
        )


def frames_with_progress(
    n: int,
    desc: Optional[str] = None,
    enabled: bool = True,
    **kwargs,
) -> Iterator[int]:
    """Iterate over ``range(n)`` with a tqdm progress bar."""
    if desc is None:
        desc = f"Running ({n:,} frames)"

    for kwarg in ("total", "disable"):
        kwargs.pop(kwarg, None)

    return iter(tqdm(range(n), desc=desc, unit="frame", disable=not enabled, **kwargs))
