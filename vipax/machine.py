"""Host-facing CHIP-8 machine.

:class:`Machine` owns one :class:`~vipax.state.EmulatorState` and exposes the
narrow surface a front end needs: reset, program loading, key updates,
stepping, and read-only views of the display and sound state.
"""

import dataclasses
from typing import Any, Dict, List, Optional, Sequence

import jax
import numpy as np
from flax.struct import dataclass

from vipax.constants import DEFAULT_CPU_HZ, DEFAULT_TIMER_HZ, STACK_SIZE
from vipax.emulator import fetch, step
from vipax.errors import EmulatorError
from vipax.keypad import KeyState, set_keys
from vipax.logging import MachineLogger, frames_with_progress
from vipax.memory import load_program
from vipax.quirks import Quirks
from vipax.state import EmulatorState, create_state
from vipax.timers import Clock, tick_timers


@dataclass
class MachineConfig:
    """Machine configuration.

    Attributes:
        cpu_hz: Instructions per second when timers are decoupled
        timer_hz: Timer decay rate, also the host frame rate
        stack_size: Depth of the return address stack
        decouple_timers: Tick timers at ``timer_hz`` from the host clock instead
            of once per executed instruction
        quirks: Interpreter quirk set
        seed: Seed of the PRNG key used by CXNN
    """
    cpu_hz: float = DEFAULT_CPU_HZ
    timer_hz: float = DEFAULT_TIMER_HZ
    stack_size: int = STACK_SIZE
    decouple_timers: bool = False
    quirks: Quirks = Quirks()
    seed: int = 0


def asdict_non_recursive(obj: Any) -> Dict[str, Any]:
    """Convert dataclass to dictionary without recursive conversion."""
    return {field.name: getattr(obj, field.name) for field in dataclasses.fields(obj)}


class Machine:
    """Mutable wrapper around the functional emulator core.

    Every method that advances the machine replaces ``state`` only after the
    underlying call succeeded, so a fatal error leaves the machine exactly as it
    was before the failing instruction.
    """

    def __init__(
        self,
        config: MachineConfig = MachineConfig(),
        logger: Optional[MachineLogger] = None,
        trace: bool = False,
    ):
        self.config = config
        self.logger = logger or MachineLogger()
        self.trace = trace
        self.clock = Clock(config.cpu_hz, config.timer_hz)
        self.state: EmulatorState = None
        self.reset()

    def reset(self):
        """Zero all state, reload the font and set the program counter to 0x200."""
        self.state = create_state(
            jax.random.PRNGKey(self.config.seed),
            quirks=self.config.quirks,
            stack_size=self.config.stack_size,
            timers_per_step=not self.config.decouple_timers,
        )
        self.clock.reset()
        self.logger.log_reset(asdict_non_recursive(self.config))

    def load(self, program: bytes, source: Optional[str] = None):
        """Copy a program image into memory at 0x200."""
        self.state = load_program(self.state, program)
        self.logger.log_program_loaded(len(program), source)

    def load_rom(self, filename: str):
        with open(filename, 'rb') as f:
            self.load(f.read(), source=filename)

    def set_keys(self, transitions: Sequence[Optional[KeyState]]):
        """Apply one host update of key transitions."""
        was_waiting = self.state.waiting_for_key
        register = int(self.state.wait_register)
        self.state = set_keys(self.state, transitions)
        if was_waiting and not self.state.waiting_for_key:
            self.logger.log_key_received(int(self.state.V[register]), register)

    def step(self):
        """Execute one instruction, or nothing while waiting for a key."""
        if self.state.waiting_for_key:
            return

        try:
            if self.trace:
                self.logger.log_instruction(int(self.state.pc), fetch(self.state))
            new_state = step(self.state)
        except EmulatorError as error:
            self.logger.log_error(error, error.opcode)
            self.logger.log_registers(self.state)
            raise

        self.state = new_state
        if self.state.waiting_for_key:
            self.logger.log_key_wait(int(self.state.wait_register))

    def run_frame(self, dt: Optional[float] = None):
        """Advance the machine by one host frame of ``dt`` seconds.

        With coupled timers the machine executes one instruction per timer tick,
        so timers decay at ``timer_hz``. With decoupled timers it executes
        ``cpu_hz * dt`` instructions and ticks the timers separately, even while
        waiting for a key.
        """
        if dt is None:
            dt = 1.0 / self.config.timer_hz
        cycles, ticks = self.clock.advance(dt)
        if not self.config.decouple_timers:
            cycles = ticks

        for _ in range(cycles):
            self.step()
            if self.state.waiting_for_key:
                break

        if self.config.decouple_timers:
            for _ in range(ticks):
                self.state = tick_timers(self.state)

    def run(self, frames: int, progress: bool = False, record: bool = False) -> Optional[List[np.ndarray]]:
        """Run ``frames`` host frames, optionally collecting each frame's display.

        Returns:
            With ``record``, a list of ``(64, 32)`` displays, one per frame
        """
        displays = [] if record else None
        for _ in frames_with_progress(frames, enabled=progress):
            self.run_frame()
            if record:
                displays.append(np.array(self.state.display))
        return displays

    def display_snapshot(self) -> np.ndarray:
        """Read-only ``(32, 64)`` boolean bitmap, row-major, origin top-left."""
        snapshot = np.array(self.state.display, dtype=np.bool_).T.copy()
        snapshot.flags.writeable = False
        return snapshot

    def sound_active(self) -> bool:
        """True while the sound timer is nonzero."""
        return int(self.state.sound_timer) > 0
