"""Delay and sound timers, and the host clock that drives them."""

import jax.numpy as jnp

from vipax.constants import DEFAULT_CPU_HZ, DEFAULT_TIMER_HZ
from vipax.state import EmulatorState

# Absorbs float error so 1/60 s at 60 Hz is exactly one tick
_EPSILON = 1e-9

# Longest host frame the clock will catch up on
MAX_FRAME_TIME = 0.25


def tick_timers(state: EmulatorState) -> EmulatorState:
    """Decrement both timers by one, floored at zero."""
    return state.replace(
        delay_timer=jnp.astype(jnp.maximum(jnp.astype(state.delay_timer, jnp.int32) - 1, 0), jnp.uint8),
        sound_timer=jnp.astype(jnp.maximum(jnp.astype(state.sound_timer, jnp.int32) - 1, 0), jnp.uint8),
    )


class Clock:
    """Accumulator splitting elapsed time into CPU cycles and timer ticks.

    Fractional cycles and ticks are carried over to the next call, so the
    long-run rates match ``cpu_hz`` and ``timer_hz`` whatever the host frame rate.
    A single call never accounts for more than ``max_frame_time`` seconds, so a
    host that stalls drops time instead of running a growing backlog.
    """

    def __init__(
        self,
        cpu_hz: float = DEFAULT_CPU_HZ,
        timer_hz: float = DEFAULT_TIMER_HZ,
        max_frame_time: float = MAX_FRAME_TIME,
    ):
        if cpu_hz <= 0 or timer_hz <= 0:
            raise ValueError(f"Clock rates must be positive, got cpu_hz={cpu_hz}, timer_hz={timer_hz}")
        self.cpu_hz = cpu_hz
        self.timer_hz = timer_hz
        self.max_frame_time = max_frame_time
        self._cycle_budget = 0.0
        self._tick_budget = 0.0

    def advance(self, dt: float) -> tuple[int, int]:
        """Return ``(cycles, timer_ticks)`` elapsed during ``dt`` seconds."""
        dt = min(max(dt, 0.0), self.max_frame_time)
        self._cycle_budget += dt * self.cpu_hz
        self._tick_budget += dt * self.timer_hz
        cycles = int(self._cycle_budget + _EPSILON)
        ticks = int(self._tick_budget + _EPSILON)
        self._cycle_budget -= cycles
        self._tick_budget -= ticks
        return cycles, ticks

    def reset(self):
        self._cycle_budget = 0.0
        self._tick_budget = 0.0
