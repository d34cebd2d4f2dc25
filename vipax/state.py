"""CHIP-8 emulator state structures."""

from enum import IntEnum
from typing import Optional

import jax
import jax.numpy as jnp
from flax.struct import dataclass, PyTreeNode, field

from vipax.constants import (
    MEMORY_SIZE, PROGRAM_START, FONT_START, FONT_DATA, SCREEN_WIDTH, SCREEN_HEIGHT,
    STACK_SIZE, NUM_KEYS, NUM_REGISTERS,
)
from vipax.quirks import Quirks


class RunMode(IntEnum):
    """Execution state of the machine."""
    RUNNING = 0
    WAITING_FOR_KEY = 1


@dataclass
class StackState:
    """Return address stack for subroutine calls."""
    data: jnp.ndarray
    pointer: jnp.ndarray

    @property
    def depth(self) -> int:
        return self.data.shape[0]


class EmulatorState(PyTreeNode):
    """Main CHIP-8 emulator state.

    The display is indexed ``[x, y]`` with the origin at the top-left corner.
    ``wait_register`` is only meaningful while ``mode`` is WAITING_FOR_KEY.
    """
    rng: jax.Array
    memory: jnp.ndarray
    pc: jnp.ndarray
    display: jnp.ndarray
    stack: StackState
    delay_timer: jnp.ndarray
    sound_timer: jnp.ndarray
    keypad: jnp.ndarray
    V: jnp.ndarray
    I: jnp.ndarray
    mode: jnp.ndarray
    wait_register: jnp.ndarray
    quirks: Quirks = field(pytree_node=False, default=Quirks())
    timers_per_step: bool = field(pytree_node=False, default=True)

    @property
    def waiting_for_key(self) -> bool:
        return int(self.mode) == RunMode.WAITING_FOR_KEY


def create_stack(depth: int = STACK_SIZE) -> StackState:
    """Create an empty return stack of the given depth."""
    if depth < 1:
        raise ValueError(f"Stack depth must be positive, got {depth}")
    return StackState(data=jnp.zeros(depth, dtype=jnp.uint16), pointer=jnp.zeros((), dtype=jnp.int32))


def create_state(
    rng: Optional[jax.Array] = None,
    quirks: Quirks = Quirks(),
    stack_size: int = STACK_SIZE,
    timers_per_step: bool = True,
) -> EmulatorState:
    """Create initial emulator state with font data loaded."""
    if rng is None:
        rng = jax.random.PRNGKey(0)
    memory = jnp.zeros(MEMORY_SIZE, dtype=jnp.uint8)
    return EmulatorState(
        rng=rng,
        memory=memory.at[FONT_START:FONT_START + len(FONT_DATA)].set(FONT_DATA),
        pc=jnp.asarray(PROGRAM_START, dtype=jnp.uint16),
        display=jnp.zeros((SCREEN_WIDTH, SCREEN_HEIGHT), dtype=jnp.bool_),
        stack=create_stack(stack_size),
        delay_timer=jnp.zeros((), dtype=jnp.uint8),
        sound_timer=jnp.zeros((), dtype=jnp.uint8),
        keypad=jnp.zeros(NUM_KEYS, dtype=jnp.bool_),
        V=jnp.zeros(NUM_REGISTERS, dtype=jnp.uint8),
        I=jnp.zeros((), dtype=jnp.uint16),
        mode=jnp.asarray(RunMode.RUNNING, dtype=jnp.uint8),
        wait_register=jnp.zeros((), dtype=jnp.uint8),
        quirks=quirks,
        timers_per_step=timers_per_step,
    )
