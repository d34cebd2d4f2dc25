"""Helpers shared by the instruction handlers."""

import jax.numpy as jnp
from vipax.constants import INSTRUCTION_SIZE, FLAG_REGISTER
from vipax.state import EmulatorState


def advance(state: EmulatorState, count: int = 1) -> EmulatorState:
    """Move the program counter past ``count`` instructions."""
    return state.replace(pc=jnp.astype(state.pc + INSTRUCTION_SIZE * count, jnp.uint16))


def write_result(V: jnp.ndarray, x: int, result, flag=None) -> jnp.ndarray:
    """Store ``result`` in VX, then ``flag`` in VF so the flag wins when X == F."""
    new_V = V.at[x].set(jnp.astype(result, jnp.uint8))
    if flag is not None:
        new_V = new_V.at[FLAG_REGISTER].set(jnp.astype(flag, jnp.uint8))
    return new_V
