"""CHIP-8 display operations."""

import jax.numpy as jnp
from vipax.state import EmulatorState
from vipax.decode import DecodedInstruction
from vipax.constants import SCREEN_WIDTH, SCREEN_HEIGHT, SPRITE_WIDTH, FLAG_REGISTER
from vipax.instructions.common import advance
from vipax.memory import read_bytes

# Pre-computed coordinate grids for display operations
xx, yy = jnp.meshgrid(jnp.arange(SCREEN_WIDTH), jnp.arange(SCREEN_HEIGHT), indexing='ij')


def execute_display(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """DXYN - Draw sprite at (VX, VY) with height N.

    The origin wraps around the screen, the sprite itself is clipped at the
    right and bottom edges. Only the visible rows are read from memory.
    """
    sprite_x = int(state.V[instruction.x]) % SCREEN_WIDTH
    sprite_y = int(state.V[instruction.y]) % SCREEN_HEIGHT
    width = min(SPRITE_WIDTH, SCREEN_WIDTH - sprite_x)
    height = min(instruction.n, SCREEN_HEIGHT - sprite_y)

    if height == 0:
        return advance(state.replace(V=state.V.at[FLAG_REGISTER].set(0)))

    sprite_rows = read_bytes(state, state.I, height)

    in_sprite = (xx >= sprite_x) & (xx < sprite_x + width) & (yy >= sprite_y) & (yy < sprite_y + height)

    row_offset = jnp.clip(yy - sprite_y, 0, height - 1)
    col_offset = jnp.clip(xx - sprite_x, 0, SPRITE_WIDTH - 1)
    sprite_bytes = sprite_rows[row_offset]
    sprite = jnp.astype((sprite_bytes >> (7 - col_offset)) & 1, jnp.bool_) & in_sprite

    collision = jnp.any(state.display & sprite)
    return advance(state.replace(
        display=state.display ^ sprite,
        V=state.V.at[FLAG_REGISTER].set(jnp.astype(collision, jnp.uint8))
    ))
