"""CHIP-8 miscellaneous instructions (Fxxx)."""

import jax.numpy as jnp
from vipax.state import EmulatorState
from vipax.decode import DecodedInstruction
from vipax.constants import FONT_START, FONT_SPRITE_HEIGHT, INDEX_MASK
from vipax.instructions.common import advance, write_result
from vipax.keypad import begin_key_wait
from vipax.memory import address_range


def execute_get_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX07 - Set VX to delay timer value."""
    return advance(state.replace(V=write_result(state.V, instruction.x, state.delay_timer)))


def execute_wait_for_key(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX0A - Wait for key press (blocking).

    Execution resumes at the next instruction once a key press is delivered
    through :func:`vipax.keypad.set_keys`.
    """
    return advance(begin_key_wait(state, instruction.x))


def execute_set_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX15 - Set delay timer to VX."""
    return advance(state.replace(delay_timer=state.V[instruction.x]))


def execute_set_sound_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX18 - Set sound timer to VX."""
    return advance(state.replace(sound_timer=state.V[instruction.x]))


def execute_add_to_index(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX1E - Add VX to I register, wrapping at 16 bits."""
    new_i = (jnp.astype(state.I, jnp.int32) + state.V[instruction.x]) & INDEX_MASK
    return advance(state.replace(I=jnp.astype(new_i, jnp.uint16)))


def execute_font_character(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX29 - Set I to location of sprite for digit VX."""
    digit = jnp.astype(state.V[instruction.x] & 0xF, jnp.uint16)
    font_address = FONT_START + digit * FONT_SPRITE_HEIGHT
    return advance(state.replace(I=jnp.astype(font_address, jnp.uint16)))


def execute_bcd_conversion(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX33 - Store BCD representation of VX at I, I+1, I+2."""
    value = state.V[instruction.x]

    digits = jnp.array([
        value // 100,
        (value // 10) % 10,
        value % 10
    ], dtype=jnp.uint8)

    indices = address_range(state, state.I, 3)
    return advance(state.replace(memory=state.memory.at[indices].set(digits)))


def _advance_index(state: EmulatorState, instruction: DecodedInstruction) -> jnp.ndarray:
    if state.quirks.load_store_increments_index:
        return jnp.astype((jnp.astype(state.I, jnp.int32) + instruction.x + 1) & INDEX_MASK, jnp.uint16)
    return state.I


def execute_store_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX55 - Store V0 through VX in memory starting at I."""
    count = instruction.x + 1
    indices = address_range(state, state.I, count)
    new_memory = state.memory.at[indices].set(state.V[:count])
    return advance(state.replace(memory=new_memory, I=_advance_index(state, instruction)))


def execute_load_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX65 - Load V0 through VX from memory starting at I."""
    count = instruction.x + 1
    indices = address_range(state, state.I, count)
    new_V = state.V.at[:count].set(state.memory[indices])
    return advance(state.replace(V=new_V, I=_advance_index(state, instruction)))
