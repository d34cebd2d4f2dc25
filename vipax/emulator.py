"""Main CHIP-8 emulator execution engine."""

import jax.numpy as jnp
from vipax.state import EmulatorState
from vipax.decode import Op, decode
from vipax.errors import EmulatorError
from vipax.memory import read_bytes
from vipax.timers import tick_timers
from vipax.instructions.system import execute_clear_screen, execute_return
from vipax.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset,
    execute_skip_if_key_pressed, execute_skip_if_key_not_pressed
)
from vipax.instructions.alu import (
    execute_alu_set, execute_alu_or, execute_alu_and, execute_alu_xor, execute_alu_add,
    execute_alu_sub_xy, execute_alu_shift_right, execute_alu_sub_yx, execute_alu_shift_left
)
from vipax.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from vipax.instructions.display import execute_display
from vipax.instructions.misc import (
    execute_get_delay_timer, execute_wait_for_key, execute_set_delay_timer,
    execute_set_sound_timer, execute_add_to_index, execute_font_character,
    execute_bcd_conversion, execute_store_registers, execute_load_registers
)

HANDLERS = {
    Op.CLS: execute_clear_screen,
    Op.RET: execute_return,
    Op.JP: execute_jump,
    Op.CALL: execute_call,
    Op.SE_IMM: execute_skip_if_equal_immediate,
    Op.SNE_IMM: execute_skip_if_not_equal_immediate,
    Op.SE_REG: execute_skip_if_equal_register,
    Op.LD_IMM: execute_set,
    Op.ADD_IMM: execute_add,
    Op.LD_REG: execute_alu_set,
    Op.OR: execute_alu_or,
    Op.AND: execute_alu_and,
    Op.XOR: execute_alu_xor,
    Op.ADD_REG: execute_alu_add,
    Op.SUB: execute_alu_sub_xy,
    Op.SHR: execute_alu_shift_right,
    Op.SUBN: execute_alu_sub_yx,
    Op.SHL: execute_alu_shift_left,
    Op.SNE_REG: execute_skip_if_not_equal_register,
    Op.LD_I: execute_set_index,
    Op.JP_V0: execute_jump_with_offset,
    Op.RND: execute_random,
    Op.DRW: execute_display,
    Op.SKP: execute_skip_if_key_pressed,
    Op.SKNP: execute_skip_if_key_not_pressed,
    Op.LD_VX_DT: execute_get_delay_timer,
    Op.LD_KEY: execute_wait_for_key,
    Op.LD_DT: execute_set_delay_timer,
    Op.LD_ST: execute_set_sound_timer,
    Op.ADD_I: execute_add_to_index,
    Op.LD_FONT: execute_font_character,
    Op.LD_BCD: execute_bcd_conversion,
    Op.STORE: execute_store_registers,
    Op.LOAD: execute_load_registers,
}


def execute(state: EmulatorState, instruction: int) -> EmulatorState:
    """Execute single CHIP-8 instruction.

    The handler advances the program counter itself. On error the input state
    is left as it was; the raised error names the opcode and program counter.
    """
    pc = int(state.pc)
    decoded_instruction = decode(instruction, pc=pc)
    try:
        return HANDLERS[decoded_instruction.op](state, decoded_instruction)
    except EmulatorError as error:
        if error.pc is None:
            raise error.with_context(decoded_instruction.raw, pc) from error
        raise


def _pack_u16(high: jnp.uint8, low: jnp.uint8) -> jnp.uint16:
    """Pack two bytes into uint16."""
    return (high.astype(jnp.uint16) << 8) | low.astype(jnp.uint16)


def fetch(state: EmulatorState) -> int:
    """Fetch the big-endian instruction word at the program counter."""
    try:
        high, low = read_bytes(state, state.pc, 2)
    except EmulatorError as error:
        raise error.with_context(None, int(state.pc)) from error
    return int(_pack_u16(high, low))


def step(state: EmulatorState) -> EmulatorState:
    """Run one fetch-decode-execute cycle.

    A machine waiting for a key is returned unchanged: no timer decrement and
    no fetch happen until :func:`vipax.keypad.set_keys` reports a press.
    """
    if state.waiting_for_key:
        return state

    instruction = fetch(state)
    if state.timers_per_step:
        state = tick_timers(state)
    return execute(state, instruction)
