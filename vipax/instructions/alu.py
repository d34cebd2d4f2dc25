"""CHIP-8 ALU operations (8xxx)."""

import jax.numpy as jnp
from vipax.state import EmulatorState
from vipax.decode import DecodedInstruction
from vipax.instructions.common import advance, write_result


def alu_set(vx: int, vy: int) -> tuple[int, None]:
    """8XY0 - Set: VX = VY."""
    return vy, None


def alu_or(vx: int, vy: int) -> tuple[int, None]:
    """8XY1 - Binary OR: VX |= VY."""
    return vx | vy, None


def alu_and(vx: int, vy: int) -> tuple[int, None]:
    """8XY2 - Binary AND: VX &= VY."""
    return vx & vy, None


def alu_xor(vx: int, vy: int) -> tuple[int, None]:
    """8XY3 - Logical XOR: VX ^= VY."""
    return vx ^ vy, None


def alu_add(vx: int, vy: int) -> tuple[int, int]:
    """8XY4 - Add: VX += VY, set carry flag."""
    result = jnp.astype(vx, jnp.int32) + vy
    carry = jnp.astype(result > 255, jnp.uint8)
    return result & 0xFF, carry


def alu_sub_xy(vx: int, vy: int) -> tuple[int, int]:
    """8XY5 - Subtract: VX -= VY, VF = 1 when no borrow occurs."""
    no_borrow = jnp.astype(vx >= vy, jnp.uint8)
    result = (jnp.astype(vx, jnp.int32) - vy) & 0xFF
    return result, no_borrow


def alu_shift_right(vx: int, vy: int) -> tuple[int, int]:
    """8XY6 - Shift right: VX = VY >> 1, VF = bit shifted out."""
    shifted_bit = vy & 1
    result = vy >> 1
    return result, shifted_bit


def alu_sub_yx(vx: int, vy: int) -> tuple[int, int]:
    """8XY7 - Subtract: VX = VY - VX, VF = 1 when no borrow occurs."""
    no_borrow = jnp.astype(vy >= vx, jnp.uint8)
    result = (jnp.astype(vy, jnp.int32) - vx) & 0xFF
    return result, no_borrow


def alu_shift_left(vx: int, vy: int) -> tuple[int, int]:
    """8XYE - Shift left: VX = VY << 1, VF = bit shifted out."""
    shifted_bit = (vy & 0x80) >> 7
    result = (jnp.astype(vy, jnp.int32) << 1) & 0xFF
    return result, shifted_bit


def make_alu_instruction(alu_fn, subtracts: bool = False, shifts: bool = False):
    """Factory turning an ``(vx, vy) -> (result, flag)`` function into a handler."""
    def alu_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        vx = state.V[instruction.x]
        vy = state.V[instruction.y]
        if shifts and state.quirks.shift_in_place:
            vy = vx

        result, vf = alu_fn(vx, vy)
        if subtracts and state.quirks.borrow_flag_set_on_borrow:
            vf = 1 - vf

        return advance(state.replace(V=write_result(state.V, instruction.x, result, vf)))

    alu_instruction.__name__ = f"execute_{alu_fn.__name__}"
    alu_instruction.__doc__ = alu_fn.__doc__
    return alu_instruction


execute_alu_set = make_alu_instruction(alu_set)
execute_alu_or = make_alu_instruction(alu_or)
execute_alu_and = make_alu_instruction(alu_and)
execute_alu_xor = make_alu_instruction(alu_xor)
execute_alu_add = make_alu_instruction(alu_add)
execute_alu_sub_xy = make_alu_instruction(alu_sub_xy, subtracts=True)
execute_alu_shift_right = make_alu_instruction(alu_shift_right, shifts=True)
execute_alu_sub_yx = make_alu_instruction(alu_sub_yx, subtracts=True)
execute_alu_shift_left = make_alu_instruction(alu_shift_left, shifts=True)
