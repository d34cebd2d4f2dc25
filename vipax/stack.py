"""CHIP-8 stack operations."""

import jax.numpy as jnp
from vipax.constants import ADDRESS_MASK
from vipax.errors import StackOverflowError, StackUnderflowError
from vipax.state import StackState


def push(stack: StackState, address: jnp.ndarray) -> StackState:
    """Push address onto stack."""
    pointer = int(stack.pointer)
    if pointer >= stack.depth:
        raise StackOverflowError(f"Call with the stack full ({stack.depth} entries)")
    masked_address = jnp.astype(address, jnp.uint16) & ADDRESS_MASK
    new_data = stack.data.at[pointer].set(masked_address)
    return stack.replace(data=new_data, pointer=stack.pointer + 1)


def pop(stack: StackState) -> tuple[StackState, jnp.ndarray]:
    """Pop address from stack."""
    if int(stack.pointer) <= 0:
        raise StackUnderflowError("Return with an empty stack")
    new_pointer = stack.pointer - 1
    popped_address = stack.data[new_pointer]
    new_data = stack.data.at[new_pointer].set(0)
    return stack.replace(data=new_data, pointer=new_pointer), popped_address
