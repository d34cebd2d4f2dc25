"""Guarded access to the 4 KB address space."""

import jax.numpy as jnp

from vipax.constants import MEMORY_SIZE, PROGRAM_START, MAX_PROGRAM_SIZE
from vipax.errors import MemoryAccessError, ProgramTooLargeError
from vipax.state import EmulatorState


def address_range(state: EmulatorState, start: int, count: int) -> jnp.ndarray:
    """Addresses ``start .. start + count - 1`` as an index array.

    Out-of-range addresses wrap modulo the memory size when the ``wrap_memory``
    quirk is set and raise MemoryAccessError otherwise.
    """
    start = int(start)
    end = start + count
    if state.quirks.wrap_memory:
        return jnp.arange(start, end) % MEMORY_SIZE
    if end > MEMORY_SIZE:
        raise MemoryAccessError(
            f"Access to 0x{start:04X}..0x{end - 1:04X} past the end of memory"
        )
    return jnp.arange(start, end)


def read_bytes(state: EmulatorState, start: int, count: int) -> jnp.ndarray:
    """Read ``count`` bytes starting at ``start``."""
    return state.memory[address_range(state, start, count)]


def load_program(state: EmulatorState, program: bytes) -> EmulatorState:
    """Copy a program image into memory starting at 0x200."""
    if len(program) > MAX_PROGRAM_SIZE:
        raise ProgramTooLargeError(
            f"Program is {len(program)} bytes, at most {MAX_PROGRAM_SIZE} fit in memory"
        )
    if not program:
        return state
    program_array = jnp.array(list(program), dtype=jnp.uint8)
    new_memory = state.memory.at[PROGRAM_START:PROGRAM_START + len(program)].set(program_array)
    return state.replace(memory=new_memory)


def load_rom(state: EmulatorState, filename: str) -> EmulatorState:
    """Load ROM data into CHIP-8 memory starting at 0x200."""
    with open(filename, 'rb') as f:
        rom_data = f.read()
    return load_program(state, rom_data)
