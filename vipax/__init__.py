"""CHIP-8 virtual machine core."""

from vipax.state import EmulatorState, RunMode, create_state
from vipax.emulator import execute, fetch, step
from vipax.decode import DecodedInstruction, Op, decode, disassemble
from vipax.keypad import KeyState, set_keys
from vipax.memory import load_program, load_rom
from vipax.quirks import Quirks
from vipax.machine import Machine, MachineConfig
from vipax.errors import (
    EmulatorError, DecodeError, MalformedInstructionError, UnsupportedInstructionError,
    StackOverflowError, StackUnderflowError, MemoryAccessError, ProgramTooLargeError,
)
from vipax.constants import *
from vipax.rendering import chip8_display_to_rgb, create_color_scheme, batch_render

__all__ = [
    "EmulatorState",
    "RunMode",
    "create_state",
    "fetch",
    "execute",
    "step",
    "load_program",
    "load_rom",
    "DecodedInstruction",
    "Op",
    "decode",
    "disassemble",
    "KeyState",
    "set_keys",
    "Quirks",
    "Machine",
    "MachineConfig",
    "EmulatorError",
    "DecodeError",
    "MalformedInstructionError",
    "UnsupportedInstructionError",
    "StackOverflowError",
    "StackUnderflowError",
    "MemoryAccessError",
    "ProgramTooLargeError",
    "PROGRAM_START",
    "FONT_START",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "chip8_display_to_rgb",
    "create_color_scheme",
    "batch_render",
]
