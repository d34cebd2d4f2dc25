"""Fatal emulator conditions.

Every error raised while executing an instruction is fatal for that step: the
core has no recovery policy, and the state passed to the failing call is left
untouched. Stopping or resetting the machine is up to the host.
"""

from typing import Optional


class EmulatorError(Exception):
    """Base class for all CHIP-8 execution errors."""

    def __init__(self, message: str, opcode: Optional[int] = None, pc: Optional[int] = None):
        self.message = message
        self.opcode = opcode
        self.pc = pc
        details = []
        if opcode is not None:
            details.append(f"opcode 0x{opcode:04X}")
        if pc is not None:
            details.append(f"pc 0x{pc:04X}")
        if details:
            message = f"{message} ({', '.join(details)})"
        super().__init__(message)

    def with_context(self, opcode: Optional[int], pc: int) -> "EmulatorError":
        """Copy of this error tagged with the instruction that raised it."""
        return type(self)(self.message, opcode=opcode, pc=pc)


class DecodeError(EmulatorError):
    """Opcode nibble / suffix combination with no defined instruction."""


class MalformedInstructionError(DecodeError):
    """Instruction whose reserved low bits are nonzero (5XY0, 9XY0)."""


class UnsupportedInstructionError(DecodeError):
    """0NNN machine language call; there is no native routine host."""


class StackOverflowError(EmulatorError):
    """Subroutine call with the return stack already full."""


class StackUnderflowError(EmulatorError):
    """Return with an empty return stack."""


class MemoryAccessError(EmulatorError):
    """Access to an address outside the 4 KB address space."""


class ProgramTooLargeError(EmulatorError):
    """Program image that does not fit between 0x200 and the end of memory."""
