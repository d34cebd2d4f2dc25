"""CHIP-8 instruction decoding."""

from enum import IntEnum
from typing import Optional

from chex import dataclass

from vipax.errors import DecodeError, MalformedInstructionError, UnsupportedInstructionError


class Op(IntEnum):
    """Every CHIP-8 instruction, named after its conventional mnemonic."""
    SYS = 0        # 0NNN
    CLS = 1        # 00E0
    RET = 2        # 00EE
    JP = 3         # 1NNN
    CALL = 4       # 2NNN
    SE_IMM = 5     # 3XNN
    SNE_IMM = 6    # 4XNN
    SE_REG = 7     # 5XY0
    LD_IMM = 8     # 6XNN
    ADD_IMM = 9    # 7XNN
    LD_REG = 10    # 8XY0
    OR = 11        # 8XY1
    AND = 12       # 8XY2
    XOR = 13       # 8XY3
    ADD_REG = 14   # 8XY4
    SUB = 15       # 8XY5
    SHR = 16       # 8XY6
    SUBN = 17      # 8XY7
    SHL = 18       # 8XYE
    SNE_REG = 19   # 9XY0
    LD_I = 20      # ANNN
    JP_V0 = 21     # BNNN
    RND = 22       # CXNN
    DRW = 23       # DXYN
    SKP = 24       # EX9E
    SKNP = 25      # EXA1
    LD_VX_DT = 26  # FX07
    LD_KEY = 27    # FX0A
    LD_DT = 28     # FX15
    LD_ST = 29     # FX18
    ADD_I = 30     # FX1E
    LD_FONT = 31   # FX29
    LD_BCD = 32    # FX33
    STORE = 33     # FX55
    LOAD = 34      # FX65


@dataclass(frozen=True)
class DecodedInstruction:
    """Decoded CHIP-8 instruction with extracted operands."""
    raw: int
    op: Op
    opcode: int  # First nibble
    x: int       # Second nibble (VX register)
    y: int       # Third nibble (VY register)
    n: int       # Fourth nibble (4-bit immediate)
    nn: int      # Last byte (8-bit immediate)
    nnn: int     # Last 12 bits (12-bit address)


_GROUP_OPS = {
    0x1: Op.JP,
    0x2: Op.CALL,
    0x3: Op.SE_IMM,
    0x4: Op.SNE_IMM,
    0x5: Op.SE_REG,
    0x6: Op.LD_IMM,
    0x7: Op.ADD_IMM,
    0x9: Op.SNE_REG,
    0xA: Op.LD_I,
    0xB: Op.JP_V0,
    0xC: Op.RND,
    0xD: Op.DRW,
}

_ALU_OPS = {
    0x0: Op.LD_REG,
    0x1: Op.OR,
    0x2: Op.AND,
    0x3: Op.XOR,
    0x4: Op.ADD_REG,
    0x5: Op.SUB,
    0x6: Op.SHR,
    0x7: Op.SUBN,
    0xE: Op.SHL,
}

_KEY_OPS = {
    0x9E: Op.SKP,
    0xA1: Op.SKNP,
}

_MISC_OPS = {
    0x07: Op.LD_VX_DT,
    0x0A: Op.LD_KEY,
    0x15: Op.LD_DT,
    0x18: Op.LD_ST,
    0x1E: Op.ADD_I,
    0x29: Op.LD_FONT,
    0x33: Op.LD_BCD,
    0x55: Op.STORE,
    0x65: Op.LOAD,
}

# Register comparisons whose low nibble is reserved and must be zero
_ZERO_SUFFIX_OPS = (Op.SE_REG, Op.SNE_REG)

_MNEMONICS = {
    Op.SYS: "SYS 0x{nnn:03X}",
    Op.CLS: "CLS",
    Op.RET: "RET",
    Op.JP: "JP 0x{nnn:03X}",
    Op.CALL: "CALL 0x{nnn:03X}",
    Op.SE_IMM: "SE V{x:X}, 0x{nn:02X}",
    Op.SNE_IMM: "SNE V{x:X}, 0x{nn:02X}",
    Op.SE_REG: "SE V{x:X}, V{y:X}",
    Op.LD_IMM: "LD V{x:X}, 0x{nn:02X}",
    Op.ADD_IMM: "ADD V{x:X}, 0x{nn:02X}",
    Op.LD_REG: "LD V{x:X}, V{y:X}",
    Op.OR: "OR V{x:X}, V{y:X}",
    Op.AND: "AND V{x:X}, V{y:X}",
    Op.XOR: "XOR V{x:X}, V{y:X}",
    Op.ADD_REG: "ADD V{x:X}, V{y:X}",
    Op.SUB: "SUB V{x:X}, V{y:X}",
    Op.SHR: "SHR V{x:X}, V{y:X}",
    Op.SUBN: "SUBN V{x:X}, V{y:X}",
    Op.SHL: "SHL V{x:X}, V{y:X}",
    Op.SNE_REG: "SNE V{x:X}, V{y:X}",
    Op.LD_I: "LD I, 0x{nnn:03X}",
    Op.JP_V0: "JP V0, 0x{nnn:03X}",
    Op.RND: "RND V{x:X}, 0x{nn:02X}",
    Op.DRW: "DRW V{x:X}, V{y:X}, {n}",
    Op.SKP: "SKP V{x:X}",
    Op.SKNP: "SKNP V{x:X}",
    Op.LD_VX_DT: "LD V{x:X}, DT",
    Op.LD_KEY: "LD V{x:X}, K",
    Op.LD_DT: "LD DT, V{x:X}",
    Op.LD_ST: "LD ST, V{x:X}",
    Op.ADD_I: "ADD I, V{x:X}",
    Op.LD_FONT: "LD F, V{x:X}",
    Op.LD_BCD: "LD B, V{x:X}",
    Op.STORE: "LD [I], V{x:X}",
    Op.LOAD: "LD V{x:X}, [I]",
}


def classify(instruction: int) -> Optional[Op]:
    """Map a 16-bit instruction to its Op, or None when no instruction matches."""
    opcode = (instruction & 0xF000) >> 12
    if opcode == 0x0:
        if instruction == 0x00E0:
            return Op.CLS
        if instruction == 0x00EE:
            return Op.RET
        return Op.SYS
    if opcode == 0x8:
        return _ALU_OPS.get(instruction & 0x000F)
    if opcode == 0xE:
        return _KEY_OPS.get(instruction & 0x00FF)
    if opcode == 0xF:
        return _MISC_OPS.get(instruction & 0x00FF)
    return _GROUP_OPS[opcode]


def decode(instruction: int, pc: Optional[int] = None) -> DecodedInstruction:
    """Decode 16-bit instruction into components.

    Raises:
        DecodeError: No instruction is defined for this word.
        MalformedInstructionError: 5XY0/9XY0 with a nonzero low nibble.
        UnsupportedInstructionError: 0NNN other than 00E0 and 00EE.
    """
    instruction = int(instruction) & 0xFFFF
    op = classify(instruction)
    if op is None:
        raise DecodeError("Undefined instruction", opcode=instruction, pc=pc)
    if op is Op.SYS:
        raise UnsupportedInstructionError(
            f"No machine language routine at 0x{instruction & 0x0FFF:03X}", opcode=instruction, pc=pc
        )
    if op in _ZERO_SUFFIX_OPS and instruction & 0x000F:
        raise MalformedInstructionError(
            f"{(instruction & 0xF000) >> 12:X}XY0 instruction must end with 0", opcode=instruction, pc=pc
        )

    return DecodedInstruction(
        raw=instruction,
        op=op,
        opcode=(instruction & 0xF000) >> 12,
        x=(instruction & 0x0F00) >> 8,
        y=(instruction & 0x00F0) >> 4,
        n=instruction & 0x000F,
        nn=instruction & 0x00FF,
        nnn=instruction & 0x0FFF
    )


def disassemble(instruction: int) -> str:
    """Render an instruction as assembly text; undefined words become ``DW``."""
    instruction = int(instruction) & 0xFFFF
    op = classify(instruction)
    if op is None or (op in _ZERO_SUFFIX_OPS and instruction & 0x000F):
        return f"DW 0x{instruction:04X}"
    return _MNEMONICS[op].format(
        x=(instruction & 0x0F00) >> 8,
        y=(instruction & 0x00F0) >> 4,
        n=instruction & 0x000F,
        nn=instruction & 0x00FF,
        nnn=instruction & 0x0FFF,
    )
