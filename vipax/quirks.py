"""Behavioural variation points between CHIP-8 interpreters."""

from flax.struct import dataclass


@dataclass
class Quirks:
    """Selectable CHIP-8 quirks.

    The defaults describe this machine: shifts read VY, SUB/SUBN set VF when no
    borrow occurs, FX55/FX65 leave I alone, BNNN offsets by V0 and any memory
    access past the end of the address space is a fatal error.

    Attributes:
        shift_in_place: 8XY6/8XYE shift VX itself instead of copying VY.
        borrow_flag_set_on_borrow: Invert the SUB/SUBN flag polarity (VF=1 on borrow).
        load_store_increments_index: FX55/FX65 leave I at I + X + 1.
        jump_with_vx: BXNN jumps to XNN + VX instead of NNN + V0.
        wrap_memory: Wrap out-of-range addresses modulo the memory size
            instead of raising MemoryAccessError.
    """
    shift_in_place: bool = False
    borrow_flag_set_on_borrow: bool = False
    load_store_increments_index: bool = False
    jump_with_vx: bool = False
    wrap_memory: bool = False

    @classmethod
    def cosmac(cls) -> "Quirks":
        """Original COSMAC VIP interpreter behaviour."""
        return cls(load_store_increments_index=True)

    @classmethod
    def modern(cls) -> "Quirks":
        """CHIP-48 / SUPER-CHIP behaviour most modern ROMs expect."""
        return cls(shift_in_place=True, jump_with_vx=True)


PRESETS = {
    "default": Quirks,
    "cosmac": Quirks.cosmac,
    "modern": Quirks.modern,
}


def get_quirks(name: str) -> Quirks:
    """Build a quirk set from its preset name."""
    if name not in PRESETS:
        raise ValueError(f"Unknown quirk preset '{name}'. Available: {list(PRESETS.keys())}")
    return PRESETS[name]()
