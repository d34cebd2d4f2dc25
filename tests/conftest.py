"""Test configuration and fixtures for CHIP-8 emulator tests."""

import pytest
import jax.numpy as jnp
from vipax import create_state, Machine, MachineConfig, Quirks
from vipax.logging import MachineLogger


@pytest.fixture
def fresh_state():
    """Provide a fresh emulator state for each test."""
    return create_state()


@pytest.fixture
def modern_state():
    """Provide a fresh state with the modern quirk set."""
    return create_state().replace(quirks=Quirks.modern())


@pytest.fixture
def cosmac_state():
    """Provide a fresh state with the COSMAC VIP quirk set."""
    return create_state().replace(quirks=Quirks.cosmac())


@pytest.fixture
def quiet_logger():
    """Logger that only reports errors."""
    return MachineLogger(log_level="CRITICAL", use_colors=False)


@pytest.fixture
def machine(quiet_logger):
    """Provide a machine with default configuration."""
    return Machine(MachineConfig(), logger=quiet_logger)


def setup_sprite_in_memory(state, address, sprite_bytes):
    """Helper to put sprite data in memory."""
    return state.replace(
        memory=state.memory.at[address:address+len(sprite_bytes)].set(
            jnp.array(sprite_bytes, dtype=jnp.uint8)
        )
    )


def program(*instructions):
    """Assemble instruction words into a big-endian program image."""
    return b"".join(instruction.to_bytes(2, "big") for instruction in instructions)
