"""Test configuration and fixtures for CHIP-8 machine tests."""

import pytest
import jax.numpy as jnp
from chip8vm import create_state
from chip8vm.constants import SCREEN_WIDTH


@pytest.fixture
def fresh_state():
    """Provide a fresh emulator state for each test."""
    return create_state()


def setup_sprite_in_memory(state, address, sprite_bytes):
    """Helper to put sprite data in memory."""
    return state.replace(
        memory=state.memory.at[address:address+len(sprite_bytes)].set(
            jnp.array(sprite_bytes, dtype=jnp.uint8)
        )
    )


def set_registers(state, **registers):
    """Helper to set registers by name, e.g. set_registers(state, V1=5, VF=1)."""
    V = state.V
    for name, value in registers.items():
        V = V.at[int(name[1:], 16)].set(value)
    return state.replace(V=V)


def pixel(state, x, y):
    """Read pixel (x, y) from the flat row-major display."""
    return int(state.display[y * SCREEN_WIDTH + x])
