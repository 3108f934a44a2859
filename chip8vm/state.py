"""CHIP-8 machine state structures."""

import jax
import jax.numpy as jnp
from dataclasses import field

from flax.struct import dataclass, PyTreeNode

from chip8vm.constants import (
    FONT_DATA, FONT_START, MEMORY_SIZE, NUM_KEYS, NUM_REGISTERS, PROGRAM_START, SCREEN_SIZE, STACK_SIZE,
)


@dataclass(frozen=True)
class StackState:
    """Return addresses for subroutine calls."""
    data: jnp.ndarray = field(default_factory=lambda: jnp.zeros(STACK_SIZE, dtype=jnp.uint16))
    pointer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.int32))


class EmulatorState(PyTreeNode):
    """Complete CHIP-8 machine state.

    The display is a flat, row-major ``(64 * 32,)`` boolean array: pixel
    ``(x, y)`` lives at ``y * 64 + x``. The keypad holds one flag per logical
    key and is the pressed-key set read by the key instructions.
    """
    rng: jax.random.PRNGKey
    memory: jnp.ndarray = field(default_factory=lambda: jnp.zeros(MEMORY_SIZE, dtype=jnp.uint8))
    pc: jnp.ndarray = field(default_factory=lambda: jnp.astype(PROGRAM_START, jnp.uint16))
    display: jnp.ndarray = field(default_factory=lambda: jnp.zeros(SCREEN_SIZE, dtype=jnp.bool_))
    stack: StackState = StackState()
    delay_timer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    sound_timer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    keypad: jnp.ndarray = field(default_factory=lambda: jnp.zeros(NUM_KEYS, dtype=jnp.bool_))
    V: jnp.ndarray = field(default_factory=lambda: jnp.zeros(NUM_REGISTERS, dtype=jnp.uint8))
    I: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint16))


def create_state(rng: jax.random.PRNGKey = jax.random.PRNGKey(0)) -> EmulatorState:
    """Create initial machine state with font data loaded."""
    state = EmulatorState(rng)
    return state.replace(memory=state.memory.at[FONT_START:FONT_START + len(FONT_DATA)].set(FONT_DATA))
