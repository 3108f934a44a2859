"""CHIP-8 memory and register operations."""

import jax
import jax.numpy as jnp
from chip8vm.state import EmulatorState
from chip8vm.decode import AddConst, RandMask, SetConst, SetIndex


@jax.jit
def execute_set(state: EmulatorState, instruction: SetConst) -> EmulatorState:
    """6XNN - Set VX = NN."""
    return state.replace(V=state.V.at[instruction.x].set(instruction.nn))


@jax.jit
def execute_add(state: EmulatorState, instruction: AddConst) -> EmulatorState:
    """7XNN - Add NN to VX, wrapping, VF untouched."""
    return state.replace(V=state.V.at[instruction.x].add(instruction.nn))


@jax.jit
def execute_set_index(state: EmulatorState, instruction: SetIndex) -> EmulatorState:
    """ANNN - Set I = NNN."""
    return state.replace(I=jnp.astype(instruction.nnn, jnp.uint16))


@jax.jit
def execute_random(state: EmulatorState, instruction: RandMask) -> EmulatorState:
    """CXNN - Set VX = random & NN."""
    key, subkey = jax.random.split(state.rng)
    random_value = jax.random.randint(subkey, shape=(), minval=0, maxval=256, dtype=jnp.int32)
    masked = jnp.astype(random_value & instruction.nn, jnp.uint8)
    return state.replace(V=state.V.at[instruction.x].set(masked), rng=key)
