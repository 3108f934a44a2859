"""CHIP-8 system instructions (0x0xxx)."""

import jax
import jax.numpy as jnp
from chip8vm.state import EmulatorState
from chip8vm.decode import ClearScreen, Return
from chip8vm.stack import pop


@jax.jit
def execute_clear_screen(state: EmulatorState, instruction: ClearScreen) -> EmulatorState:
    """00E0 - Clear display."""
    return state.replace(display=jnp.zeros_like(state.display))


@jax.jit
def execute_return(state: EmulatorState, instruction: Return) -> EmulatorState:
    """00EE - Return from subroutine."""
    stack, address = pop(state.stack)
    return state.replace(stack=stack, pc=address)
