"""CHIP-8 miscellaneous instructions (Fxxx)."""

import jax
import jax.numpy as jnp
from chip8vm.state import EmulatorState
from chip8vm.decode import (
    AddToIndex, AwaitKey, DumpRegs, GetDelay, LoadRegs, SetDelay, SetIndexFont, SetSound, StoreBCD,
)
from chip8vm.constants import ADDRESS_MASK, FLAG_REGISTER, FONT_GLYPH_SIZE, FONT_START, NUM_REGISTERS
from chip8vm.instructions.control_flow import key_released


@jax.jit
def execute_get_delay_timer(state: EmulatorState, instruction: GetDelay) -> EmulatorState:
    """FX07 - Set VX to delay timer value."""
    return state.replace(V=state.V.at[instruction.x].set(state.delay_timer))


@jax.jit
def execute_set_delay_timer(state: EmulatorState, instruction: SetDelay) -> EmulatorState:
    """FX15 - Set delay timer to VX."""
    return state.replace(delay_timer=state.V[instruction.x])


@jax.jit
def execute_set_sound_timer(state: EmulatorState, instruction: SetSound) -> EmulatorState:
    """FX18 - Set sound timer to VX."""
    return state.replace(sound_timer=state.V[instruction.x])


@jax.jit
def execute_add_to_index(state: EmulatorState, instruction: AddToIndex) -> EmulatorState:
    """FX1E - Add VX to I register.

    VF reports whether I left the 12-bit address range. I itself is not
    wrapped; a following memory access through it faults instead.
    """
    new_i = state.I + jnp.astype(state.V[instruction.x], jnp.uint16)
    overflow_flag = jnp.astype(new_i > ADDRESS_MASK, jnp.uint8)
    return state.replace(
        I=new_i,
        V=state.V.at[FLAG_REGISTER].set(overflow_flag)
    )


@jax.jit
def execute_wait_for_key(state: EmulatorState, instruction: AwaitKey) -> EmulatorState:
    """FX0A - Hold the program counter until the key named by VX is pressed.

    Re-executed on every step while waiting; timers and input keep running.
    """
    waiting = key_released(state, instruction.x)
    return state.replace(pc=jnp.where(waiting, state.pc - 2, state.pc))


@jax.jit
def execute_font_character(state: EmulatorState, instruction: SetIndexFont) -> EmulatorState:
    """FX29 - Set I to location of sprite for digit VX."""
    digit = jnp.astype(state.V[instruction.x] & 0xF, jnp.uint16)
    return state.replace(I=jnp.astype(FONT_START + digit * FONT_GLYPH_SIZE, jnp.uint16))


@jax.jit
def execute_bcd_conversion(state: EmulatorState, instruction: StoreBCD) -> EmulatorState:
    """FX33 - Store BCD representation of VX at I, I+1, I+2."""
    value = state.V[instruction.x]

    digits = jnp.array([
        value // 100,
        (value // 10) % 10,
        value % 10
    ], dtype=jnp.uint8)

    indices = jnp.arange(3) + jnp.astype(state.I, jnp.int32)
    return state.replace(memory=state.memory.at[indices].set(digits))


@jax.jit
def execute_store_registers(state: EmulatorState, instruction: DumpRegs) -> EmulatorState:
    """FX55 - Store V0 through VX in memory starting at I. I is unchanged."""
    register_mask = jnp.arange(NUM_REGISTERS) <= instruction.x
    base_indices = jnp.astype(state.I, jnp.int32) + jnp.arange(NUM_REGISTERS)
    current_memory_values = state.memory.at[base_indices].get(mode="clip")
    new_memory_values = jnp.where(register_mask, state.V, current_memory_values)
    new_memory = state.memory.at[base_indices].set(new_memory_values, mode="drop")
    return state.replace(memory=new_memory)


@jax.jit
def execute_load_registers(state: EmulatorState, instruction: LoadRegs) -> EmulatorState:
    """FX65 - Load V0 through VX from memory starting at I. I is unchanged."""
    register_mask = jnp.arange(NUM_REGISTERS) <= instruction.x
    base_indices = jnp.astype(state.I, jnp.int32) + jnp.arange(NUM_REGISTERS)
    memory_values = state.memory.at[base_indices].get(mode="clip")
    return state.replace(V=jnp.where(register_mask, memory_values, state.V))
