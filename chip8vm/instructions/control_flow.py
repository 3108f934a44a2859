"""CHIP-8 control flow instructions."""

import jax
import jax.lax
import jax.numpy as jnp
from chip8vm.state import EmulatorState
from chip8vm.decode import Call, Jump, JumpPlusV0, SkipKeyNotPressed, SkipKeyPressed
from chip8vm.constants import NUM_KEYS
from chip8vm.stack import push


@jax.jit
def execute_jump(state: EmulatorState, instruction: Jump) -> EmulatorState:
    """1NNN - Jump to address NNN."""
    return state.replace(pc=jnp.astype(instruction.nnn, jnp.uint16))


@jax.jit
def execute_call(state: EmulatorState, instruction: Call) -> EmulatorState:
    """2NNN - Call subroutine at NNN."""
    state = state.replace(stack=push(state.stack, state.pc))
    return state.replace(pc=jnp.astype(instruction.nnn, jnp.uint16))


@jax.jit
def execute_jump_plus_v0(state: EmulatorState, instruction: JumpPlusV0) -> EmulatorState:
    """BNNN - Jump to address NNN + V0.

    The target is not masked to 12 bits; a target past the end of memory
    faults on the next fetch.
    """
    jump_address = jnp.astype(instruction.nnn, jnp.uint16) + jnp.astype(state.V[0], jnp.uint16)
    return state.replace(pc=jump_address)


def make_skip_instruction(condition_fn):
    """Factory for skip instructions.

    Fetch already moved past this instruction, so skipping is one more step
    of 2 on top of it.
    """
    def skip_instruction(state: EmulatorState, instruction) -> EmulatorState:
        condition = condition_fn(state, instruction)
        return jax.lax.cond(
            condition,
            lambda s: s.replace(pc=s.pc + 2),
            lambda s: s,
            state
        )
    return jax.jit(skip_instruction)


def key_pressed(state: EmulatorState, register: int) -> jnp.ndarray:
    """Whether the key named by V[register] is down. Values above 0xF name no key."""
    key = state.V[register]
    return (key < NUM_KEYS) & state.keypad[key & 0xF]


def key_released(state: EmulatorState, register: int) -> jnp.ndarray:
    """Whether the key named by V[register] is up. Values above 0xF name no key."""
    key = state.V[register]
    return (key < NUM_KEYS) & ~state.keypad[key & 0xF]


execute_skip_if_equal_immediate = make_skip_instruction(
    lambda state, inst: state.V[inst.x] == inst.nn
)

execute_skip_if_not_equal_immediate = make_skip_instruction(
    lambda state, inst: state.V[inst.x] != inst.nn
)

execute_skip_if_equal_register = make_skip_instruction(
    lambda state, inst: state.V[inst.x] == state.V[inst.y]
)

execute_skip_if_not_equal_register = make_skip_instruction(
    lambda state, inst: state.V[inst.x] != state.V[inst.y]
)

execute_skip_if_key_pressed = make_skip_instruction(
    lambda state, inst: key_pressed(state, inst.x)
)

execute_skip_if_key_not_pressed = make_skip_instruction(
    lambda state, inst: key_released(state, inst.x)
)
