"""CHIP-8 ALU operations (8xxx)."""

import jax
import jax.numpy as jnp
from chip8vm.state import EmulatorState
from chip8vm.constants import FLAG_REGISTER


def alu_set(vx: int, vy: int) -> int:
    """8XY0 - Set: VX = VY."""
    return vy


def alu_or(vx: int, vy: int) -> int:
    """8XY1 - Binary OR: VX |= VY."""
    return vx | vy


def alu_and(vx: int, vy: int) -> int:
    """8XY2 - Binary AND: VX &= VY."""
    return vx & vy


def alu_xor(vx: int, vy: int) -> int:
    """8XY3 - Logical XOR: VX ^= VY."""
    return vx ^ vy


def alu_add(vx: int, vy: int) -> tuple[int, int]:
    """8XY4 - Add: VX += VY, set carry flag."""
    result = jnp.astype(vx, jnp.int32) + vy
    carry = jnp.astype(result > 255, jnp.uint8)
    return jnp.astype(result & 0xFF, jnp.uint8), carry


def alu_sub_xy(vx: int, vy: int) -> tuple[int, int]:
    """8XY5 - Subtract: VX -= VY, VF = 1 when no borrow."""
    no_borrow = jnp.astype(vx >= vy, jnp.uint8)
    result = (vx - vy) & 0xFF
    return result, no_borrow


def alu_shift_right(vx: int, vy: int) -> tuple[int, int]:
    """8XY6 - Shift right: VX = VY >> 1."""
    shifted_bit = vy & 1
    result = vy >> 1
    return result, shifted_bit


def alu_sub_yx(vx: int, vy: int) -> tuple[int, int]:
    """8XY7 - Subtract: VX = VY - VX, VF = 1 when no borrow."""
    no_borrow = jnp.astype(vy >= vx, jnp.uint8)
    result = (vy - vx) & 0xFF
    return result, no_borrow


def alu_shift_left(vx: int, vy: int) -> tuple[int, int]:
    """8XYE - Shift left: VX = VY << 1."""
    shifted_bit = (vy & 0x80) >> 7
    result = (vy << 1) & 0xFF
    return result, shifted_bit


def make_bitwise_instruction(operation):
    """Handler for an 8XYN operation that leaves VF alone."""
    def execute_operation(state: EmulatorState, instruction) -> EmulatorState:
        result = operation(state.V[instruction.x], state.V[instruction.y])
        return state.replace(V=state.V.at[instruction.x].set(result))
    return jax.jit(execute_operation)


def make_flagged_instruction(operation):
    """Handler for an 8XYN operation that reports into VF.

    The flag is written after the result, so it survives when X is F.
    """
    def execute_operation(state: EmulatorState, instruction) -> EmulatorState:
        result, vf = operation(state.V[instruction.x], state.V[instruction.y])
        new_V = state.V.at[instruction.x].set(jnp.astype(result, jnp.uint8))
        new_V = new_V.at[FLAG_REGISTER].set(jnp.astype(vf, jnp.uint8))
        return state.replace(V=new_V)
    return jax.jit(execute_operation)


execute_set_register = make_bitwise_instruction(alu_set)
execute_or = make_bitwise_instruction(alu_or)
execute_and = make_bitwise_instruction(alu_and)
execute_xor = make_bitwise_instruction(alu_xor)
execute_add_registers = make_flagged_instruction(alu_add)
execute_sub = make_flagged_instruction(alu_sub_xy)
execute_shift_right = make_flagged_instruction(alu_shift_right)
execute_sub_reverse = make_flagged_instruction(alu_sub_yx)
execute_shift_left = make_flagged_instruction(alu_shift_left)
