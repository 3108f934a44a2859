"""Main CHIP-8 execution engine.

The engine is a set of pure functions over :class:`EmulatorState`:
``fetch`` reads the word at the program counter and moves past it,
``execute`` validates and applies one decoded instruction, and ``step``
chains the two. Faults are raised before any state is touched, so the state
handed in is still the last good one when an error propagates.
"""

from typing import Union

import jax
import jax.numpy as jnp
from chip8vm.state import EmulatorState, create_state
from chip8vm.decode import (
    INSTRUCTION_TYPES, Add, AddConst, AddToIndex, And, AwaitKey, Call, ClearScreen, Draw, DumpRegs,
    GetDelay, Instruction, Jump, JumpPlusV0, LoadRegs, Or, RandMask, Return, SetConst, SetDelay, SetIndex,
    SetIndexFont, SetReg, SetSound, ShiftLeft, ShiftRight, SkipEqConst, SkipEqReg, SkipKeyNotPressed,
    SkipKeyPressed, SkipNeqConst, SkipNeqReg, StoreBCD, Sub, SubReverse, Xor, decode,
)
from chip8vm.constants import MAX_ROM_SIZE, MEMORY_SIZE, PROGRAM_START, STACK_SIZE
from chip8vm.errors import OutOfBounds, StackOverflow, StackUnderflow
from chip8vm.stack import depth
from chip8vm.instructions.system import execute_clear_screen, execute_return
from chip8vm.instructions.control_flow import (
    execute_jump, execute_call, execute_jump_plus_v0, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_skip_if_key_pressed, execute_skip_if_key_not_pressed,
)
from chip8vm.instructions.alu import (
    execute_set_register, execute_or, execute_and, execute_xor, execute_add_registers,
    execute_sub, execute_shift_right, execute_sub_reverse, execute_shift_left,
)
from chip8vm.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from chip8vm.instructions.display import execute_display
from chip8vm.instructions.misc import (
    execute_get_delay_timer, execute_wait_for_key, execute_set_delay_timer, execute_set_sound_timer,
    execute_add_to_index, execute_font_character, execute_bcd_conversion, execute_store_registers,
    execute_load_registers,
)


INSTRUCTION_HANDLERS = {
    ClearScreen: execute_clear_screen,
    Return: execute_return,
    Jump: execute_jump,
    Call: execute_call,
    SkipEqConst: execute_skip_if_equal_immediate,
    SkipNeqConst: execute_skip_if_not_equal_immediate,
    SkipEqReg: execute_skip_if_equal_register,
    SetConst: execute_set,
    AddConst: execute_add,
    SetReg: execute_set_register,
    Or: execute_or,
    And: execute_and,
    Xor: execute_xor,
    Add: execute_add_registers,
    Sub: execute_sub,
    ShiftRight: execute_shift_right,
    SubReverse: execute_sub_reverse,
    ShiftLeft: execute_shift_left,
    SkipNeqReg: execute_skip_if_not_equal_register,
    SetIndex: execute_set_index,
    JumpPlusV0: execute_jump_plus_v0,
    RandMask: execute_random,
    Draw: execute_display,
    SkipKeyPressed: execute_skip_if_key_pressed,
    SkipKeyNotPressed: execute_skip_if_key_not_pressed,
    GetDelay: execute_get_delay_timer,
    AwaitKey: execute_wait_for_key,
    SetDelay: execute_set_delay_timer,
    SetSound: execute_set_sound_timer,
    AddToIndex: execute_add_to_index,
    SetIndexFont: execute_font_character,
    StoreBCD: execute_bcd_conversion,
    DumpRegs: execute_store_registers,
    LoadRegs: execute_load_registers,
}

_missing = set(INSTRUCTION_TYPES) - set(INSTRUCTION_HANDLERS)
assert not _missing, f"No handler for {sorted(cls.__name__ for cls in _missing)}"

# Instructions whose effect is visible on screen
SCREEN_INSTRUCTIONS = (ClearScreen, Draw)


def _pack_u16(high: jnp.uint8, low: jnp.uint8) -> jnp.uint16:
    """Pack two bytes into uint16."""
    return (high.astype(jnp.uint16) << 8) | low.astype(jnp.uint16)


def _check_range(start: int, count: int) -> None:
    """Raise OutOfBounds unless ``count`` bytes from ``start`` are all addressable."""
    if count > 0 and start + count > MEMORY_SIZE:
        raise OutOfBounds(max(start, MEMORY_SIZE))


def fetch(state: EmulatorState) -> tuple[EmulatorState, int]:
    """Fetch next instruction word and move the program counter past it."""
    pc = int(state.pc)
    _check_range(pc, 2)
    instruction = _pack_u16(state.memory[pc], state.memory[pc + 1])
    return state.replace(pc=state.pc + 2), int(instruction)


def validate(state: EmulatorState, instruction: Instruction) -> None:
    """Check the memory and stack accesses ``instruction`` is about to make."""
    if isinstance(instruction, Call):
        if depth(state.stack) >= STACK_SIZE:
            raise StackOverflow(instruction.nnn)
    elif isinstance(instruction, Return):
        if depth(state.stack) == 0:
            raise StackUnderflow()
    elif isinstance(instruction, Draw):
        _check_range(int(state.I), instruction.n)
    elif isinstance(instruction, StoreBCD):
        _check_range(int(state.I), 3)
    elif isinstance(instruction, (DumpRegs, LoadRegs)):
        _check_range(int(state.I), instruction.x + 1)


def execute(state: EmulatorState, instruction: Union[Instruction, int]) -> EmulatorState:
    """Execute a single CHIP-8 instruction.

    ``instruction`` may be a decoded instruction or a raw 16-bit word. The
    program counter is expected to already point past it, as after ``fetch``.
    """
    if not isinstance(instruction, Instruction):
        instruction = decode(instruction)
    validate(state, instruction)
    return INSTRUCTION_HANDLERS[type(instruction)](state, instruction)


def step(state: EmulatorState) -> tuple[EmulatorState, Instruction]:
    """Fetch, decode and execute the instruction at the program counter."""
    state, word = fetch(state)
    instruction = decode(word)
    return execute(state, instruction), instruction


@jax.jit
def tick_timers(state: EmulatorState) -> EmulatorState:
    """Decrement the delay and sound timers by one, stopping at zero."""
    return state.replace(
        delay_timer=jnp.where(state.delay_timer > 0, state.delay_timer - 1, state.delay_timer),
        sound_timer=jnp.where(state.sound_timer > 0, state.sound_timer - 1, state.sound_timer),
    )


def load_rom(state: EmulatorState, rom_data: bytes) -> EmulatorState:
    """Copy ROM bytes into memory starting at 0x200."""
    if len(rom_data) > MAX_ROM_SIZE:
        raise ValueError(f"ROM is {len(rom_data)} bytes, at most {MAX_ROM_SIZE} fit in memory")
    if not rom_data:
        return state
    rom_array = jnp.array(list(rom_data), dtype=jnp.uint8)
    new_memory = state.memory.at[PROGRAM_START:PROGRAM_START + len(rom_data)].set(rom_array)
    return state.replace(memory=new_memory)


def create_machine_state(rom_data: bytes = b"", rng: jax.random.PRNGKey = None) -> EmulatorState:
    """Fresh state with the font and ``rom_data`` loaded."""
    state = create_state() if rng is None else create_state(rng)
    return load_rom(state, rom_data)
