"""CHIP-8 virtual machine package."""

from chip8vm.state import EmulatorState, create_state
from chip8vm.emulator import execute, fetch, load_rom, step, tick_timers, create_machine_state
from chip8vm.decode import Instruction, decode
from chip8vm.errors import Chip8Error, UnknownOpcode, OutOfBounds, StackOverflow, StackUnderflow, MachineHalted
from chip8vm.machine import VirtualMachine
from chip8vm.keys import Key
from chip8vm.constants import PROGRAM_START, FONT_START, SCREEN_WIDTH, SCREEN_HEIGHT
from chip8vm.rendering import chip8_display_to_rgb, create_color_scheme, save_screenshot

__all__ = [
    "EmulatorState",
    "create_state",
    "create_machine_state",
    "fetch",
    "execute",
    "step",
    "tick_timers",
    "load_rom",
    "Instruction",
    "decode",
    "Chip8Error",
    "UnknownOpcode",
    "OutOfBounds",
    "StackOverflow",
    "StackUnderflow",
    "MachineHalted",
    "VirtualMachine",
    "Key",
    "PROGRAM_START",
    "FONT_START",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "chip8_display_to_rgb",
    "create_color_scheme",
    "save_screenshot",
]
