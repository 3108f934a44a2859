"""CHIP-8 machine faults.

Every error here is fatal for the current run: a well-formed program never
produces one, so the machine halts instead of skipping the faulting
instruction.
"""


class Chip8Error(Exception):
    """Base class for machine faults."""


class UnknownOpcode(Chip8Error):
    """No instruction pattern matches the fetched word."""

    def __init__(self, word: int):
        self.word = word
        super().__init__(f"Unknown opcode 0x{word:04X}")


class OutOfBounds(Chip8Error):
    """A fetch or memory access would leave the 4096-byte address space."""

    def __init__(self, address: int):
        self.address = address
        super().__init__(f"Address 0x{address:04X} is out of bounds")


class StackOverflow(Chip8Error):
    """Subroutine call with every stack slot in use."""

    def __init__(self, address: int):
        self.address = address
        super().__init__(f"Stack overflow calling 0x{address:03X}")


class StackUnderflow(Chip8Error):
    """Return with an empty call stack."""

    def __init__(self):
        super().__init__("Return with empty call stack")


class MachineHalted(Chip8Error):
    """The machine stopped on an earlier fault and must be reset."""

    def __init__(self, cause: Chip8Error):
        self.cause = cause
        super().__init__(f"Machine halted: {cause}")
