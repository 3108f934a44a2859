"""CHIP-8 instruction decoding.

A 16-bit word is split into four nibbles and matched against the documented
opcode patterns. Each pattern decodes to its own frozen dataclass carrying only
the operands that opcode uses:

    x, y  register indices (second and third nibble)
    n     4-bit constant (fourth nibble)
    nn    8-bit constant (low byte)
    nnn   12-bit address (low 12 bits)
"""

import dataclasses
from typing import Callable, Dict, Optional

from chex import dataclass

from chip8vm.errors import UnknownOpcode


class Instruction:
    """Base class of every decoded instruction."""

    mnemonic: str = ""

    def operands(self) -> dict:
        return {field.name: getattr(self, field.name) for field in dataclasses.fields(self)}

    def __str__(self) -> str:
        return self.mnemonic.format(**self.operands())


# 0xxx - system

@dataclass(frozen=True)
class ClearScreen(Instruction):
    """00E0 - Clear the display."""
    mnemonic = "CLS"


@dataclass(frozen=True)
class Return(Instruction):
    """00EE - Return from subroutine."""
    mnemonic = "RET"


# Flow control

@dataclass(frozen=True)
class Jump(Instruction):
    """1NNN - Jump to NNN."""
    nnn: int
    mnemonic = "JP 0x{nnn:03X}"


@dataclass(frozen=True)
class Call(Instruction):
    """2NNN - Call subroutine at NNN."""
    nnn: int
    mnemonic = "CALL 0x{nnn:03X}"


@dataclass(frozen=True)
class SkipEqConst(Instruction):
    """3XNN - Skip next if VX == NN."""
    x: int
    nn: int
    mnemonic = "SE V{x:X}, 0x{nn:02X}"


@dataclass(frozen=True)
class SkipNeqConst(Instruction):
    """4XNN - Skip next if VX != NN."""
    x: int
    nn: int
    mnemonic = "SNE V{x:X}, 0x{nn:02X}"


@dataclass(frozen=True)
class SkipEqReg(Instruction):
    """5XY0 - Skip next if VX == VY."""
    x: int
    y: int
    mnemonic = "SE V{x:X}, V{y:X}"


@dataclass(frozen=True)
class SkipNeqReg(Instruction):
    """9XY0 - Skip next if VX != VY."""
    x: int
    y: int
    mnemonic = "SNE V{x:X}, V{y:X}"


@dataclass(frozen=True)
class JumpPlusV0(Instruction):
    """BNNN - Jump to NNN + V0."""
    nnn: int
    mnemonic = "JP V0, 0x{nnn:03X}"


# Registers

@dataclass(frozen=True)
class SetConst(Instruction):
    """6XNN - VX = NN."""
    x: int
    nn: int
    mnemonic = "LD V{x:X}, 0x{nn:02X}"


@dataclass(frozen=True)
class AddConst(Instruction):
    """7XNN - VX += NN, no carry."""
    x: int
    nn: int
    mnemonic = "ADD V{x:X}, 0x{nn:02X}"


@dataclass(frozen=True)
class SetReg(Instruction):
    """8XY0 - VX = VY."""
    x: int
    y: int
    mnemonic = "LD V{x:X}, V{y:X}"


@dataclass(frozen=True)
class Or(Instruction):
    """8XY1 - VX |= VY."""
    x: int
    y: int
    mnemonic = "OR V{x:X}, V{y:X}"


@dataclass(frozen=True)
class And(Instruction):
    """8XY2 - VX &= VY."""
    x: int
    y: int
    mnemonic = "AND V{x:X}, V{y:X}"


@dataclass(frozen=True)
class Xor(Instruction):
    """8XY3 - VX ^= VY."""
    x: int
    y: int
    mnemonic = "XOR V{x:X}, V{y:X}"


@dataclass(frozen=True)
class Add(Instruction):
    """8XY4 - VX += VY, VF = carry."""
    x: int
    y: int
    mnemonic = "ADD V{x:X}, V{y:X}"


@dataclass(frozen=True)
class Sub(Instruction):
    """8XY5 - VX -= VY, VF = not borrow."""
    x: int
    y: int
    mnemonic = "SUB V{x:X}, V{y:X}"


@dataclass(frozen=True)
class ShiftRight(Instruction):
    """8XY6 - VX = VY >> 1, VF = shifted out bit."""
    x: int
    y: int
    mnemonic = "SHR V{x:X}, V{y:X}"


@dataclass(frozen=True)
class SubReverse(Instruction):
    """8XY7 - VX = VY - VX, VF = not borrow."""
    x: int
    y: int
    mnemonic = "SUBN V{x:X}, V{y:X}"


@dataclass(frozen=True)
class ShiftLeft(Instruction):
    """8XYE - VX = VY << 1, VF = shifted out bit."""
    x: int
    y: int
    mnemonic = "SHL V{x:X}, V{y:X}"


# Memory, random and display

@dataclass(frozen=True)
class SetIndex(Instruction):
    """ANNN - I = NNN."""
    nnn: int
    mnemonic = "LD I, 0x{nnn:03X}"


@dataclass(frozen=True)
class RandMask(Instruction):
    """CXNN - VX = random byte & NN."""
    x: int
    nn: int
    mnemonic = "RND V{x:X}, 0x{nn:02X}"


@dataclass(frozen=True)
class Draw(Instruction):
    """DXYN - Draw an 8xN sprite from I at (VX, VY)."""
    x: int
    y: int
    n: int
    mnemonic = "DRW V{x:X}, V{y:X}, {n}"


# Keypad

@dataclass(frozen=True)
class SkipKeyPressed(Instruction):
    """EX9E - Skip next if key VX is pressed."""
    x: int
    mnemonic = "SKP V{x:X}"


@dataclass(frozen=True)
class SkipKeyNotPressed(Instruction):
    """EXA1 - Skip next if key VX is not pressed."""
    x: int
    mnemonic = "SKNP V{x:X}"


# Fxxx

@dataclass(frozen=True)
class GetDelay(Instruction):
    """FX07 - VX = delay timer."""
    x: int
    mnemonic = "LD V{x:X}, DT"


@dataclass(frozen=True)
class AwaitKey(Instruction):
    """FX0A - Hold the program counter until key VX is pressed."""
    x: int
    mnemonic = "LD V{x:X}, K"


@dataclass(frozen=True)
class SetDelay(Instruction):
    """FX15 - Delay timer = VX."""
    x: int
    mnemonic = "LD DT, V{x:X}"


@dataclass(frozen=True)
class SetSound(Instruction):
    """FX18 - Sound timer = VX."""
    x: int
    mnemonic = "LD ST, V{x:X}"


@dataclass(frozen=True)
class AddToIndex(Instruction):
    """FX1E - I += VX, VF = 1 if I leaves 12 bits."""
    x: int
    mnemonic = "ADD I, V{x:X}"


@dataclass(frozen=True)
class SetIndexFont(Instruction):
    """FX29 - I = address of the font glyph for digit VX."""
    x: int
    mnemonic = "LD F, V{x:X}"


@dataclass(frozen=True)
class StoreBCD(Instruction):
    """FX33 - Store decimal digits of VX at I, I+1, I+2."""
    x: int
    mnemonic = "LD B, V{x:X}"


@dataclass(frozen=True)
class DumpRegs(Instruction):
    """FX55 - Store V0..VX at I..I+X."""
    x: int
    mnemonic = "LD [I], V{x:X}"


@dataclass(frozen=True)
class LoadRegs(Instruction):
    """FX65 - Load V0..VX from I..I+X."""
    x: int
    mnemonic = "LD V{x:X}, [I]"


INSTRUCTION_TYPES = (
    ClearScreen, Return, Jump, Call, SkipEqConst, SkipNeqConst, SkipEqReg,
    SetConst, AddConst, SetReg, Or, And, Xor, Add, Sub, ShiftRight,
    SubReverse, ShiftLeft, SkipNeqReg, SetIndex, JumpPlusV0, RandMask, Draw,
    SkipKeyPressed, SkipKeyNotPressed, GetDelay, AwaitKey, SetDelay, SetSound,
    AddToIndex, SetIndexFont, StoreBCD, DumpRegs, LoadRegs,
)

_ALU_OPERATIONS = {
    0x0: SetReg,
    0x1: Or,
    0x2: And,
    0x3: Xor,
    0x4: Add,
    0x5: Sub,
    0x6: ShiftRight,
    0x7: SubReverse,
    0xE: ShiftLeft,
}

_KEY_OPERATIONS = {
    0x9E: SkipKeyPressed,
    0xA1: SkipKeyNotPressed,
}

_MISC_OPERATIONS = {
    0x07: GetDelay,
    0x0A: AwaitKey,
    0x15: SetDelay,
    0x18: SetSound,
    0x1E: AddToIndex,
    0x29: SetIndexFont,
    0x33: StoreBCD,
    0x55: DumpRegs,
    0x65: LoadRegs,
}

_SYSTEM_OPERATIONS = {
    0x00E0: ClearScreen,
    0x00EE: Return,
}


def _decode_system(word, x, y, n, nn, nnn):
    instruction_type = _SYSTEM_OPERATIONS.get(word)
    return instruction_type() if instruction_type else None


def _decode_register_pair(instruction_type):
    def decoder(word, x, y, n, nn, nnn):
        return instruction_type(x=x, y=y) if n == 0 else None
    return decoder


def _decode_alu(word, x, y, n, nn, nnn):
    instruction_type = _ALU_OPERATIONS.get(n)
    return instruction_type(x=x, y=y) if instruction_type else None


def _decode_key(word, x, y, n, nn, nnn):
    instruction_type = _KEY_OPERATIONS.get(nn)
    return instruction_type(x=x) if instruction_type else None


def _decode_misc(word, x, y, n, nn, nnn):
    instruction_type = _MISC_OPERATIONS.get(nn)
    return instruction_type(x=x) if instruction_type else None


_Decoder = Callable[[int, int, int, int, int, int], Optional[Instruction]]

# Indexed by the first nibble.
_DECODERS: Dict[int, _Decoder] = {
    0x0: _decode_system,
    0x1: lambda word, x, y, n, nn, nnn: Jump(nnn=nnn),
    0x2: lambda word, x, y, n, nn, nnn: Call(nnn=nnn),
    0x3: lambda word, x, y, n, nn, nnn: SkipEqConst(x=x, nn=nn),
    0x4: lambda word, x, y, n, nn, nnn: SkipNeqConst(x=x, nn=nn),
    0x5: _decode_register_pair(SkipEqReg),
    0x6: lambda word, x, y, n, nn, nnn: SetConst(x=x, nn=nn),
    0x7: lambda word, x, y, n, nn, nnn: AddConst(x=x, nn=nn),
    0x8: _decode_alu,
    0x9: _decode_register_pair(SkipNeqReg),
    0xA: lambda word, x, y, n, nn, nnn: SetIndex(nnn=nnn),
    0xB: lambda word, x, y, n, nn, nnn: JumpPlusV0(nnn=nnn),
    0xC: lambda word, x, y, n, nn, nnn: RandMask(x=x, nn=nn),
    0xD: lambda word, x, y, n, nn, nnn: Draw(x=x, y=y, n=n),
    0xE: _decode_key,
    0xF: _decode_misc,
}


def decode(word: int) -> Instruction:
    """Decode a 16-bit word into its instruction.

    Raises:
        UnknownOpcode: if the word matches no documented pattern.
        ValueError: if the word does not fit in 16 bits.
    """
    word = int(word)
    if not 0 <= word <= 0xFFFF:
        raise ValueError(f"Instruction word must fit in 16 bits, got {word:#x}")

    instruction = _DECODERS[(word & 0xF000) >> 12](
        word,
        (word & 0x0F00) >> 8,
        (word & 0x00F0) >> 4,
        word & 0x000F,
        word & 0x00FF,
        word & 0x0FFF,
    )
    if instruction is None:
        raise UnknownOpcode(word)
    return instruction
