"""Logical CHIP-8 keys and the default keyboard layout.

The COSMAC VIP hex keypad is laid out as::

    1 2 3 C
    4 5 6 D
    7 8 9 E
    A 0 B F

and is conventionally mapped onto the left block of a QWERTY keyboard.
"""

from enum import IntEnum
from typing import Dict, Optional


class Key(IntEnum):
    """One of the 16 logical keys."""
    K0 = 0x0
    K1 = 0x1
    K2 = 0x2
    K3 = 0x3
    K4 = 0x4
    K5 = 0x5
    K6 = 0x6
    K7 = 0x7
    K8 = 0x8
    K9 = 0x9
    A = 0xA
    B = 0xB
    C = 0xC
    D = 0xD
    E = 0xE
    F = 0xF


KEYBOARD_LAYOUT: Dict[str, Key] = {
    "1": Key.K1, "2": Key.K2, "3": Key.K3, "4": Key.C,
    "q": Key.K4, "w": Key.K5, "e": Key.K6, "r": Key.D,
    "a": Key.K7, "s": Key.K8, "d": Key.K9, "f": Key.E,
    "z": Key.A, "x": Key.K0, "c": Key.B, "v": Key.F,
}


def key_for_character(character: str) -> Optional[Key]:
    """Logical key bound to a typed character, or None if unbound."""
    return KEYBOARD_LAYOUT.get(character.lower())
