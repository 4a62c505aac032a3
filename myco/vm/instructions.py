"""Opcode table shared by the interpreter and any presentation layer.

Every opcode is one byte. Its value is its position in the table below, and
it is written and displayed as a two-character mnemonic. Bytes past the end of
the table have no meaning: they execute as no-ops and render as
``PLACEHOLDER_GLYPH``.
"""

from __future__ import annotations

from enum import Enum, IntEnum

from myco.exceptions import UnknownMnemonicError

PLACEHOLDER_GLYPH = "~~"


class Category(str, Enum):
    SPECIAL = "special"
    WALL = "wall"
    CALCULATION = "calculation"
    CONTROL = "control"
    CURSOR = "cursor"
    SELECTION = "selection"

    @property
    def rgb(self) -> tuple[int, int, int]:
        return _CATEGORY_RGB[self]

    @property
    def palette_index(self) -> int:
        return list(Category).index(self)


_CATEGORY_RGB = {
    Category.SPECIAL: (0x30, 0x30, 0x30),
    Category.WALL: (0x8A, 0x8A, 0x8A),
    Category.CALCULATION: (0x8E, 0xCD, 0x00),
    Category.CONTROL: (0xC4, 0x6A, 0xE1),
    Category.CURSOR: (0x00, 0xD4, 0xD9),
    Category.SELECTION: (0xE1, 0x00, 0x03),
}


class Instruction(IntEnum):
    # Special
    HALT = 0
    NOP = 1
    FLAG_FORK = 2
    CURSOR_FORK = 3
    # Wall
    WALL = 4
    # Calculation
    ZERO_A = 5
    ZERO_B = 6
    COPY_A = 7
    COPY_B = 8
    SWAP_AB = 9
    SUM_A = 10
    SUM_B = 11
    NEGATE_A = 12
    NEGATE_B = 13
    INC_A = 14
    INC_B = 15
    DEC_A = 16
    DEC_B = 17
    MUL_A = 18
    MUL_B = 19
    DOUBLE_A = 20
    DOUBLE_B = 21
    HALVE_A = 22
    HALVE_B = 23
    MOD2_A = 24
    MOD2_B = 25
    AND_A = 26
    AND_B = 27
    OR_A = 28
    OR_B = 29
    XOR_A = 30
    XOR_B = 31
    EQ_A = 32
    EQ_B = 33
    NEQ_A = 34
    NEQ_B = 35
    NONZERO_A = 36
    NONZERO_B = 37
    IS_ZERO_A = 38
    IS_ZERO_B = 39
    # Control
    WAIT_A = 40
    WAIT_B = 41
    MOVE_L = 42
    MOVE_R = 43
    MOVE_U = 44
    MOVE_D = 45
    COND_MOVE_L = 46
    COND_MOVE_R = 47
    COND_MOVE_U = 48
    COND_MOVE_D = 49
    COND_HALT = 50
    REFLECT_ALL = 51
    REFLECT_X = 52
    REFLECT_Y = 53
    REFLECT_FWD = 54
    REFLECT_BWD = 55
    SET_FLAG = 56
    CLEAR_FLAG = 57
    FLAG_ZERO_A = 58
    FLAG_NONZERO_A = 59
    FLAG_ZERO_B = 60
    FLAG_NONZERO_B = 61
    FLAG_EQ = 62
    FLAG_NEQ = 63
    FLAG_NOT = 64
    FLAG_TO_A = 65
    FLAG_TO_B = 66
    # Cursor
    CURSOR_L = 67
    CURSOR_R = 68
    CURSOR_U = 69
    CURSOR_D = 70
    CURSOR_L_TIMES_A = 71
    CURSOR_R_TIMES_A = 72
    CURSOR_U_TIMES_A = 73
    CURSOR_D_TIMES_A = 74
    CURSOR_L_TIMES_B = 75
    CURSOR_R_TIMES_B = 76
    CURSOR_U_TIMES_B = 77
    CURSOR_D_TIMES_B = 78
    CURSOR_HOME = 79
    # Selection
    RADIUS_A = 80
    RADIUS_B = 81
    RADIUS_RESET = 82
    RADIUS_TO_A = 83
    RADIUS_TO_B = 84
    INC_RADIUS = 85
    DEC_RADIUS = 86
    CURSOR_WRITE_A = 87
    CURSOR_WRITE_B = 88
    CURSOR_READ_A = 89
    CURSOR_READ_B = 90
    COPY = 91
    PASTE = 92

    @property
    def mnemonic(self) -> str:
        return _MNEMONICS[self]

    @property
    def category(self) -> Category:
        return _CATEGORIES[self]

    @classmethod
    def from_byte(cls, value: int) -> Instruction | None:
        """Decode a grid byte; ``None`` for unmapped bytes."""
        return _BY_BYTE[value & 0xFF]

    @classmethod
    def from_mnemonic(cls, mnemonic: str) -> Instruction:
        try:
            return _BY_MNEMONIC[mnemonic]
        except KeyError:
            raise UnknownMnemonicError(mnemonic) from None


_TABLE: list[tuple[Instruction, str, Category]] = [
    (Instruction.HALT, "@@", Category.SPECIAL),
    (Instruction.NOP, "..", Category.SPECIAL),
    (Instruction.FLAG_FORK, "-=", Category.SPECIAL),
    (Instruction.CURSOR_FORK, "m=", Category.SPECIAL),
    (Instruction.WALL, "##", Category.WALL),
    (Instruction.ZERO_A, "0a", Category.CALCULATION),
    (Instruction.ZERO_B, "0b", Category.CALCULATION),
    (Instruction.COPY_A, "ba", Category.CALCULATION),
    (Instruction.COPY_B, "ab", Category.CALCULATION),
    (Instruction.SWAP_AB, "::", Category.CALCULATION),
    (Instruction.SUM_A, "a+", Category.CALCULATION),
    (Instruction.SUM_B, "b+", Category.CALCULATION),
    (Instruction.NEGATE_A, "a-", Category.CALCULATION),
    (Instruction.NEGATE_B, "b-", Category.CALCULATION),
    (Instruction.INC_A, "+a", Category.CALCULATION),
    (Instruction.INC_B, "+b", Category.CALCULATION),
    (Instruction.DEC_A, "-a", Category.CALCULATION),
    (Instruction.DEC_B, "-b", Category.CALCULATION),
    (Instruction.MUL_A, "a*", Category.CALCULATION),
    (Instruction.MUL_B, "b*", Category.CALCULATION),
    (Instruction.DOUBLE_A, "aa", Category.CALCULATION),
    (Instruction.DOUBLE_B, "bb", Category.CALCULATION),
    (Instruction.HALVE_A, "a/", Category.CALCULATION),
    (Instruction.HALVE_B, "b/", Category.CALCULATION),
    (Instruction.MOD2_A, "a%", Category.CALCULATION),
    (Instruction.MOD2_B, "b%", Category.CALCULATION),
    (Instruction.AND_A, "a&", Category.CALCULATION),
    (Instruction.AND_B, "b&", Category.CALCULATION),
    (Instruction.OR_A, "a|", Category.CALCULATION),
    (Instruction.OR_B, "b|", Category.CALCULATION),
    (Instruction.XOR_A, "a#", Category.CALCULATION),
    (Instruction.XOR_B, "b#", Category.CALCULATION),
    (Instruction.EQ_A, "a=", Category.CALCULATION),
    (Instruction.EQ_B, "b=", Category.CALCULATION),
    (Instruction.NEQ_A, "a!", Category.CALCULATION),
    (Instruction.NEQ_B, "b!", Category.CALCULATION),
    (Instruction.NONZERO_A, "a1", Category.CALCULATION),
    (Instruction.NONZERO_B, "b1", Category.CALCULATION),
    (Instruction.IS_ZERO_A, "a0", Category.CALCULATION),
    (Instruction.IS_ZERO_B, "b0", Category.CALCULATION),
    (Instruction.WAIT_A, ".a", Category.CONTROL),
    (Instruction.WAIT_B, ".b", Category.CONTROL),
    (Instruction.MOVE_L, "!<", Category.CONTROL),
    (Instruction.MOVE_R, "!>", Category.CONTROL),
    (Instruction.MOVE_U, "!^", Category.CONTROL),
    (Instruction.MOVE_D, "!v", Category.CONTROL),
    (Instruction.COND_MOVE_L, "?<", Category.CONTROL),
    (Instruction.COND_MOVE_R, "?>", Category.CONTROL),
    (Instruction.COND_MOVE_U, "?^", Category.CONTROL),
    (Instruction.COND_MOVE_D, "?v", Category.CONTROL),
    (Instruction.COND_HALT, "?@", Category.CONTROL),
    (Instruction.REFLECT_ALL, "!#", Category.CONTROL),
    (Instruction.REFLECT_X, "!|", Category.CONTROL),
    (Instruction.REFLECT_Y, "!-", Category.CONTROL),
    (Instruction.REFLECT_FWD, "!/", Category.CONTROL),
    (Instruction.REFLECT_BWD, "!\\", Category.CONTROL),
    (Instruction.SET_FLAG, "((", Category.CONTROL),
    (Instruction.CLEAR_FLAG, "))", Category.CONTROL),
    (Instruction.FLAG_ZERO_A, "(a", Category.CONTROL),
    (Instruction.FLAG_NONZERO_A, ")a", Category.CONTROL),
    (Instruction.FLAG_ZERO_B, "(b", Category.CONTROL),
    (Instruction.FLAG_NONZERO_B, ")b", Category.CONTROL),
    (Instruction.FLAG_EQ, "(=", Category.CONTROL),
    (Instruction.FLAG_NEQ, "(!", Category.CONTROL),
    (Instruction.FLAG_NOT, ")(", Category.CONTROL),
    (Instruction.FLAG_TO_A, "a(", Category.CONTROL),
    (Instruction.FLAG_TO_B, "b(", Category.CONTROL),
    (Instruction.CURSOR_L, "#<", Category.CURSOR),
    (Instruction.CURSOR_R, "#>", Category.CURSOR),
    (Instruction.CURSOR_U, "#^", Category.CURSOR),
    (Instruction.CURSOR_D, "#v", Category.CURSOR),
    (Instruction.CURSOR_L_TIMES_A, "a<", Category.CURSOR),
    (Instruction.CURSOR_R_TIMES_A, "a>", Category.CURSOR),
    (Instruction.CURSOR_U_TIMES_A, "a^", Category.CURSOR),
    (Instruction.CURSOR_D_TIMES_A, "av", Category.CURSOR),
    (Instruction.CURSOR_L_TIMES_B, "b<", Category.CURSOR),
    (Instruction.CURSOR_R_TIMES_B, "b>", Category.CURSOR),
    (Instruction.CURSOR_U_TIMES_B, "b^", Category.CURSOR),
    (Instruction.CURSOR_D_TIMES_B, "bv", Category.CURSOR),
    (Instruction.CURSOR_HOME, "#0", Category.CURSOR),
    (Instruction.RADIUS_A, "ra", Category.SELECTION),
    (Instruction.RADIUS_B, "rb", Category.SELECTION),
    (Instruction.RADIUS_RESET, "r0", Category.SELECTION),
    (Instruction.RADIUS_TO_A, "ar", Category.SELECTION),
    (Instruction.RADIUS_TO_B, "br", Category.SELECTION),
    (Instruction.INC_RADIUS, "r+", Category.SELECTION),
    (Instruction.DEC_RADIUS, "r-", Category.SELECTION),
    (Instruction.CURSOR_WRITE_A, "ma", Category.SELECTION),
    (Instruction.CURSOR_WRITE_B, "mb", Category.SELECTION),
    (Instruction.CURSOR_READ_A, "am", Category.SELECTION),
    (Instruction.CURSOR_READ_B, "bm", Category.SELECTION),
    (Instruction.COPY, "cm", Category.SELECTION),
    (Instruction.PASTE, "mc", Category.SELECTION),
]

_MNEMONICS = {ins: mnemonic for ins, mnemonic, _ in _TABLE}
_CATEGORIES = {ins: category for ins, _, category in _TABLE}
_BY_MNEMONIC = {mnemonic: ins for ins, mnemonic, _ in _TABLE}
_BY_BYTE: list[Instruction | None] = [None] * 256
for _ins in Instruction:
    _BY_BYTE[_ins.value] = _ins

WALL_BYTE = int(Instruction.WALL)
INSTRUCTION_COUNT = len(_TABLE)


def glyph(value: int) -> str:
    """Display mnemonic for any grid byte."""
    ins = Instruction.from_byte(value)
    return ins.mnemonic if ins is not None else PLACEHOLDER_GLYPH


def category_of(value: int) -> Category:
    """Colour class for any grid byte; unmapped bytes count as special."""
    ins = Instruction.from_byte(value)
    return ins.category if ins is not None else Category.SPECIAL


def mnemonic_table() -> dict[str, int]:
    """The full mnemonic -> byte bijection."""
    return {mnemonic: int(ins) for mnemonic, ins in _BY_MNEMONIC.items()}
