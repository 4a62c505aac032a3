from myco.vm.instructions import (
    INSTRUCTION_COUNT,
    PLACEHOLDER_GLYPH,
    WALL_BYTE,
    Category,
    Instruction,
    category_of,
    glyph,
    mnemonic_table,
)

__all__ = [
    "INSTRUCTION_COUNT",
    "PLACEHOLDER_GLYPH",
    "WALL_BYTE",
    "Category",
    "Instruction",
    "category_of",
    "glyph",
    "mnemonic_table",
]
