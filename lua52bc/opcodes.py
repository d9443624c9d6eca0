"""Lua 5.2 opcode registry.

The registry binds each numeric opcode to its mnemonic and operand layout.
It is built once at import time and validated: the opcode/mnemonic mapping
must be a bijection and every layout's fields must fit the word without
overlapping the opcode or each other.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Iterator, Mapping, Optional, Tuple

from . import fields
from .constants import WORD_BITS
from .errors import RegistryError
from .fields import FieldSpec


class OperandLayout(str, Enum):
    iA = "iA"
    iAB = "iAB"
    iAC = "iAC"
    iABC = "iABC"
    iAx = "iAx"
    iABx = "iABx"
    iAsBx = "iAsBx"


LAYOUT_FIELDS: Mapping[OperandLayout, Tuple[FieldSpec, ...]] = {
    OperandLayout.iA: (fields.A,),
    OperandLayout.iAB: (fields.A, fields.B),
    OperandLayout.iAC: (fields.A, fields.C),
    OperandLayout.iABC: (fields.A, fields.B, fields.C),
    OperandLayout.iAx: (fields.Ax,),
    OperandLayout.iABx: (fields.A, fields.Bx),
    OperandLayout.iAsBx: (fields.A, fields.sBx),
}


@dataclass(frozen=True, slots=True)
class OpcodeDescriptor:
    opcode: int
    mnemonic: str
    layout: OperandLayout

    @property
    def operand_fields(self) -> Tuple[FieldSpec, ...]:
        return LAYOUT_FIELDS[self.layout]


iA, iAB, iAC, iABC, iAx, iABx, iAsBx = (
    OperandLayout.iA,
    OperandLayout.iAB,
    OperandLayout.iAC,
    OperandLayout.iABC,
    OperandLayout.iAx,
    OperandLayout.iABx,
    OperandLayout.iAsBx,
)

# (opcode, mnemonic, layout), grouped by what the instructions do
OPCODE_TABLE: Tuple[Tuple[int, str, OperandLayout], ...] = (
    # Loading of constants
    (1, "LOADK", iABx),
    (2, "LOADKX", iA),
    (39, "EXTRAARG", iAx),
    # Unary functions
    (0, "MOVE", iAB),
    (19, "UNM", iAB),
    (20, "NOT", iAB),
    (21, "LEN", iAB),
    # Binary functions
    (13, "ADD", iABC),
    (14, "SUB", iABC),
    (15, "MUL", iABC),
    (16, "DIV", iABC),
    (17, "MOD", iABC),
    (18, "POW", iABC),
    # Table access
    (7, "GETTABLE", iABC),
    (10, "SETTABLE", iABC),
    (11, "NEWTABLE", iABC),
    (12, "SELF", iABC),
    (36, "SETLIST", iABC),
    # Tuples
    (4, "LOADNIL", iAB),
    (22, "CONCAT", iABC),
    (38, "VARARG", iAB),
    (29, "CALL", iABC),
    (30, "TAILCALL", iABC),
    (34, "TFORCALL", iAC),
    (31, "RETURN", iAB),
    # Upvalues
    (5, "GETUPVAL", iAB),
    (9, "SETUPVAL", iAB),
    (6, "GETTABUP", iABC),
    (8, "SETTABUP", iABC),
    # Logical functions
    (3, "LOADBOOL", iABC),
    (27, "TEST", iAC),
    (28, "TESTSET", iABC),
    (24, "EQ", iABC),
    (25, "LT", iABC),
    (26, "LE", iABC),
    # Branches, loops and closures
    (23, "JMP", iAsBx),
    (37, "CLOSURE", iABx),
    (32, "FORLOOP", iAsBx),
    (33, "FORPREP", iAsBx),
    (35, "TFORLOOP", iAsBx),
)


def check_layouts(layouts: Mapping[OperandLayout, Tuple[FieldSpec, ...]]) -> None:
    """Validate the layout table: every field in the word, no overlaps."""
    for layout in OperandLayout:
        specs = layouts.get(layout)
        if not specs:
            raise RegistryError(f"Layout {layout.value} has no fields")
        used = fields.OP.mask
        for spec in specs:
            if spec.offset < 0 or spec.width <= 0 or spec.end > WORD_BITS:
                raise RegistryError(
                    f"Field {spec.name} of {layout.value} does not fit in a word"
                )
            if used & spec.mask:
                raise RegistryError(
                    f"Field {spec.name} of {layout.value} overlaps another field"
                )
            used |= spec.mask


class OpcodeRegistry:
    def __init__(
        self,
        entries: Iterable[Tuple[int, str, OperandLayout]],
        layouts: Mapping[OperandLayout, Tuple[FieldSpec, ...]] = LAYOUT_FIELDS,
    ) -> None:
        check_layouts(layouts)
        self._layouts = dict(layouts)
        self._by_opcode: Dict[int, OpcodeDescriptor] = {}
        self._by_mnemonic: Dict[str, OpcodeDescriptor] = {}
        max_opcode = fields.mask(fields.OP.width)

        for opcode, mnemonic, layout in entries:
            if not 0 <= opcode <= max_opcode:
                raise RegistryError(f"Opcode {opcode} out of range for {mnemonic}")
            if mnemonic != mnemonic.upper():
                raise RegistryError(f"Mnemonic must be uppercase: {mnemonic}")
            if opcode in self._by_opcode:
                raise RegistryError(
                    f"Opcode {opcode} bound to both "
                    f"{self._by_opcode[opcode].mnemonic} and {mnemonic}"
                )
            if mnemonic in self._by_mnemonic:
                raise RegistryError(
                    f"Mnemonic {mnemonic} bound to both opcodes "
                    f"{self._by_mnemonic[mnemonic].opcode} and {opcode}"
                )
            descriptor = OpcodeDescriptor(opcode, mnemonic, OperandLayout(layout))
            self._by_opcode[opcode] = descriptor
            self._by_mnemonic[mnemonic] = descriptor

    def by_opcode(self, opcode: int) -> Optional[OpcodeDescriptor]:
        return self._by_opcode.get(opcode)

    def by_mnemonic(self, name: str) -> Optional[OpcodeDescriptor]:
        return self._by_mnemonic.get(name.upper())

    def fields_of(self, layout: OperandLayout) -> Tuple[FieldSpec, ...]:
        return self._layouts[layout]

    def __iter__(self) -> Iterator[OpcodeDescriptor]:
        return iter(sorted(self._by_opcode.values(), key=lambda d: d.opcode))

    def __len__(self) -> int:
        return len(self._by_opcode)

    def __contains__(self, item: object) -> bool:
        if isinstance(item, int):
            return item in self._by_opcode
        if isinstance(item, str):
            return item.upper() in self._by_mnemonic
        return False


REGISTRY = OpcodeRegistry(OPCODE_TABLE)


def fields_of(layout: OperandLayout) -> Tuple[FieldSpec, ...]:
    return REGISTRY.fields_of(layout)


__all__ = [
    "LAYOUT_FIELDS",
    "OPCODE_TABLE",
    "OpcodeDescriptor",
    "OpcodeRegistry",
    "OperandLayout",
    "REGISTRY",
    "check_layouts",
    "fields_of",
]
