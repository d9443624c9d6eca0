"""Bit-field primitives for instruction words.

All instructions have an opcode in the low 6 bits. The operand fields are:

    OP : 6 bits  @ 0
    A  : 8 bits  @ 6
    C  : 9 bits  @ 14
    B  : 9 bits  @ 23
    Bx : 18 bits @ 14   (B and C together)
    Ax : 26 bits @ 6    (A, B and C together)
    sBx: the Bx bits, signed

A signed argument is stored in excess K, where K is the maximum magnitude of
the field: ``K - v`` for negative ``v`` and ``v`` itself otherwise. Bx and Ax
use a negative-one-based index instead, ``-1 - index``, which is how operands
referring to the constant table read back as negative numbers.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class FieldEncoding(str, Enum):
    UNSIGNED = "unsigned"
    BIASED = "biased"
    INDEX = "index"


@dataclass(frozen=True, slots=True)
class FieldSpec:
    name: str
    offset: int
    width: int
    encoding: FieldEncoding = FieldEncoding.UNSIGNED

    @property
    def mask(self) -> int:
        return mask(self.width) << self.offset

    @property
    def end(self) -> int:
        return self.offset + self.width


def mask(width: int) -> int:
    return (1 << width) - 1


def extract(word: int, offset: int, width: int) -> int:
    return (word >> offset) & mask(width)


def pack(value: int, offset: int, width: int) -> int:
    return (value & mask(width)) << offset


def bias_limit(width: int) -> int:
    """K for a biased field of ``width`` bits."""
    return (1 << (width - 1)) - 1


def bias(value: int, width: int) -> int:
    k = bias_limit(width)
    return k - value if value < 0 else value


def unbias(stored: int, width: int) -> int:
    k = bias_limit(width)
    return k - stored if stored > k else stored


def to_index(logical: int, width: int) -> int:
    return (-1 - logical) & mask(width)


def from_index(stored: int, width: int) -> int:
    return -1 - stored


SIZE_OP = 6
SIZE_A = 8
SIZE_B = 9
SIZE_C = 9
SIZE_Bx = SIZE_B + SIZE_C
SIZE_Ax = SIZE_A + SIZE_B + SIZE_C

POS_OP = 0
POS_A = POS_OP + SIZE_OP
POS_C = POS_A + SIZE_A
POS_B = POS_C + SIZE_C
POS_Bx = POS_C
POS_Ax = POS_A

OP = FieldSpec("OP", POS_OP, SIZE_OP)
A = FieldSpec("A", POS_A, SIZE_A)
B = FieldSpec("B", POS_B, SIZE_B, FieldEncoding.BIASED)
C = FieldSpec("C", POS_C, SIZE_C, FieldEncoding.BIASED)
Bx = FieldSpec("Bx", POS_Bx, SIZE_Bx, FieldEncoding.INDEX)
Ax = FieldSpec("Ax", POS_Ax, SIZE_Ax, FieldEncoding.INDEX)
sBx = FieldSpec("sBx", POS_Bx, SIZE_Bx, FieldEncoding.BIASED)


def encode_field(spec: FieldSpec, value: int) -> int:
    """Transform ``value`` per the field encoding and place it in the word."""
    if spec.encoding is FieldEncoding.BIASED:
        value = bias(value, spec.width)
    elif spec.encoding is FieldEncoding.INDEX:
        value = to_index(value, spec.width)
    return pack(value, spec.offset, spec.width)


def decode_field(spec: FieldSpec, word: int) -> int:
    stored = extract(word, spec.offset, spec.width)
    if spec.encoding is FieldEncoding.BIASED:
        return unbias(stored, spec.width)
    if spec.encoding is FieldEncoding.INDEX:
        return from_index(stored, spec.width)
    return stored


def operand_range(spec: FieldSpec) -> Tuple[int, int]:
    """Inclusive range of logical values that survive an encode/decode."""
    if spec.encoding is FieldEncoding.BIASED:
        k = bias_limit(spec.width)
        return -k, k
    if spec.encoding is FieldEncoding.INDEX:
        return -(1 << spec.width), -1
    return 0, mask(spec.width)


__all__ = [
    "FieldEncoding",
    "FieldSpec",
    "OP",
    "A",
    "B",
    "C",
    "Bx",
    "Ax",
    "sBx",
    "bias",
    "bias_limit",
    "decode_field",
    "encode_field",
    "extract",
    "from_index",
    "mask",
    "operand_range",
    "pack",
    "to_index",
    "unbias",
]
