"""Assembler for single Lua 5.2 instructions.

``assemble("GETTABUP 1 0 -2")`` returns the instruction word and its 4-byte
encoding in host byte order. Mnemonics are case-insensitive; operands are
signed decimal integers given in the layout's field order.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import List, Sequence, Tuple, Union

from lark import Lark, Token, Transformer
from lark.exceptions import UnexpectedInput

from . import fields
from .config import load_config
from .errors import (
    ArgumentCountError,
    MalformedInstructionError,
    NonNumericArgumentError,
    OperandRangeError,
    UnknownMnemonicError,
    UnknownOpcodeError,
)
from .fields import encode_field, operand_range, pack
from .opcodes import REGISTRY, OpcodeDescriptor
from .profile import host_profile

grammar_path = os.path.join(os.path.dirname(__file__), "asm.lark")
with open(grammar_path, "r") as f:
    asm_grammar = f.read()

asm_parser = Lark(asm_grammar, parser="lalr")

INTEGER_LITERAL = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class ParsedInstruction:
    mnemonic: str
    operands: Tuple[str, ...]


class AsmTransformer(Transformer):
    def start(self, items: List[str]) -> ParsedInstruction:
        return ParsedInstruction(mnemonic=items[0], operands=tuple(items[1:]))

    def mnemonic(self, items: List[Token]) -> str:
        return str(items[0])

    def operand(self, items: List[Token]) -> str:
        return str(items[0])


def parse(text: str) -> ParsedInstruction:
    try:
        tree = asm_parser.parse(text.strip())
    except UnexpectedInput as e:
        raise MalformedInstructionError(
            f"Improperly formed instruction: '{text}'"
        ) from e
    return AsmTransformer().transform(tree)


def _to_int(token: str) -> int:
    if not INTEGER_LITERAL.fullmatch(token):
        raise NonNumericArgumentError(f"Non-numeric argument to assemble: '{token}'")
    return int(token)


def _descriptor(op: Union[str, int]) -> OpcodeDescriptor:
    if isinstance(op, str):
        descriptor = REGISTRY.by_mnemonic(op)
        if descriptor is None:
            raise UnknownMnemonicError(f"Unknown instruction: '{op}'")
        return descriptor
    descriptor = REGISTRY.by_opcode(op)
    if descriptor is None:
        raise UnknownOpcodeError(op)
    return descriptor


def encode_instruction(descriptor: OpcodeDescriptor, operands: Sequence[int]) -> int:
    """Build a word from operands given in the layout's field order."""
    specs = REGISTRY.fields_of(descriptor.layout)
    if len(operands) != len(specs):
        raise ArgumentCountError(
            descriptor.mnemonic, descriptor.layout.value, len(specs), len(operands)
        )

    strict = load_config().strict_operands
    word = pack(descriptor.opcode, fields.OP.offset, fields.OP.width)
    for spec, value in zip(specs, operands):
        if strict:
            lo, hi = operand_range(spec)
            if not lo <= value <= hi:
                raise OperandRangeError(
                    f"Operand {spec.name} of '{descriptor.mnemonic}' out of range: "
                    f"{value} not in [{lo}, {hi}]"
                )
        word |= encode_field(spec, value)
    return word


def encode(op: Union[str, int], *operands: int) -> int:
    """Encode by mnemonic or opcode, e.g. ``encode("GETTABUP", 1, 0, -2)``."""
    return encode_instruction(_descriptor(op), operands)


def assemble(text: str) -> Tuple[int, bytes]:
    parsed = parse(text)
    descriptor = _descriptor(parsed.mnemonic)
    operands = [_to_int(token) for token in parsed.operands]
    word = encode_instruction(descriptor, operands)
    return word, host_profile().word_bytes(word)


__all__ = [
    "AsmTransformer",
    "ParsedInstruction",
    "asm_parser",
    "assemble",
    "encode",
    "encode_instruction",
    "parse",
]
