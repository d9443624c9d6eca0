from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Tuple, Union

from . import fields
from .constants import INSTRUCTION_SIZE
from .errors import InstructionWordError, UnknownOpcodeError
from .fields import decode_field, extract
from .opcodes import REGISTRY, OpcodeDescriptor
from .profile import check_word, host_profile

WordLike = Union[int, bytes, bytearray]


@dataclass(frozen=True)
class DecodedInstruction:
    descriptor: OpcodeDescriptor
    operands: Tuple[int, ...]

    @property
    def mnemonic(self) -> str:
        return self.descriptor.mnemonic

    def __str__(self) -> str:
        return " ".join([self.mnemonic, *(str(value) for value in self.operands)])


def to_word(value: WordLike) -> int:
    """Accept a word or its 4-byte encoding in host byte order."""
    if isinstance(value, (bytes, bytearray)):
        if len(value) != INSTRUCTION_SIZE:
            raise InstructionWordError(
                f"Expected {INSTRUCTION_SIZE} bytes, got {len(value)}"
            )
        return host_profile().number_at(bytes(value))
    check_word(value)
    return value


def decode(value: WordLike) -> DecodedInstruction:
    word = to_word(value)
    opcode = extract(word, fields.OP.offset, fields.OP.width)
    descriptor = REGISTRY.by_opcode(opcode)
    if descriptor is None:
        raise UnknownOpcodeError(opcode)
    operands = tuple(
        decode_field(spec, word) for spec in REGISTRY.fields_of(descriptor.layout)
    )
    return DecodedInstruction(descriptor, operands)


def disassemble(value: WordLike) -> str:
    return str(decode(value))


def disassemble_all(words: Iterable[WordLike]) -> List[str]:
    return [disassemble(word) for word in words]


__all__ = [
    "DecodedInstruction",
    "decode",
    "disassemble",
    "disassemble_all",
    "to_word",
]
