"""Codec and editor for Lua 5.2 instruction words and binary chunks."""

from .asm import assemble, encode
from .chunk import Chunk, Constant, InstructionArray, open_chunk
from .disasm import DecodedInstruction, decode, disassemble
from .errors import (
    ArgumentCountError,
    BytecodeError,
    FormatMismatchError,
    HostIncompatibleError,
    InstructionWordError,
    MalformedInstructionError,
    NonNumericArgumentError,
    OperandRangeError,
    UnknownMnemonicError,
    UnknownOpcodeError,
    UnsupportedConstantTypeError,
)
from .fields import bias, extract, from_index, pack, to_index, unbias
from .opcodes import REGISTRY, OpcodeDescriptor, OperandLayout
from .profile import HostProfile, derive_host_profile, host_profile, number_at, word_bytes

__all__ = [
    "ArgumentCountError",
    "BytecodeError",
    "Chunk",
    "Constant",
    "DecodedInstruction",
    "FormatMismatchError",
    "HostIncompatibleError",
    "HostProfile",
    "InstructionArray",
    "InstructionWordError",
    "MalformedInstructionError",
    "NonNumericArgumentError",
    "OpcodeDescriptor",
    "OperandLayout",
    "OperandRangeError",
    "REGISTRY",
    "UnknownMnemonicError",
    "UnknownOpcodeError",
    "UnsupportedConstantTypeError",
    "assemble",
    "bias",
    "decode",
    "derive_host_profile",
    "disassemble",
    "encode",
    "extract",
    "from_index",
    "host_profile",
    "number_at",
    "open_chunk",
    "pack",
    "to_index",
    "unbias",
    "word_bytes",
]
