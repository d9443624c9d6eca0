"""Exception hierarchy shared by the codec, the assembler and the chunk editor."""

from __future__ import annotations


class BytecodeError(Exception):
    """Base class for every error raised by ``lua52bc``."""


class ProfileError(BytecodeError):
    """The reference chunk used to derive the host profile is malformed."""


class RegistryError(BytecodeError):
    """The opcode table or the layout table failed its consistency checks."""


class ChunkError(BytecodeError):
    pass


class FormatMismatchError(ChunkError):
    """Buffer does not carry the expected signature or tail fingerprint."""


class HostIncompatibleError(ChunkError):
    """Signature matches but the width/endianness fields differ from the host."""


class AssemblerError(BytecodeError):
    pass


class MalformedInstructionError(AssemblerError):
    pass


class UnknownMnemonicError(AssemblerError):
    pass


class NonNumericArgumentError(AssemblerError):
    pass


class ArgumentCountError(AssemblerError):
    def __init__(self, mnemonic: str, layout: str, expected: int, actual: int) -> None:
        super().__init__(
            f"Bad number of arguments to '{mnemonic}' (layout {layout}): "
            f"expected {expected}, got {actual}"
        )
        self.mnemonic = mnemonic
        self.layout = layout
        self.expected = expected
        self.actual = actual


class OperandRangeError(AssemblerError):
    pass


class DisassemblerError(BytecodeError):
    pass


class UnknownOpcodeError(DisassemblerError):
    def __init__(self, opcode: int) -> None:
        super().__init__(f"Invalid opcode {opcode}")
        self.opcode = opcode


class InstructionWordError(BytecodeError, ValueError):
    """A value is not a valid 32-bit instruction word or its 4-byte encoding."""


class UnsupportedConstantTypeError(BytecodeError):
    pass


__all__ = [
    "BytecodeError",
    "ProfileError",
    "RegistryError",
    "ChunkError",
    "FormatMismatchError",
    "HostIncompatibleError",
    "AssemblerError",
    "MalformedInstructionError",
    "UnknownMnemonicError",
    "NonNumericArgumentError",
    "ArgumentCountError",
    "OperandRangeError",
    "DisassemblerError",
    "UnknownOpcodeError",
    "InstructionWordError",
    "UnsupportedConstantTypeError",
]
