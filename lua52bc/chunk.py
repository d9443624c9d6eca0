"""Instruction-level editing of compiled Lua 5.2 chunks.

A chunk is split once, at open time, into three regions: the bytes before
the top-level prototype's instruction count, the instruction array, and
everything after it. Only the middle region is ever rewritten. Register
counts, line info, constants and nested prototypes are carried through as
opaque bytes, so an edit that changes the number of instructions or the
registers they use leaves that metadata stale; keeping it consistent is up
to the caller.
"""

from __future__ import annotations

from collections.abc import MutableSequence, Sequence
from dataclasses import dataclass
import logging
from typing import Iterable, List, Optional, Union, overload

from .coding import BufferTooShort, Decoder, Encoder
from .config import load_config
from .constants import (
    HEADER_SIZE,
    INSTRUCTION_SIZE,
    SIGNATURE,
    SIGNATURE_SLICE,
    TAIL,
    TAIL_SLICE,
    ConstantType,
)
from .disasm import disassemble, disassemble_all
from .errors import (
    FormatMismatchError,
    HostIncompatibleError,
    InstructionWordError,
    UnknownOpcodeError,
    UnsupportedConstantTypeError,
)
from .profile import HostProfile, check_word, host_profile

logger = logging.getLogger(__name__)


class InstructionArray(MutableSequence):
    """Mutable sequence of instruction words owned by a :class:`Chunk`.

    Every write is validated before the underlying list changes, so a
    rejected edit leaves the array as it was.
    """

    def __init__(self, words: Iterable[int] = (), max_length: Optional[int] = None) -> None:
        self._max_length = max_length
        self._words: List[int] = []
        self.extend(words)

    def _check_length(self, new_length: int) -> None:
        if self._max_length is not None and new_length > self._max_length:
            raise InstructionWordError(
                f"Too many instructions: {new_length} > {self._max_length}"
            )

    @overload
    def __getitem__(self, index: int) -> int: ...

    @overload
    def __getitem__(self, index: slice) -> List[int]: ...

    def __getitem__(self, index: Union[int, slice]) -> Union[int, List[int]]:
        return self._words[index]

    def __setitem__(self, index, value) -> None:
        if isinstance(index, slice):
            values = list(value)
            for word in values:
                check_word(word)
            current = range(len(self._words))[index]
            if index.step not in (None, 1) and len(values) != len(current):
                raise InstructionWordError(
                    f"Attempt to assign {len(values)} instructions "
                    f"to an extended slice of size {len(current)}"
                )
            self._check_length(len(self._words) - len(current) + len(values))
            self._words[index] = values
            return
        check_word(value)
        self._words[index] = value

    def __delitem__(self, index: Union[int, slice]) -> None:
        del self._words[index]

    def __len__(self) -> int:
        return len(self._words)

    def insert(self, index: int, value: int) -> None:
        check_word(value)
        self._check_length(len(self._words) + 1)
        self._words.insert(index, value)

    def extend(self, values: Iterable[int]) -> None:
        values = list(values)
        for word in values:
            check_word(word)
        self._check_length(len(self._words) + len(values))
        self._words.extend(values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, InstructionArray):
            return self._words == other._words
        if isinstance(other, Sequence) and not isinstance(other, (str, bytes, bytearray)):
            return self._words == list(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"InstructionArray([{', '.join(f'0x{w:08X}' for w in self._words)}])"


@dataclass(frozen=True)
class Constant:
    """One entry of the top-level prototype's constant pool, as stored."""

    type: ConstantType
    payload: bytes

    @property
    def value(self) -> Union[None, bool, bytes]:
        if self.type is ConstantType.NIL:
            return None
        if self.type is ConstantType.BOOLEAN:
            return self.payload[0] != 0
        if self.type is ConstantType.STRING:
            # stored with a trailing NUL; an empty payload is a NULL string
            return self.payload[:-1] if self.payload else None
        raise UnsupportedConstantTypeError(
            f"Decoding {self.type.name} constants is not supported"
        )


class Chunk:
    def __init__(self, data: bytes, profile: HostProfile) -> None:
        self.profile = profile
        decoder = Decoder(data, profile.byteorder)
        try:
            decoder.seek(profile.code_count_offset)
            count = decoder.unsigned(profile.int_size)
        except BufferTooShort:
            raise FormatMismatchError(
                "bytecode error: chunk is truncated before the instruction count"
            ) from None
        if count > profile.max_instruction_count:
            raise FormatMismatchError(f"bytecode error: invalid instruction count {count}")

        code_end = profile.code_offset + count * INSTRUCTION_SIZE
        if code_end > len(data):
            raise FormatMismatchError(
                f"bytecode error: chunk is truncated: {count} instructions need "
                f"{code_end} bytes, have {len(data)}"
            )
        words = [decoder.unsigned(INSTRUCTION_SIZE) for _ in range(count)]

        self._head = bytes(data[: profile.code_count_offset])
        self._tail = bytes(data[code_end:])
        self._instructions = InstructionArray(words, profile.max_instruction_count)

    def instructions(self) -> InstructionArray:
        return self._instructions

    def serialize(self) -> bytes:
        encoder = Encoder(self.profile.byteorder)
        encoder.raw(self._head)
        encoder.unsigned(len(self._instructions), self.profile.int_size)
        for word in self._instructions:
            encoder.unsigned(word, INSTRUCTION_SIZE)
        encoder.raw(self._tail)
        logger.debug(
            "Serialized chunk: %d instructions, %d bytes",
            len(self._instructions),
            len(encoder.buf),
        )
        return bytes(encoder.buf)

    def __bytes__(self) -> bytes:
        return self.serialize()

    def disassemble(self) -> List[str]:
        return disassemble_all(self._instructions)

    # Read-only view of the prototype header. None of these are updated by
    # serialize().

    def _header_decoder(self) -> Decoder:
        decoder = Decoder(self._head, self.profile.byteorder)
        decoder.seek(HEADER_SIZE)
        return decoder

    @property
    def line_defined(self) -> int:
        return self._header_decoder().unsigned(self.profile.int_size)

    @property
    def last_line_defined(self) -> int:
        decoder = self._header_decoder()
        decoder.skip(self.profile.int_size)
        return decoder.unsigned(self.profile.int_size)

    def _flag_byte(self, index: int) -> int:
        return self._head[HEADER_SIZE + 2 * self.profile.int_size + index]

    @property
    def num_params(self) -> int:
        return self._flag_byte(0)

    @property
    def is_vararg(self) -> bool:
        return self._flag_byte(1) > 0

    @property
    def max_stack_size(self) -> int:
        return self._flag_byte(2)

    def constants(self) -> List[Constant]:
        """Walk the constant pool that follows the instructions.

        The pool is read from the bytes captured at open time and reflects
        the original chunk.
        """
        decoder = Decoder(self._tail, self.profile.byteorder)
        constants: List[Constant] = []
        try:
            count = decoder.unsigned(self.profile.int_size)
            for _ in range(count):
                tag = decoder.unsigned_byte()
                try:
                    ctype = ConstantType(tag)
                except ValueError:
                    raise UnsupportedConstantTypeError(
                        f"Unknown constant type {tag}"
                    ) from None
                if ctype is ConstantType.NIL:
                    payload = b""
                elif ctype is ConstantType.BOOLEAN:
                    payload = decoder.raw(1)
                elif ctype is ConstantType.NUMBER:
                    payload = decoder.raw(self.profile.number_size)
                else:
                    size = decoder.unsigned(self.profile.size_t_size)
                    payload = decoder.raw(size)
                constants.append(Constant(ctype, payload))
        except BufferTooShort:
            raise FormatMismatchError(
                "bytecode error: chunk is truncated inside the constant pool"
            ) from None
        return constants


def open_chunk(data: bytes, profile: Optional[HostProfile] = None) -> Chunk:
    """Validate ``data`` against the host profile and wrap it for editing."""
    profile = profile or host_profile()
    data = bytes(data)
    if (
        len(data) < HEADER_SIZE
        or data[SIGNATURE_SLICE] != SIGNATURE
        or data[TAIL_SLICE] != TAIL
    ):
        raise FormatMismatchError("bytecode error: chunk is not genuine Lua 5.2 bytecode")
    if data[:HEADER_SIZE] != profile.header:
        raise HostIncompatibleError(
            "bytecode error: chunk was not compiled on a compatible machine"
        )

    chunk = Chunk(data, profile)
    logger.debug(
        "Opened chunk: %d bytes, %d instructions",
        len(data),
        len(chunk.instructions()),
    )
    if load_config().trace:
        for index, word in enumerate(chunk.instructions()):
            try:
                text = disassemble(word)
            except UnknownOpcodeError as exc:
                text = f"<{exc}>"
            logger.debug("%5d  %08X  %s", index, word, text)
    return chunk


__all__ = ["Chunk", "Constant", "InstructionArray", "open_chunk"]
