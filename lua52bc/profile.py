"""Host format profile.

The widths and byte order a toolchain uses when dumping a chunk are read
from a reference chunk of an empty program. The profile is derived once per
process and is immutable afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
import logging
from typing import Optional

from .coding import BufferTooShort, ByteOrder, Decoder, Encoder, unsigned_format
from .config import load_config
from .constants import (
    ENDIANNESS_OFFSET,
    HEADER_SIZE,
    INSTRUCTION_SIZE,
    INSTRUCTION_SIZE_OFFSET,
    INT_SIZE_OFFSET,
    INTEGRAL_OFFSET,
    NUMBER_SIZE_OFFSET,
    PROTO_FLAG_BYTES,
    SIGNATURE,
    SIGNATURE_SLICE,
    SIZE_T_SIZE_OFFSET,
    TAIL,
    TAIL_SLICE,
    WORD_MASK,
)
from .errors import InstructionWordError, ProfileError

logger = logging.getLogger(__name__)

# string.dump(load("")) from a stock 64-bit little-endian Lua 5.2 build:
# a single RETURN 0 1, one upvalue (_ENV) and the debug info for "=(load)".
REFERENCE_EMPTY_CHUNK = (
    b"\x1bLua\x52\x00\x01\x04\x08\x04\x08\x00\x19\x93\r\n\x1a\n"
    b"\x00\x00\x00\x00"  # linedefined
    b"\x00\x00\x00\x00"  # lastlinedefined
    b"\x00\x01\x02"  # numparams, is_vararg, maxstacksize
    b"\x01\x00\x00\x00"  # sizecode
    b"\x1f\x00\x80\x00"  # RETURN 0 1
    b"\x00\x00\x00\x00"  # sizek
    b"\x00\x00\x00\x00"  # sizep
    b"\x01\x00\x00\x00\x01\x00"  # sizeupvalues, instack, idx
    b"\x08\x00\x00\x00\x00\x00\x00\x00=(load)\x00"  # source
    b"\x01\x00\x00\x00\x01\x00\x00\x00"  # sizelineinfo, lineinfo
    b"\x00\x00\x00\x00"  # sizelocvars
    b"\x01\x00\x00\x00\x05\x00\x00\x00\x00\x00\x00\x00_ENV\x00"  # upvalue names
)


@dataclass(frozen=True)
class HostProfile:
    byteorder: ByteOrder
    int_size: int
    size_t_size: int
    instruction_size: int
    number_size: int
    uses_float: bool
    header: bytes = field(repr=False)

    @classmethod
    def from_header(cls, data: bytes) -> "HostProfile":
        if len(data) < HEADER_SIZE:
            raise ProfileError(
                f"Reference chunk too short: {len(data)} bytes, "
                f"need at least {HEADER_SIZE}"
            )
        if data[SIGNATURE_SLICE] != SIGNATURE or data[TAIL_SLICE] != TAIL:
            raise ProfileError("Reference chunk is not Lua 5.2 bytecode")

        endianness = data[ENDIANNESS_OFFSET]
        if endianness not in (0, 1):
            raise ProfileError(f"Invalid endianness flag: {endianness}")

        profile = cls(
            byteorder="little" if endianness == 1 else "big",
            int_size=data[INT_SIZE_OFFSET],
            size_t_size=data[SIZE_T_SIZE_OFFSET],
            instruction_size=data[INSTRUCTION_SIZE_OFFSET],
            number_size=data[NUMBER_SIZE_OFFSET],
            uses_float=data[INTEGRAL_OFFSET] == 0,
            header=bytes(data[:HEADER_SIZE]),
        )
        if profile.instruction_size != INSTRUCTION_SIZE:
            raise ProfileError(
                f"Unsupported instruction size: {profile.instruction_size}"
            )
        for label, width in (
            ("int", profile.int_size),
            ("size_t", profile.size_t_size),
        ):
            try:
                unsigned_format(width, profile.byteorder)
            except ValueError:
                raise ProfileError(f"Unsupported {label} size: {width}") from None
        return profile

    @property
    def code_count_offset(self) -> int:
        """Offset of the top-level prototype's instruction count field."""
        return HEADER_SIZE + 2 * self.int_size + PROTO_FLAG_BYTES

    @property
    def code_offset(self) -> int:
        return self.code_count_offset + self.int_size

    @property
    def max_instruction_count(self) -> int:
        # the count is dumped from a C int
        return (1 << (8 * self.int_size - 1)) - 1

    def is_compatible(self, other: "HostProfile") -> bool:
        return self == other

    def word_bytes(self, word: int) -> bytes:
        """Serialize an instruction word in the host byte order."""
        check_word(word)
        encoder = Encoder(self.byteorder)
        encoder.unsigned(word, INSTRUCTION_SIZE)
        return bytes(encoder.buf)

    def number_at(self, data: bytes, offset: int = 0, width: Optional[int] = None) -> int:
        """Read an unsigned number of ``width`` bytes (default: one word)."""
        decoder = Decoder(data, self.byteorder)
        try:
            decoder.seek(offset)
            return decoder.unsigned(width or INSTRUCTION_SIZE)
        except BufferTooShort:
            raise InstructionWordError(
                f"Need {width or INSTRUCTION_SIZE} bytes at offset {offset}, "
                f"buffer has {len(data)}"
            ) from None


def check_word(word: object) -> None:
    if isinstance(word, bool) or not isinstance(word, int):
        raise InstructionWordError(
            f"Expected an instruction word, got {type(word).__name__}"
        )
    if not 0 <= word <= WORD_MASK:
        raise InstructionWordError(f"Instruction word out of range: {word:#x}")


def _configured_sample() -> bytes:
    raw = load_config().reference_chunk_hex
    if raw is None:
        return REFERENCE_EMPTY_CHUNK
    try:
        return bytes.fromhex(raw)
    except ValueError as exc:
        raise ProfileError(f"LUA52BC_REFERENCE_CHUNK is not a hex string: {exc}") from exc


def derive_host_profile(sample: Optional[bytes] = None) -> HostProfile:
    """Build a profile from a reference chunk.

    With no ``sample`` the configured reference (``LUA52BC_REFERENCE_CHUNK``)
    is used, falling back to ``REFERENCE_EMPTY_CHUNK``.
    """
    if sample is None:
        sample = _configured_sample()
    profile = HostProfile.from_header(sample)
    logger.debug("Derived host profile: %s", profile)
    return profile


@lru_cache(maxsize=None)
def host_profile() -> HostProfile:
    """Process-wide host profile, derived on first use."""
    return derive_host_profile()


def word_bytes(word: int) -> bytes:
    return host_profile().word_bytes(word)


def number_at(data: bytes, offset: int = 0) -> int:
    return host_profile().number_at(data, offset)


__all__ = [
    "HostProfile",
    "REFERENCE_EMPTY_CHUNK",
    "check_word",
    "derive_host_profile",
    "host_profile",
    "number_at",
    "word_bytes",
]
