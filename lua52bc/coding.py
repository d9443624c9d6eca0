# based on https://github.com/whitequark/binja-avnera/blob/main/mc/coding.py
"""Byte-order aware cursor helpers used by the profile and chunk modules."""

import struct
from typing import Dict, Literal

ByteOrder = Literal["little", "big"]

# struct codes for the unsigned widths a chunk header can declare
_UNSIGNED_FORMATS: Dict[int, str] = {1: "B", 2: "H", 4: "I", 8: "Q"}


class BufferTooShort(Exception):
    """Raised when attempting to read past the end of the buffer."""


def unsigned_format(width: int, byteorder: ByteOrder) -> str:
    try:
        code = _UNSIGNED_FORMATS[width]
    except KeyError:
        raise ValueError(f"Unsupported integer width: {width}") from None
    return ("<" if byteorder == "little" else ">") + code


class Decoder:
    def __init__(self, buf: bytes, byteorder: ByteOrder = "little") -> None:
        self.buf, self.pos = buf, 0
        self.byteorder = byteorder

    def get_pos(self) -> int:
        return self.pos

    def seek(self, pos: int) -> None:
        if not 0 <= pos <= len(self.buf):
            raise BufferTooShort
        self.pos = pos

    def peek(self, offset: int) -> int:
        if len(self.buf) - self.pos <= offset:
            raise BufferTooShort
        return self.buf[self.pos + offset]

    def _unpack(self, fmt: str) -> int:
        size = struct.calcsize(fmt)
        if len(self.buf) - self.pos < size:
            raise BufferTooShort
        items = struct.unpack_from(fmt, self.buf, self.pos)
        self.pos += size
        if len(items) == 1:
            return items[0]  # type: ignore
        raise ValueError("Unpacking more than one item is not supported")

    def unsigned_byte(self) -> int:
        return self._unpack("B")

    def unsigned(self, width: int) -> int:
        return self._unpack(unsigned_format(width, self.byteorder))

    def raw(self, count: int) -> bytes:
        if count < 0 or len(self.buf) - self.pos < count:
            raise BufferTooShort
        data = bytes(self.buf[self.pos : self.pos + count])
        self.pos += count
        return data

    def skip(self, count: int) -> None:
        self.raw(count)


class Encoder:
    def __init__(self, byteorder: ByteOrder = "little") -> None:
        self.buf = bytearray()
        self.byteorder = byteorder

    def _pack(self, fmt: str, item: int) -> None:
        offset = len(self.buf)
        self.buf += b"\x00" * struct.calcsize(fmt)
        struct.pack_into(fmt, self.buf, offset, item)

    def unsigned_byte(self, value: int) -> None:
        self._pack("B", value)

    def unsigned(self, value: int, width: int) -> None:
        self._pack(unsigned_format(width, self.byteorder), value)

    def raw(self, data: bytes) -> None:
        self.buf += data
