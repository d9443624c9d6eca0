"""Shared pytest fixtures: a builder for small Lua 5.2 chunks."""

from __future__ import annotations

from typing import Callable, Optional, Sequence, Tuple

import pytest

from lua52bc.coding import Encoder
from lua52bc.constants import ConstantType
from lua52bc.profile import HostProfile, host_profile

ChunkBuilder = Callable[..., bytes]


def build_chunk(
    words: Sequence[int],
    *,
    profile: Optional[HostProfile] = None,
    header: Optional[bytes] = None,
    constants: Sequence[Tuple[ConstantType, bytes]] = (),
    line_defined: int = 0,
    last_line_defined: int = 0,
    num_params: int = 0,
    is_vararg: int = 1,
    max_stack_size: int = 2,
    source: bytes = b"=(load)",
) -> bytes:
    """Lay out a main function the way ``string.dump`` does."""
    profile = profile or host_profile()
    int_size, size_t = profile.int_size, profile.size_t_size
    enc = Encoder(profile.byteorder)

    enc.raw(header if header is not None else profile.header)
    enc.unsigned(line_defined, int_size)
    enc.unsigned(last_line_defined, int_size)
    enc.unsigned_byte(num_params)
    enc.unsigned_byte(is_vararg)
    enc.unsigned_byte(max_stack_size)

    enc.unsigned(len(words), int_size)
    for word in words:
        enc.unsigned(word, 4)

    enc.unsigned(len(constants), int_size)
    for ctype, payload in constants:
        enc.unsigned_byte(ctype)
        if ctype is ConstantType.STRING:
            enc.unsigned(len(payload), size_t)
        enc.raw(payload)

    enc.unsigned(0, int_size)  # nested prototypes
    enc.unsigned(1, int_size)  # upvalues: _ENV
    enc.raw(b"\x01\x00")

    enc.unsigned(len(source) + 1, size_t)
    enc.raw(source + b"\x00")
    enc.unsigned(len(words), int_size)
    for _ in words:
        enc.unsigned(1, int_size)
    enc.unsigned(0, int_size)  # locvars
    enc.unsigned(1, int_size)
    enc.unsigned(5, size_t)
    enc.raw(b"_ENV\x00")
    return bytes(enc.buf)


@pytest.fixture(scope="session")
def chunk_builder() -> ChunkBuilder:
    return build_chunk
