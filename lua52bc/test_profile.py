import pytest

from .constants import HEADER_SIZE
from .errors import InstructionWordError, ProfileError
from .profile import (
    REFERENCE_EMPTY_CHUNK,
    HostProfile,
    derive_host_profile,
    host_profile,
    number_at,
    word_bytes,
)

BIG_ENDIAN_HEADER = b"\x1bLua\x52\x00\x00\x04\x04\x04\x08\x00\x19\x93\r\n\x1a\n"


def test_reference_profile() -> None:
    profile = derive_host_profile(REFERENCE_EMPTY_CHUNK)
    assert profile.byteorder == "little"
    assert profile.int_size == 4
    assert profile.size_t_size == 8
    assert profile.instruction_size == 4
    assert profile.number_size == 8
    assert profile.uses_float is True
    assert profile.header == REFERENCE_EMPTY_CHUNK[:HEADER_SIZE]
    assert profile.code_count_offset == 29
    assert profile.code_offset == 33
    assert profile.max_instruction_count == 0x7FFFFFFF


def test_host_profile_is_cached() -> None:
    assert host_profile() is host_profile()


def test_configured_reference(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LUA52BC_REFERENCE_CHUNK", BIG_ENDIAN_HEADER.hex())
    profile = derive_host_profile()
    assert profile.byteorder == "big"
    assert profile.size_t_size == 4

    monkeypatch.setenv("LUA52BC_REFERENCE_CHUNK", "not hex")
    with pytest.raises(ProfileError):
        derive_host_profile()


def test_compatibility() -> None:
    little = derive_host_profile(REFERENCE_EMPTY_CHUNK)
    big = derive_host_profile(BIG_ENDIAN_HEADER)
    assert little.is_compatible(derive_host_profile(REFERENCE_EMPTY_CHUNK))
    assert not little.is_compatible(big)
    assert not big.is_compatible(little)


def test_word_bytes_respects_byte_order() -> None:
    little = derive_host_profile(REFERENCE_EMPTY_CHUNK)
    big = derive_host_profile(BIG_ENDIAN_HEADER)
    assert little.word_bytes(0x00404046) == b"\x46\x40\x40\x00"
    assert big.word_bytes(0x00404046) == b"\x00\x40\x40\x46"
    assert big.number_at(b"\x00\x40\x40\x46") == 0x00404046
    assert little.number_at(b"\xff\x46\x40\x40\x00", 1) == 0x00404046
    assert little.number_at(b"\x02\x00", width=2) == 2


def test_module_helpers_use_host_profile() -> None:
    data = word_bytes(0x0080001F)
    assert data == host_profile().word_bytes(0x0080001F)
    assert number_at(data) == 0x0080001F
    assert number_at(b"\x00" + data, 1) == 0x0080001F


def test_word_bytes_rejects_bad_words() -> None:
    profile = derive_host_profile(REFERENCE_EMPTY_CHUNK)
    for bad in (-1, 1 << 32, "1", True):
        with pytest.raises(InstructionWordError):
            profile.word_bytes(bad)  # type: ignore[arg-type]
    with pytest.raises(InstructionWordError):
        profile.number_at(b"\x00\x00\x00")


@pytest.mark.parametrize(
    "sample",
    [
        b"",
        REFERENCE_EMPTY_CHUNK[:17],
        b"\x1bLub" + REFERENCE_EMPTY_CHUNK[4:],
        REFERENCE_EMPTY_CHUNK[:4] + b"\x51" + REFERENCE_EMPTY_CHUNK[5:],
        REFERENCE_EMPTY_CHUNK[:12] + b"\x19\x93\r\n\x1a\x00" + REFERENCE_EMPTY_CHUNK[18:],
        REFERENCE_EMPTY_CHUNK[:6] + b"\x02" + REFERENCE_EMPTY_CHUNK[7:],
        REFERENCE_EMPTY_CHUNK[:9] + b"\x08" + REFERENCE_EMPTY_CHUNK[10:],
        REFERENCE_EMPTY_CHUNK[:7] + b"\x03" + REFERENCE_EMPTY_CHUNK[8:],
    ],
    ids=[
        "empty",
        "short",
        "signature",
        "version",
        "tail",
        "endianness",
        "instruction-size",
        "int-size",
    ],
)
def test_malformed_reference(sample: bytes) -> None:
    with pytest.raises(ProfileError):
        HostProfile.from_header(sample)


def test_profile_is_immutable() -> None:
    profile = derive_host_profile(REFERENCE_EMPTY_CHUNK)
    with pytest.raises(AttributeError):
        profile.int_size = 8  # type: ignore[misc]
