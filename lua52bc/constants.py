"""Fixed constants of the Lua 5.2 binary chunk and instruction formats.

Everything here is independent of the host: widths that vary between
toolchains (``int``, ``size_t``, ``lua_Number``) live in the host profile.
"""

from enum import IntEnum

# Header layout. The header is 18 bytes regardless of the host widths.
#
#   0..3   signature "\x1bLua"
#   4      version (0x52)
#   5      format (0 = official)
#   6      endianness (1 = little, 0 = big)
#   7      sizeof(int)
#   8      sizeof(size_t)
#   9      sizeof(Instruction)
#   10     sizeof(lua_Number)
#   11     integral flag (0 = floating-point lua_Number)
#   12..17 tail "\x19\x93\r\n\x1a\n"
HEADER_SIZE = 18
SIGNATURE = b"\x1bLua\x52\x00"
SIGNATURE_SLICE = slice(0, 6)
HOST_FIELDS_SLICE = slice(6, 12)
TAIL = b"\x19\x93\r\n\x1a\n"
TAIL_SLICE = slice(12, 18)

ENDIANNESS_OFFSET = 6
INT_SIZE_OFFSET = 7
SIZE_T_SIZE_OFFSET = 8
INSTRUCTION_SIZE_OFFSET = 9
NUMBER_SIZE_OFFSET = 10
INTEGRAL_OFFSET = 11

# Every instruction is one 32-bit word.
INSTRUCTION_SIZE = 4
WORD_BITS = 8 * INSTRUCTION_SIZE
WORD_MASK = (1 << WORD_BITS) - 1

# Bytes between the two line numbers and the instruction count of a
# prototype header: numparams, is_vararg, maxstacksize.
PROTO_FLAG_BYTES = 3


class ConstantType(IntEnum):
    """Tag byte preceding each constant-pool entry."""

    NIL = 0
    BOOLEAN = 1
    NUMBER = 3
    STRING = 4
