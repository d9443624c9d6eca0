from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Optional


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    normalized = raw.strip().casefold()
    return normalized not in {"0", "false", "off", ""}


def _env_str(name: str) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip()


@dataclass(frozen=True)
class BytecodeConfig:
    trace: bool
    strict_operands: bool
    reference_chunk_hex: Optional[str]


def load_config() -> BytecodeConfig:
    return BytecodeConfig(
        trace=_env_flag("LUA52BC_TRACE", default=False),
        strict_operands=_env_flag("LUA52BC_STRICT_OPERANDS", default=False),
        reference_chunk_hex=_env_str("LUA52BC_REFERENCE_CHUNK"),
    )


__all__ = ["BytecodeConfig", "load_config"]
