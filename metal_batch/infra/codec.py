"""
JSON wire codec for the Metal API.

Decoding never raises: callers get a ``DecodeResult`` and check ``ok``
before touching ``value``. Field helpers below do checked lookups so a
missing or mistyped field turns into a default instead of a KeyError.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

UINT64_MAX = 2**64 - 1


@dataclass(frozen=True)
class DecodeResult:
    """Outcome of decoding a response body."""
    ok: bool
    value: Any = None
    error: Optional[str] = None

    @property
    def is_object(self) -> bool:
        return self.ok and isinstance(self.value, dict)

    @property
    def is_array(self) -> bool:
        return self.ok and isinstance(self.value, list)


def encode(payload: Dict[str, Any]) -> str:
    """Encode a request payload to compact JSON text."""
    return json.dumps(payload, separators=(",", ":"))


def decode(text: str | bytes | None) -> DecodeResult:
    if text is None:
        return DecodeResult(ok=False, error="empty body")
    if isinstance(text, bytes):
        try:
            text = text.decode("utf-8")
        except UnicodeDecodeError as exc:
            return DecodeResult(ok=False, error=f"invalid utf-8: {exc}")
    if not text.strip():
        return DecodeResult(ok=False, error="empty body")
    try:
        return DecodeResult(ok=True, value=json.loads(text))
    except json.JSONDecodeError as exc:
        return DecodeResult(ok=False, error=f"{exc.msg} at line {exc.lineno} column {exc.colno}")


def get_str(obj: Dict[str, Any], key: str, default: str = "") -> str:
    value = obj.get(key)
    return value if isinstance(value, str) else default


def get_bool(obj: Dict[str, Any], key: str, default: bool = False) -> bool:
    value = obj.get(key)
    return value if isinstance(value, bool) else default


def get_uint64(obj: Dict[str, Any], key: str, default: int = 0) -> int:
    value = obj.get(key)
    # bool is an int subclass; true/false are not supply values
    if isinstance(value, bool) or not isinstance(value, int):
        return default
    if value < 0 or value > UINT64_MAX:
        return default
    return value


def get_float(obj: Dict[str, Any], key: str, default: float = 0.0) -> float:
    value = obj.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return float(value)


def get_object(obj: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = obj.get(key)
    return value if isinstance(value, dict) else {}
