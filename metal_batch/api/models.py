"""
Typed values exchanged with the Metal merchant API.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from metal_batch.infra.codec import (
    decode,
    get_float,
    get_object,
    get_str,
    get_uint64,
)

PENDING_TAGS = frozenset({"pending", "queued", "processing", "in_progress"})
SUCCESS_TAGS = frozenset({"success", "completed", "complete"})
FAILURE_TAGS = frozenset({"failed", "failure", "error"})


class Credential:
    """API key wrapper. The raw key is only reachable through ``value``."""

    __slots__ = ("_value",)

    def __init__(self, value: str) -> None:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("API key must be a non-empty string")
        self._value = value.strip()

    @property
    def value(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return "Credential(***)"

    __str__ = __repr__

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Credential) and other._value == self._value

    def __hash__(self) -> int:
        return hash(self._value)


@dataclass(frozen=True)
class TokenRecord:
    """One token owned by a merchant."""
    id: str
    address: str
    name: str
    symbol: str
    total_supply: int
    starting_app_supply: int
    remaining_app_supply: int
    merchant_supply: int
    merchant_address: str
    price: float

    @classmethod
    def from_wire(cls, obj: Dict[str, Any]) -> Optional["TokenRecord"]:
        """
        Build a record from one decoded list entry.

        Returns None when the entry has no usable ``address``; every other
        field falls back to its default when missing or mistyped.
        """
        address = get_str(obj, "address")
        if not address:
            return None
        return cls(
            id=get_str(obj, "id"),
            address=address,
            name=get_str(obj, "name"),
            symbol=get_str(obj, "symbol"),
            total_supply=get_uint64(obj, "totalSupply"),
            starting_app_supply=get_uint64(obj, "startingAppSupply"),
            remaining_app_supply=get_uint64(obj, "remainingAppSupply"),
            merchant_supply=get_uint64(obj, "merchantSupply"),
            merchant_address=get_str(obj, "merchantAddress"),
            price=get_float(obj, "price"),
        )


@dataclass(frozen=True)
class JobPending:
    pass


@dataclass(frozen=True)
class JobSucceeded:
    result_name: str = ""
    result_address: str = ""


@dataclass(frozen=True)
class JobFailed:
    reason: str = ""


@dataclass(frozen=True)
class JobUnknown:
    raw_tag: str = ""


JobStatus = Union[JobPending, JobSucceeded, JobFailed, JobUnknown]


def decode_job_status(raw: str) -> JobStatus:
    """
    Decode a status body into a JobStatus.

    A body that does not decode to an object is a JobFailed carrying the
    decode error; a missing or unrecognised tag is a JobUnknown.
    """
    result = decode(raw)
    if not result.ok:
        return JobFailed(reason=f"decode_error: {result.error}")
    if not result.is_object:
        return JobFailed(reason="decode_error: status body is not an object")

    body = result.value
    raw_tag = get_str(body, "status")
    tag = raw_tag.strip().lower()

    if tag in PENDING_TAGS:
        return JobPending()
    if tag in SUCCESS_TAGS:
        data = get_object(body, "data")
        return JobSucceeded(
            result_name=get_str(data, "name") or get_str(body, "name"),
            result_address=get_str(data, "address") or get_str(body, "address"),
        )
    if tag in FAILURE_TAGS:
        reason = get_str(body, "error") or get_str(body, "message") or raw_tag
        return JobFailed(reason=reason)
    return JobUnknown(raw_tag=raw_tag)
