"""Plain and aggregate (multi-recipient) transactions."""

from __future__ import annotations

import base64
import hashlib
import json
from dataclasses import dataclass, field
from typing import Any, TypeVar

from shardemu.codec import decode_record, encode_record

_T = TypeVar("_T")


def _decode_fields(cls: type[_T], data: bytes) -> _T:
    record = decode_record(data)
    if not isinstance(record, dict):
        raise ValueError(f"cannot decode {cls.__name__}: not a record")
    try:
        return cls(**record)
    except TypeError as exc:
        raise ValueError(f"cannot decode {cls.__name__}: {exc}") from exc


def _b64(value: bytes) -> str | None:
    return base64.b64encode(value).decode() if value else None


@dataclass
class Transaction:
    """A transfer from one sender to one recipient."""

    sender: bytes = b""
    recipient: bytes = b""
    tx_hash: bytes = b""
    id: int = 0
    success: bool = False
    is_relay: bool = False
    sen_lock: bool = False
    rec_lock: bool = False
    value: int = 0
    request_time: int = 0
    second_request_time: int = 0
    commit_time: int = 0
    lock_time: int = 0
    unlock_time: int = 0
    lock_time2: int = 0
    unlock_time2: int = 0
    half_lock: bool = False
    rec_suppose_on_chain: int = 0
    sen_suppose_on_chain: int = 0
    relay_lock: bool = False

    def encode(self) -> bytes:
        return encode_record(self)

    @classmethod
    def decode(cls, data: bytes) -> Transaction:
        return _decode_fields(cls, data)

    def hash(self) -> bytes:
        return hashlib.sha256(self.encode()).digest()


@dataclass
class AggregateTransaction:
    """A transfer from one sender to several recipients, one value each."""

    sender: bytes = b""
    recipient: list[bytes] = field(default_factory=list)
    tx_hash: bytes = b""
    id: int = 0
    success: bool = False
    is_relay: bool = False
    sen_lock: bool = False
    rec_lock: bool = False
    value: list[int] = field(default_factory=list)
    request_time: int = 0
    second_request_time: int = 0
    commit_time: int = 0
    lock_time: int = 0
    unlock_time: int = 0
    lock_time2: int = 0
    unlock_time2: int = 0
    half_lock: bool = False
    rec_suppose_on_chain: int = 0
    sen_suppose_on_chain: int = 0
    relay_lock: bool = False

    def encode(self) -> bytes:
        return encode_record(self)

    @classmethod
    def decode(cls, data: bytes) -> AggregateTransaction:
        return _decode_fields(cls, data)

    def hash(self) -> bytes:
        return hashlib.sha256(self.encode()).digest()

    def split(self) -> list[AggregateTransaction]:
        """Break into single-recipient transactions carrying only sender, recipient and value."""
        try:
            pairs = list(zip(self.recipient, self.value, strict=True))
        except ValueError as exc:
            raise ValueError("recipients and values differ in length") from exc
        return [
            AggregateTransaction(sender=self.sender, recipient=[recipient], value=[value])
            for recipient, value in pairs
        ]

    def to_json(self) -> str:
        """Render as JSON with the field names used on the wire."""
        document: dict[str, Any] = {
            "sender": _b64(self.sender),
            "recipient": [_b64(r) for r in self.recipient],
            "TxHash": _b64(self.tx_hash),
            "Id": self.id,
            "Success": self.success,
            "IsRelay": self.is_relay,
            "SenLock": self.sen_lock,
            "RecLock": self.rec_lock,
            "value": list(self.value),
            "RequestTime": self.request_time,
            "Second_RequestTime": self.second_request_time,
            "CommitTime": self.commit_time,
            "LockTime": self.lock_time,
            "UnlockTime": self.unlock_time,
            "LockTime2": self.lock_time2,
            "UnlockTime2": self.unlock_time2,
            "HalfLock": self.half_lock,
            "Rec_Suppose_on_chain": self.rec_suppose_on_chain,
            "Sen_Suppose_on_chain": self.sen_suppose_on_chain,
            "Relay_Lock": self.relay_lock,
        }
        return json.dumps(document, separators=(",", ":"))