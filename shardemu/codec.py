"""Deterministic byte encoding of records, and Merkle proof containers."""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

_BYTES_TAG = "$bytes"


def _to_plain(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return {_BYTES_TAG: bytes(value).hex()}
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _to_plain(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, dict):
        plain = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"record keys must be strings, not {type(key).__name__}")
            plain[key] = _to_plain(item)
        return plain
    if isinstance(value, (list, tuple)):
        return [_to_plain(item) for item in value]
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    raise TypeError(f"cannot encode value of type {type(value).__name__}")


def _from_plain(value: Any) -> Any:
    if isinstance(value, dict):
        if set(value) == {_BYTES_TAG}:
            tagged = value[_BYTES_TAG]
            if not isinstance(tagged, str):
                raise ValueError("malformed bytes value")
            return bytes.fromhex(tagged)
        return {key: _from_plain(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_from_plain(item) for item in value]
    return value


def encode_record(record: Any) -> bytes:
    """Encode a record (dicts, lists, dataclasses, bytes, scalars) to canonical bytes."""
    return json.dumps(_to_plain(record), separators=(",", ":"), sort_keys=True).encode()


def decode_record(data: bytes) -> Any:
    """Decode bytes produced by :func:`encode_record`."""
    try:
        plain = json.loads(data)
    except (ValueError, TypeError) as exc:
        raise ValueError("cannot decode record") from exc
    return _from_plain(plain)


@dataclass
class ProofDB:
    """Ordered list of (node hash, node encoding) pairs forming a proof."""

    entries: list[tuple[bytes, bytes]] = field(default_factory=list)

    def put(self, key: bytes, value: bytes) -> None:
        self.entries.append((bytes(key), bytes(value)))

    def delete(self, key: bytes) -> bool:
        """Report whether ``key`` is held; proofs are append-only, so nothing is removed."""
        wanted = bytes(key)
        return any(held == wanted for held, _ in self.entries)

    def encode(self) -> bytes:
        return encode_record([[key, value] for key, value in self.entries])

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[tuple[bytes, bytes]]:
        return iter(self.entries)