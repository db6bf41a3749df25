"""Messages exchanged while an account migrates between shards."""

from __future__ import annotations

import hashlib
from collections.abc import Callable
from dataclasses import dataclass, fields
from typing import Any, TypeVar

from shardemu.account import AccountState
from shardemu.codec import ProofDB, decode_record, encode_record
from shardemu.transaction import AggregateTransaction

_T = TypeVar("_T")


def _load(data: bytes, cls: type) -> dict[str, Any]:
    record = decode_record(data)
    expected = {f.name for f in fields(cls)}
    if not isinstance(record, dict) or set(record) != expected:
        raise ValueError(f"cannot decode {cls.__name__}: unexpected record layout")
    return record


def _proof_plain(proof: ProofDB | None) -> list[list[bytes]] | None:
    return None if proof is None else [[key, value] for key, value in proof.entries]


def _proof_from(raw: Any) -> ProofDB | None:
    if raw is None:
        return None
    try:
        return ProofDB([(bytes(key), bytes(value)) for key, value in raw])
    except (TypeError, ValueError) as exc:
        raise ValueError("malformed proof") from exc


def _encoded(item: Any) -> bytes | None:
    return None if item is None else item.encode()


def _decoded(raw: Any, decoder: Callable[[bytes], _T]) -> _T | None:
    if raw is None:
        return None
    if not isinstance(raw, bytes):
        raise ValueError("malformed nested record")
    return decoder(raw)


def _sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


@dataclass
class MigrationRequest:
    """Request to move an account out of its current shard."""

    address: str = ""
    from_shard: int = 0
    to_shard: int = 0
    request_time: int = 0
    commit_time: int = 0
    id: int = 0

    def encode(self) -> bytes:
        return encode_record(self)

    @classmethod
    def decode(cls, data: bytes) -> MigrationRequest:
        return cls(**_load(data, cls))

    def hash(self) -> bytes:
        return _sha256(self.encode())


@dataclass
class MigrationTransfer:
    """Moves an account's balance into the target shard, with proofs of the request."""

    request: MigrationRequest | None = None
    request_proof: ProofDB | None = None
    state: AccountState | None = None
    state_proof: ProofDB | None = None
    height: int = 0
    address: str = ""
    value: int = 0

    def encode(self) -> bytes:
        return encode_record(
            {
                "request": _encoded(self.request),
                "request_proof": _proof_plain(self.request_proof),
                "state": _encoded(self.state),
                "state_proof": _proof_plain(self.state_proof),
                "height": self.height,
                "address": self.address,
                "value": self.value,
            }
        )

    @classmethod
    def decode(cls, data: bytes) -> MigrationTransfer:
        record = _load(data, cls)
        return cls(
            request=_decoded(record["request"], MigrationRequest.decode),
            request_proof=_proof_from(record["request_proof"]),
            state=_decoded(record["state"], AccountState.decode),
            state_proof=_proof_from(record["state_proof"]),
            height=record["height"],
            address=record["address"],
            value=record["value"],
        )

    def hash(self) -> bytes:
        return _sha256(self.encode())


@dataclass
class Announcement:
    """Tells the source shard that the account now lives in its target shard."""

    transfer: MigrationTransfer | None = None
    transfer_proof: ProofDB | None = None
    state: AccountState | None = None
    state_proof: ProofDB | None = None
    height: int = 0
    address: str = ""
    to_shard: int = 0

    def encode(self) -> bytes:
        return encode_record(
            {
                "transfer": _encoded(self.transfer),
                "transfer_proof": _proof_plain(self.transfer_proof),
                "state": _encoded(self.state),
                "state_proof": _proof_plain(self.state_proof),
                "height": self.height,
                "address": self.address,
                "to_shard": self.to_shard,
            }
        )

    @classmethod
    def decode(cls, data: bytes) -> Announcement:
        record = _load(data, cls)
        return cls(
            transfer=_decoded(record["transfer"], MigrationTransfer.decode),
            transfer_proof=_proof_from(record["transfer_proof"]),
            state=_decoded(record["state"], AccountState.decode),
            state_proof=_proof_from(record["state_proof"]),
            height=record["height"],
            address=record["address"],
            to_shard=record["to_shard"],
        )

    def hash(self) -> bytes:
        return _sha256(self.encode())


@dataclass
class BalanceSync:
    """Carries the balance change an account saw while it was migrating."""

    announcement: Announcement | None = None
    announcement_proof: ProofDB | None = None
    state: AccountState | None = None
    state_proof: ProofDB | None = None
    height: int = 0
    address: str = ""
    change: int = 0

    def encode(self) -> bytes:
        return encode_record(
            {
                "announcement": _encoded(self.announcement),
                "announcement_proof": _proof_plain(self.announcement_proof),
                "state": _encoded(self.state),
                "state_proof": _proof_plain(self.state_proof),
                "height": self.height,
                "address": self.address,
                "change": self.change,
            }
        )

    @classmethod
    def decode(cls, data: bytes) -> BalanceSync:
        record = _load(data, cls)
        return cls(
            announcement=_decoded(record["announcement"], Announcement.decode),
            announcement_proof=_proof_from(record["announcement_proof"]),
            state=_decoded(record["state"], AccountState.decode),
            state_proof=_proof_from(record["state_proof"]),
            height=record["height"],
            address=record["address"],
            change=record["change"],
        )

    def hash(self) -> bytes:
        return _sha256(self.encode())


@dataclass
class RelayTransaction:
    """A cross-shard transaction forwarded with proofs of its inclusion."""

    tx: AggregateTransaction | None = None
    tx_proof: ProofDB | None = None
    state: AccountState | None = None
    state_proof: ProofDB | None = None
    height: int = 0

    def encode(self) -> bytes:
        return encode_record(
            {
                "tx": _encoded(self.tx),
                "tx_proof": _proof_plain(self.tx_proof),
                "state": _encoded(self.state),
                "state_proof": _proof_plain(self.state_proof),
                "height": self.height,
            }
        )

    @classmethod
    def decode(cls, data: bytes) -> RelayTransaction:
        record = _load(data, cls)
        return cls(
            tx=_decoded(record["tx"], AggregateTransaction.decode),
            tx_proof=_proof_from(record["tx_proof"]),
            state=_decoded(record["state"], AccountState.decode),
            state_proof=_proof_from(record["state_proof"]),
            height=record["height"],
        )