"""Block headers and blocks."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field, fields
from typing import Any, Callable, TypeVar

from shardemu.codec import decode_record, encode_record
from shardemu.migration import Announcement, BalanceSync, MigrationRequest, MigrationTransfer
from shardemu.transaction import AggregateTransaction

_T = TypeVar("_T")


def _load(data: bytes, cls: type) -> dict[str, Any]:
    record = decode_record(data)
    expected = {f.name for f in fields(cls)}
    if not isinstance(record, dict) or set(record) != expected:
        raise ValueError(f"cannot decode {cls.__name__}: unexpected record layout")
    return record


def _decode_list(raw: Any, decoder: Callable[[bytes], _T]) -> list[_T]:
    if not isinstance(raw, list) or not all(isinstance(item, bytes) for item in raw):
        raise ValueError("malformed list of records")
    return [decoder(item) for item in raw]


@dataclass
class BlockHeader:
    """Header fields that the block hash covers."""

    parent_hash: bytes = b""
    state_root: bytes = b""
    tx_hash: bytes = b""
    mig_hash: bytes = b""
    number: int = 0
    time: int = 0

    def encode(self) -> bytes:
        return encode_record(self)

    @classmethod
    def decode(cls, data: bytes) -> BlockHeader:
        return cls(**_load(data, cls))

    def hash(self) -> bytes:
        return hashlib.sha256(self.encode()).digest()

    def summary(self) -> str:
        """One-line view: parent hash, state root, tx root, number and time."""
        return (
            f"[{self.parent_hash.hex()} {self.state_root.hex()} {self.tx_hash.hex()} "
            f"{self.number} {self.time}]"
        )


@dataclass
class Block:
    """A header with the transactions and migration messages it packs."""

    header: BlockHeader
    transactions: list[AggregateTransaction] = field(default_factory=list)
    mig1s: list[MigrationRequest] = field(default_factory=list)
    mig2s: list[MigrationTransfer] = field(default_factory=list)
    announcements: list[Announcement] = field(default_factory=list)
    balance_syncs: list[BalanceSync] = field(default_factory=list)
    hash: bytes = b""
    fee: float = 0.0

    def encode(self) -> bytes:
        return encode_record(
            {
                "header": self.header.encode(),
                "transactions": [tx.encode() for tx in self.transactions],
                "mig1s": [item.encode() for item in self.mig1s],
                "mig2s": [item.encode() for item in self.mig2s],
                "announcements": [item.encode() for item in self.announcements],
                "balance_syncs": [item.encode() for item in self.balance_syncs],
                "hash": self.hash,
                "fee": self.fee,
            }
        )

    @classmethod
    def decode(cls, data: bytes) -> Block:
        record = _load(data, cls)
        header = record["header"]
        if not isinstance(header, bytes):
            raise ValueError("malformed block header")
        block_hash = record["hash"]
        if not isinstance(block_hash, bytes):
            raise ValueError("malformed block hash")
        return cls(
            header=BlockHeader.decode(header),
            transactions=_decode_list(record["transactions"], AggregateTransaction.decode),
            mig1s=_decode_list(record["mig1s"], MigrationRequest.decode),
            mig2s=_decode_list(record["mig2s"], MigrationTransfer.decode),
            announcements=_decode_list(record["announcements"], Announcement.decode),
            balance_syncs=_decode_list(record["balance_syncs"], BalanceSync.decode),
            hash=block_hash,
            fee=float(record["fee"]),
        )

    def compute_hash(self) -> bytes:
        """The block hash is the hash of its header."""
        return self.header.hash()

    def summary(self, show_migrations: bool = True) -> str:
        lines = [
            "blockHeader: ",
            self.header.summary(),
            f"# of transactions: {len(self.transactions)}",
        ]
        if show_migrations:
            lines += [
                f"# of TXmig1s: {len(self.mig1s)}",
                f"# of TXmig2s: {len(self.mig2s)}",
                f"# of Anns: {len(self.announcements)}",
                f"# of NSs: {len(self.balance_syncs)}",
            ]
        lines += ["blockHash: ", self.hash.hex()]
        return "\n".join(lines)