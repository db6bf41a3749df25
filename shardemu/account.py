"""Account addresses, account state and the shard registry."""

from __future__ import annotations

import copy
import hashlib
import json
import re
import threading
from dataclasses import dataclass, field

from cryptography.hazmat.primitives.asymmetric import ec

_SHARD_SUFFIX = re.compile(r"[0-9a-fA-F]{5}")


def _int_bytes(value: int) -> bytes:
    """Big-endian bytes of a non-negative integer, without leading zeros."""
    return value.to_bytes((value.bit_length() + 7) // 8, "big")


def hash_pub_key(pub_key: bytes) -> bytes:
    """Return the 20-byte address derived from a public key."""
    return hashlib.sha256(pub_key).digest()[:20]


def generate_address() -> bytes:
    """Create a fresh P-256 key pair and return its address."""
    private_key = ec.generate_private_key(ec.SECP256R1())
    numbers = private_key.public_key().public_numbers()
    return hash_pub_key(_int_bytes(numbers.x) + _int_bytes(numbers.y))


def addr_to_shard(address: str, shard_num: int) -> int:
    """Map a hex address to a shard by its last five hex digits."""
    if shard_num <= 0:
        raise ValueError("shard_num must be positive")
    suffix = address[-5:]
    if len(address) < 5 or not _SHARD_SUFFIX.fullmatch(suffix):
        raise ValueError(f"invalid address: {address!r}")
    return int(suffix, 16) % shard_num


@dataclass
class AccountState:
    """Balance of an account and where it lives or is moving to."""

    balance: int = 0
    migrate: int = -1
    location: int = 0

    def encode(self) -> bytes:
        return json.dumps(
            {"balance": self.balance, "migrate": self.migrate, "location": self.location},
            separators=(",", ":"),
            sort_keys=True,
        ).encode()

    @classmethod
    def decode(cls, data: bytes) -> AccountState:
        try:
            raw = json.loads(data)
            return cls(
                balance=int(raw["balance"]),
                migrate=int(raw["migrate"]),
                location=int(raw["location"]),
            )
        except (ValueError, TypeError, KeyError) as exc:
            raise ValueError("cannot decode account state") from exc

    def hash(self) -> bytes:
        return hashlib.sha256(self.encode()).digest()


@dataclass
class AccountRegistry:
    """Which shard each account belongs to, as seen by one node."""

    shard_num: int
    own_shard: int
    account_to_shard: dict[str, int] = field(default_factory=dict)
    own_accounts: set[str] = field(default_factory=set)
    balance_before_out: dict[str, int] = field(default_factory=dict)
    outing_before_announce: set[str] = field(default_factory=set)
    outing_after_announce: set[str] = field(default_factory=set)
    locked: set[str] = field(default_factory=set)
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    def addr_to_shard(self, address: str) -> int:
        """Return the shard of an address, placing new addresses by their digits."""
        with self.lock:
            known = self.account_to_shard.get(address)
            if known is not None:
                return known
            shard = addr_to_shard(address, self.shard_num)
            self.account_to_shard[address] = shard
            if shard == self.own_shard:
                self.own_accounts.add(address)
            return shard

    def assign(self, address: str, shard: int) -> None:
        """Move an address to a shard, updating this shard's membership."""
        with self.lock:
            self.account_to_shard[address] = shard
            if shard == self.own_shard:
                self.own_accounts.add(address)
            else:
                self.own_accounts.discard(address)

    def snapshot(self) -> dict[str, int]:
        """Return an independent copy of the address-to-shard mapping."""
        with self.lock:
            return copy.deepcopy(self.account_to_shard)