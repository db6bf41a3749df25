"""The pool of pending transactions and the per-account holding pools."""

from __future__ import annotations

import copy
import logging
import random
import threading
import time
from collections import defaultdict
from collections.abc import Iterable

from shardemu.account import AccountRegistry
from shardemu.config import ChainConfig
from shardemu.transaction import AggregateTransaction

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _stamp_lock(tx: AggregateTransaction) -> None:
    """Record when the transaction was locked; a second lock goes to lock_time2."""
    if tx.lock_time > 0:
        tx.lock_time2 = _now_ms()
    else:
        tx.lock_time = _now_ms()


class TxPool:
    """FIFO queue of transactions waiting to be packed into blocks."""

    def __init__(self, config: ChainConfig, registry: AccountRegistry) -> None:
        self.config = config
        self.registry = registry
        self.queue: list[AggregateTransaction] = []
        self.relay_pools: defaultdict[str, list[AggregateTransaction]] = defaultdict(list)
        self.migration_pool: dict[str, int] = {}
        # Transactions sent by accounts leaving this shard, before the announcement.
        self.outing_before_announce_pools: defaultdict[str, list[AggregateTransaction]] = (
            defaultdict(list)
        )
        # Transactions of leaving accounts that arrive after the announcement.
        self.outing_after_announce_pools: defaultdict[str, list[AggregateTransaction]] = (
            defaultdict(list)
        )
        # Transactions touching accounts locked for migration.
        self.locking_pools: defaultdict[str, list[AggregateTransaction]] = defaultdict(list)
        # Relay transactions for accounts arriving after the announcement.
        self.coming_pools: defaultdict[str, list[AggregateTransaction]] = defaultdict(list)
        self.lock = threading.RLock()
        self.relay_pool_lock = threading.RLock()

    def __len__(self) -> int:
        return len(self.queue)

    def add_tx(self, tx: AggregateTransaction) -> None:
        with self.lock:
            self.queue.append(tx)

    def add_txs(self, txs: Iterable[AggregateTransaction]) -> None:
        with self.lock:
            self.queue.extend(txs)

    def _belongs_here(self, tx: AggregateTransaction, shard_id: int) -> bool:
        return self.registry.addr_to_shard(tx.sender.hex()) == shard_id

    def inject(self, txs: Iterable[AggregateTransaction], shard_id: int) -> int:
        """Add every transaction whose sender lives in ``shard_id``; return how many."""
        logger.debug("injecting transactions into shard %d", shard_id)
        injected = 0
        with self.lock:
            for tx in txs:
                if self._belongs_here(tx, shard_id):
                    tx.request_time = _now_ms()
                    self.queue.append(tx)
                    injected += 1
        return injected

    def inject_gradually(
        self, txs: Iterable[AggregateTransaction], shard_id: int, interval: float = 1.0
    ) -> int:
        """Inject ``config.inject_speed`` transactions after every ``interval`` seconds.

        Senders that already left the shard after an announcement are skipped
        unless the chain stops while migrating. Returns the number injected.
        """
        pending = list(txs)
        injected = 0
        position = 0
        while True:
            time.sleep(interval)
            upper = min(position + self.config.inject_speed, len(pending))
            with self.lock:
                for tx in pending[position:upper]:
                    sender = tx.sender.hex()
                    if not self.config.stop_when_migrating:
                        with self.registry.lock:
                            gone = sender in self.registry.outing_after_announce
                        if gone:
                            continue
                    if self._belongs_here(tx, shard_id):
                        tx.request_time = _now_ms()
                        self.queue.append(tx)
                        injected += 1
            position = upper
            if position == len(pending):
                logger.info("injection into shard %d finished", shard_id)
                return injected

    def random_pick(self, rng: random.Random | None = None) -> AggregateTransaction:
        """Remove and return a randomly chosen transaction."""
        rng = rng or random.Random()
        with self.lock:
            if not self.queue:
                raise IndexError("pick from an empty transaction pool")
            index = rng.randrange(len(self.queue))
            return self.queue.pop(index)

    def _hold_for_lock(
        self, tx: AggregateTransaction, sender: str, recipient: str, block_number: int
    ) -> bool:
        """Apply lock-mode holding rules; True means skip the rest for this recipient."""
        config = self.config
        locked = self.registry.locked
        if sender in locked and not tx.is_relay and not tx.relay_lock:
            _stamp_lock(tx)
            tx.sen_lock = True
            if config.not_lock_immediately and tx.sen_suppose_on_chain == 0:
                tx.sen_suppose_on_chain = block_number
            self.locking_pools[sender].append(tx)
            return True
        if recipient in locked:
            if not config.relay_lock:
                _stamp_lock(tx)
                tx.rec_lock = True
                if config.not_lock_immediately and tx.rec_suppose_on_chain == 0:
                    tx.rec_suppose_on_chain = block_number
                self.locking_pools[recipient].append(tx)
                return True
            held = AggregateTransaction.decode(tx.encode())
            _stamp_lock(held)
            held.rec_lock = True
            if config.not_lock_immediately and held.rec_suppose_on_chain == 0:
                held.rec_suppose_on_chain = block_number
            held.relay_lock = True
            self.locking_pools[recipient].append(held)
        return False

    def fetch_txs_to_pack(
        self, limit: int, block_number: int
    ) -> tuple[list[AggregateTransaction], int]:
        """Take up to ``limit`` transactions from the front of the queue.

        Transactions touching locked or leaving accounts are also recorded in
        the matching holding pool. Returns the packed transactions and the
        length of the queue that remains.
        """
        logger.debug("left_count: %d", limit)
        config = self.config
        registry = self.registry
        packed: list[AggregateTransaction] = []
        with self.lock:
            remaining = limit if len(self.queue) >= limit else len(self.queue)
            consumed = 0
            for tx in self.queue:
                if remaining == 0:
                    break
                consumed += 1
                sender = tx.sender.hex()
                relayed = tx.is_relay or tx.relay_lock
                for recipient_bytes in tx.recipient:
                    recipient = recipient_bytes.hex()
                    with registry.lock:
                        if (sender not in registry.own_accounts and not relayed) or (
                            recipient not in registry.own_accounts and relayed
                        ):
                            continue
                        if config.lock_acc_when_migrating:
                            if self._hold_for_lock(tx, sender, recipient, block_number):
                                continue
                        elif not config.stop_when_migrating:
                            if sender in registry.outing_before_announce:
                                _stamp_lock(tx)
                                tx.sen_lock = True
                                if config.not_lock_immediately and tx.sen_suppose_on_chain == 0:
                                    tx.sen_suppose_on_chain = block_number
                                self.outing_before_announce_pools[sender].append(tx)
                                continue
                packed.append(tx)
                remaining -= 1
            del self.queue[:consumed]
            return packed, len(self.queue)

    def lock_txs(self) -> None:
        """Copy queued transactions touching locked or leaving accounts into holding pools."""
        registry = self.registry
        lock_mode = self.config.lock_acc_when_migrating
        with self.relay_pool_lock, self.lock, registry.lock:
            for tx in self.queue:
                sender = tx.sender.hex()
                relayed = tx.is_relay or tx.relay_lock
                for recipient_bytes in tx.recipient:
                    recipient = recipient_bytes.hex()
                    if lock_mode:
                        if not relayed and sender in registry.locked:
                            _stamp_lock(tx)
                            tx.sen_lock = True
                            self.locking_pools[sender].append(tx)
                            continue
                        if recipient in registry.locked and (
                            sender in registry.own_accounts or relayed
                        ):
                            _stamp_lock(tx)
                            tx.rec_lock = True
                            self.locking_pools[recipient].append(tx)
                            continue
                    else:
                        if not relayed and sender in registry.outing_before_announce:
                            _stamp_lock(tx)
                            self.outing_before_announce_pools[sender].append(tx)
                            continue


def deep_copy_txs(txs: Iterable[AggregateTransaction]) -> list[AggregateTransaction]:
    """Return new transaction objects with the same field values.

    Recipient and value lists are shared with the originals.
    """
    return [copy.copy(tx) for tx in txs]