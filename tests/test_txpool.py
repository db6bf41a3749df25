import random

import pytest

from shardemu.account import AccountRegistry
from shardemu.config import ChainConfig
from shardemu.transaction import AggregateTransaction
from shardemu.txpool import TxPool, deep_copy_txs

# Last five hex digits decide the shard (two shards): ...00002 -> 0, ...00001 -> 1.
OWN_A = bytes.fromhex("aa" * 18 + "0002")
OWN_B = bytes.fromhex("bb" * 18 + "0004")
OTHER = bytes.fromhex("cc" * 18 + "0001")


def make_pool(**overrides):
    config = ChainConfig(shard_num=2, shard_id="S0", **overrides)
    registry = AccountRegistry(shard_num=2, own_shard=0)
    for address in (OWN_A, OWN_B, OTHER):
        registry.addr_to_shard(address.hex())
    return TxPool(config, registry), registry


def tx(sender, recipient, tx_id=0, value=1):
    return AggregateTransaction(sender=sender, recipient=[recipient], value=[value], id=tx_id)


def test_fetch_takes_front_of_queue_up_to_limit():
    pool, _ = make_pool()
    txs = [tx(OWN_A, OWN_B, i) for i in range(5)]
    pool.add_txs(txs)
    packed, queue_len = pool.fetch_txs_to_pack(3, 1)
    assert [t.id for t in packed] == [0, 1, 2]
    assert queue_len == 2
    assert [t.id for t in pool.queue] == [3, 4]


def test_fetch_with_large_limit_empties_queue():
    pool, _ = make_pool()
    pool.add_txs([tx(OWN_A, OWN_B, i) for i in range(2)])
    packed, queue_len = pool.fetch_txs_to_pack(10, 1)
    assert len(packed) == 2
    assert queue_len == 0
    assert len(pool) == 0


def test_fetch_lock_mode_holds_locked_sender():
    pool, registry = make_pool(lock_acc_when_migrating=True)
    registry.locked.add(OWN_A.hex())
    t = tx(OWN_A, OWN_B)
    pool.add_tx(t)
    packed, _ = pool.fetch_txs_to_pack(5, 7)
    assert packed == [t]
    assert pool.locking_pools[OWN_A.hex()] == [t]
    assert t.sen_lock is True
    assert t.lock_time > 0
    assert t.sen_suppose_on_chain == 7


def test_fetch_lock_mode_second_lock_sets_lock_time2():
    pool, registry = make_pool(lock_acc_when_migrating=True)
    registry.locked.add(OWN_B.hex())
    t = tx(OWN_A, OWN_B)
    t.lock_time = 5
    pool.add_tx(t)
    pool.fetch_txs_to_pack(5, 3)
    assert t.lock_time == 5
    assert t.lock_time2 > 0
    assert t.rec_lock is True
    assert t.rec_suppose_on_chain == 3
    assert pool.locking_pools[OWN_B.hex()] == [t]


def test_fetch_relay_lock_holds_a_copy():
    pool, registry = make_pool(lock_acc_when_migrating=True, relay_lock=True)
    registry.locked.add(OWN_B.hex())
    t = tx(OWN_A, OWN_B, tx_id=9)
    pool.add_tx(t)
    packed, _ = pool.fetch_txs_to_pack(5, 2)
    assert packed == [t]
    held = pool.locking_pools[OWN_B.hex()]
    assert len(held) == 1
    assert held[0] is not t
    assert held[0].relay_lock is True
    assert held[0].id == 9
    assert t.relay_lock is False
    assert t.rec_lock is False


def test_fetch_outing_sender_held_before_announcement():
    pool, registry = make_pool()
    registry.outing_before_announce.add(OWN_A.hex())
    t = tx(OWN_A, OWN_B)
    pool.add_tx(t)
    pool.fetch_txs_to_pack(5, 4)
    assert pool.outing_before_announce_pools[OWN_A.hex()] == [t]
    assert t.sen_lock is True
    assert t.sen_suppose_on_chain == 4


def test_fetch_foreign_sender_is_not_held():
    pool, registry = make_pool()
    registry.outing_before_announce.add(OTHER.hex())
    t = tx(OTHER, OWN_B)
    pool.add_tx(t)
    packed, _ = pool.fetch_txs_to_pack(5, 1)
    assert packed == [t]
    assert OTHER.hex() not in pool.outing_before_announce_pools
    assert t.sen_lock is False


def test_random_pick_removes_the_picked_transaction():
    pool, _ = make_pool()
    txs = [tx(OWN_A, OWN_B, i) for i in range(4)]
    pool.add_txs(txs)
    picked = pool.random_pick(random.Random(1))
    assert picked in txs
    assert picked not in pool.queue
    assert len(pool) == 3


def test_random_pick_empty_pool_raises():
    pool, _ = make_pool()
    with pytest.raises(IndexError):
        pool.random_pick(random.Random(0))


def test_inject_keeps_only_own_shard_senders():
    pool, _ = make_pool()
    mine = tx(OWN_A, OTHER, 1)
    theirs = tx(OTHER, OWN_A, 2)
    count = pool.inject([mine, theirs], 0)
    assert count == 1
    assert pool.queue == [mine]
    assert mine.request_time > 0
    assert theirs.request_time == 0


def test_inject_gradually_skips_accounts_gone_after_announcement():
    pool, registry = make_pool(inject_speed=1)
    registry.outing_after_announce.add(OWN_B.hex())
    first = tx(OWN_A, OWN_B, 1)
    gone = tx(OWN_B, OWN_A, 2)
    third = tx(OWN_A, OTHER, 3)
    count = pool.inject_gradually([first, gone, third], 0, interval=0)
    assert count == 2
    assert [t.id for t in pool.queue] == [1, 3]


def test_lock_txs_keeps_queue_and_fills_locking_pool():
    pool, registry = make_pool(lock_acc_when_migrating=True)
    registry.locked.add(OWN_A.hex())
    locked_tx = tx(OWN_A, OWN_B, 1)
    free_tx = tx(OWN_B, OTHER, 2)
    pool.add_txs([locked_tx, free_tx])
    pool.lock_txs()
    assert pool.queue == [locked_tx, free_tx]
    assert pool.locking_pools[OWN_A.hex()] == [locked_tx]
    assert locked_tx.sen_lock is True
    assert free_tx.sen_lock is False


def test_lock_txs_without_lock_mode_uses_outing_pool():
    pool, registry = make_pool()
    registry.outing_before_announce.add(OWN_A.hex())
    t = tx(OWN_A, OWN_B)
    pool.add_tx(t)
    pool.lock_txs()
    assert pool.outing_before_announce_pools[OWN_A.hex()] == [t]
    assert t.lock_time > 0


def test_deep_copy_gives_equal_independent_objects():
    originals = [tx(OWN_A, OWN_B, i) for i in range(3)]
    copies = deep_copy_txs(originals)
    assert copies == originals
    assert all(c is not o for c, o in zip(copies, originals))
    copies[0].id = 99
    assert originals[0].id == 0