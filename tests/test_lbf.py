import random

import pytest

from shardemu.account import AccountRegistry
from shardemu.lbf import LBFState


def _addr(n: int) -> str:
    return f"{n:040x}"


def _state(shard_num=2):
    return LBFState(0.5, shard_num, AccountRegistry(shard_num=2, own_shard=0))


def _ring(state, count=8):
    addrs = [_addr(n) for n in range(count)]
    for a, b in zip(addrs, addrs[1:] + addrs[:1]):
        state.add_edge(a, b)
    return addrs


def test_rejects_non_positive_shard_num():
    with pytest.raises(ValueError):
        LBFState(0.5, 0, AccountRegistry(shard_num=2, own_shard=0))


def test_avg_weight_of_single_edge():
    state = _state()
    state.add_edge(_addr(0), _addr(1))
    assert state.compute_avg_weight() == pytest.approx(1.0)
    assert state.avg_weight == pytest.approx(1.0)


def test_directed_edge_counts_once():
    state = _state(shard_num=1)
    state.add_edge(_addr(0), _addr(1), directed=True)
    assert state.compute_avg_weight() == pytest.approx(1.0)
    assert state.graph.neighbors(_addr(0)) == []


def test_every_vertex_is_assigned():
    state = _state()
    addrs = _ring(state)
    state.partition(random.Random(3))
    assert set(state.partition_map) == set(addrs)
    assert set(state.partition_map.values()) <= {0, 1}


def test_moved_are_exactly_those_off_their_registry_shard():
    state = _state()
    _ring(state)
    order, moved = state.partition(random.Random(5))
    registry = state.registry
    expected = {
        addr for addr, shard in state.partition_map.items() if shard != registry.addr_to_shard(addr)
    }
    assert set(moved) == expected
    assert set(order) == expected
    assert len(order) == len(set(order))
    assert all(moved[addr] == state.partition_map[addr] for addr in order)


def test_seeded_runs_are_reproducible():
    first, second = _state(), _state()
    _ring(first)
    _ring(second)
    assert first.partition(random.Random(11)) == second.partition(random.Random(11))
    assert first.partition_map == second.partition_map


def test_first_shard_reaches_average_load():
    state = _state()
    _ring(state)
    state.partition(random.Random(2))
    load = sum(
        len(state.graph.neighbors(addr)) for addr, shard in state.partition_map.items() if shard == 0
    )
    assert load >= state.avg_weight


def test_isolated_vertices_all_go_to_last_shard():
    state = _state()
    for n in range(4):
        state.add_vertex(_addr(n))
    order, moved = state.partition(random.Random(1))
    assert set(state.partition_map.values()) == {1}
    assert moved == {_addr(0): 1, _addr(2): 1}
    assert order == [_addr(0), _addr(2)]


def test_single_shard_takes_everything():
    state = _state(shard_num=1)
    _ring(state, 4)
    order, moved = state.partition(random.Random(0))
    assert set(state.partition_map.values()) == {0}
    assert moved == {_addr(1): 0, _addr(3): 0}


def test_graph_is_left_intact():
    state = _state()
    addrs = _ring(state)
    state.partition(random.Random(9))
    assert state.graph.vertices == addrs