import math

import pytest

from shardemu.pagerank import allocate, pagerank, transaction_graph
from shardemu.transaction import AggregateTransaction

A = bytes.fromhex("aa" * 20)
B = bytes.fromhex("bb" * 20)
C = bytes.fromhex("cc" * 20)


def test_transaction_graph_is_symmetric_and_ordered():
    txs = [
        AggregateTransaction(sender=A, recipient=[B, C], value=[1, 2]),
        AggregateTransaction(sender=B, recipient=[A], value=[3]),
    ]
    graph, addrs = transaction_graph(txs)
    assert addrs == [A.hex(), B.hex(), C.hex()]
    assert graph[A.hex()] == {B.hex(): 2, C.hex(): 1}
    assert graph[B.hex()] == {A.hex(): 2}
    assert graph[C.hex()] == {A.hex(): 1}
    for u, nbrs in graph.items():
        for v, w in nbrs.items():
            assert graph[v][u] == w


def test_transaction_graph_empty():
    assert transaction_graph([]) == ({}, [])


def test_self_transfer_counts_twice():
    graph, addrs = transaction_graph([AggregateTransaction(sender=A, recipient=[A], value=[1])])
    assert addrs == [A.hex()]
    assert graph[A.hex()][A.hex()] == 2


def test_allocate_picks_highest_and_skips_nonpositive():
    points = {"a": [0.1, 0.7, 0.2], "b": [0.0, 0.0], "c": [0.5, 0.5]}
    assert allocate(points) == {"a": 1, "c": 0}


def test_allocate_ignores_nan_scores():
    assert allocate({"a": [math.nan, 0.3]}) == {"a": 1}


def test_zero_iterations_gives_zero_scores():
    points = pagerank({}, ["a", "b"], {"a": 0, "b": 1}, 0.5, 0, 2)
    assert points == {"a": [0.0, 0.0], "b": [0.0, 0.0]}


def test_no_damping_scores_sum_to_one_per_shard():
    addr_to_shard = {"a": 0, "b": 0, "c": 1}
    graph = {"a": {"c": 1}, "b": {"c": 1}, "c": {"a": 1, "b": 1}}
    points = pagerank(graph, ["a", "b", "c"], addr_to_shard, 0.0, 3, 2)
    for shard in range(2):
        total = sum(points[addr][shard] for addr in points)
        assert total == pytest.approx(1.0)
    assert points["a"][1] == 0.0
    assert points["a"][0] == points["b"][0]


def test_connected_pair_allocates_to_own_shards_with_small_damping():
    graph = {"a": {"b": 1}, "b": {"a": 1}}
    addr_to_shard = {"a": 0, "b": 1}
    points = pagerank(graph, ["a", "b"], addr_to_shard, 0.2, 5, 2)
    assert all(0.0 <= s <= 1.0 for scores in points.values() for s in scores)
    assert allocate(points) == addr_to_shard


def test_isolated_vertex_gets_nan_with_damping():
    points = pagerank({}, ["a"], {"a": 0}, 0.5, 1, 1)
    assert list(points) == ["a"]
    assert [str(score) for score in points["a"]] == ["nan"]


def test_unknown_neighbour_raises():
    with pytest.raises(KeyError):
        pagerank({"a": {"z": 1}}, ["a"], {"a": 0}, 0.5, 1, 1)