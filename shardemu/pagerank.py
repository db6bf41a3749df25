"""Shard-aware PageRank scoring of accounts and allocation from the scores."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence

from shardemu.transaction import AggregateTransaction


def _neighbour_score(
    neighbours: Mapping[str, int], points: Mapping[str, list[float]], shard: int
) -> float:
    total = 0.0
    count = 0
    for addr, weight in neighbours.items():
        if weight != 0:
            total += weight * points[addr][shard]
            count += weight
    return total / count if count else math.nan


def pagerank(
    graph: Mapping[str, Mapping[str, int]],
    addrs: Sequence[str],
    addr_to_shard: Mapping[str, int],
    damping: float,
    iterations: int,
    shard_num: int,
) -> dict[str, list[float]]:
    """Score every address for every shard.

    Each round sets the score of an address for a shard to
    ``(1 - damping) * w + damping * weighted mean of its neighbours' scores``,
    where ``w`` is ``1 / size of the shard`` for the address's own shard and 0
    otherwise. Scores are updated in place, so later addresses see the new
    values of earlier ones within the same round. Addresses missing from
    ``addr_to_shard`` count as shard 0; an address without weighted
    neighbours gets NaN wherever ``damping`` contributes.
    """
    points = {addr: [0.0] * shard_num for addr in addrs}
    shard_size = [0] * shard_num
    for shard in addr_to_shard.values():
        shard_size[shard] += 1

    for _ in range(iterations):
        for addr in addrs:
            own = addr_to_shard.get(addr, 0)
            neighbours = graph.get(addr, {})
            for shard in range(shard_num):
                if own == shard:
                    w = 1 / shard_size[shard] if shard_size[shard] else math.inf
                else:
                    w = 0.0
                points[addr][shard] = (1 - damping) * w + damping * _neighbour_score(
                    neighbours, points, shard
                )
    return points


def allocate(points: Mapping[str, Sequence[float]]) -> dict[str, int]:
    """Assign each address to its highest-scoring shard.

    Addresses whose scores are all zero or below are left out; on ties the
    lowest shard wins.
    """
    result: dict[str, int] = {}
    for addr, scores in points.items():
        best = 0.0
        for shard, score in enumerate(scores):
            if score > best:
                best = score
                result[addr] = shard
    return result


def transaction_graph(
    txs: Iterable[AggregateTransaction],
) -> tuple[dict[str, dict[str, int]], list[str]]:
    """Build a symmetric weighted graph of hex addresses from transactions.

    Every sender/recipient pair adds one to the weight in both directions.
    Returns the graph and the addresses in order of first appearance.
    """
    graph: dict[str, dict[str, int]] = {}
    addrs: list[str] = []
    seen: set[str] = set()
    for tx in txs:
        sender = tx.sender.hex()
        for recipient_bytes in tx.recipient:
            recipient = recipient_bytes.hex()
            out = graph.setdefault(sender, {})
            out[recipient] = out.get(recipient, 0) + 1
            back = graph.setdefault(recipient, {})
            back[sender] = back.get(sender, 0) + 1
            for addr in (sender, recipient):
                if addr not in seen:
                    seen.add(addr)
                    addrs.append(addr)
    return graph, addrs