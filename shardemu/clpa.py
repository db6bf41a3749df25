"""Constrained label propagation (CLPA) partitioning of the transaction graph."""

from __future__ import annotations

import logging
import math
from collections import Counter

from shardemu.account import AccountRegistry
from shardemu.graph import Graph

logger = logging.getLogger(__name__)

_INT_MAX = 0x7FFFFFFF
_MAX_MOVES_PER_VERTEX = 1000


def _fdiv(numerator: float, denominator: float) -> float:
    """IEEE division: a zero denominator yields infinity or NaN instead of raising."""
    numerator = float(numerator)
    denominator = float(denominator)
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator)
    return numerator / denominator


class CLPAState:
    """Graph, current labels and the per-shard edge weights the algorithm works on."""

    def __init__(
        self,
        weight_penalty: float,
        max_iterations: int,
        shard_num: int,
        registry: AccountRegistry,
    ) -> None:
        if shard_num <= 0:
            raise ValueError("shard_num must be positive")
        self.weight_penalty = weight_penalty
        self.max_iterations = max_iterations
        self.shard_num = shard_num
        self.registry = registry
        self.graph = Graph()
        self.partition_map: dict[str, int] = {}
        self.edges_to_shard: list[int] = [0] * shard_num
        self.vertices_in_shard: list[int] = [0] * shard_num
        self.min_edges_to_shard = 0
        self.cross_shard_edge_num = 0

    def add_vertex(self, addr: str) -> None:
        """Add a vertex, labelling it with its registry shard if it has no label yet."""
        self.graph.add_vertex(addr)
        if addr not in self.partition_map:
            self.partition_map[addr] = self.registry.addr_to_shard(addr)
        self.vertices_in_shard[self.partition_map[addr]] += 1

    def add_edge(self, u: str, v: str) -> None:
        """Add an undirected edge, adding missing endpoints first."""
        if u not in self.graph:
            self.add_vertex(u)
        if v not in self.graph:
            self.add_vertex(v)
        self.graph.add_edge(u, v)

    def compute_edges_to_shard(self) -> None:
        """Recompute the edge weight of every shard and the cross-shard edge count."""
        edges = [0] * self.shard_num
        internal = [0] * self.shard_num
        for v, neighbours in self.graph.edges.items():
            v_shard = self.partition_map[v]
            for u in neighbours:
                u_shard = self.partition_map[u]
                if v_shard != u_shard:
                    edges[u_shard] += 1
                else:
                    internal[u_shard] += 1
        self.cross_shard_edge_num = sum(edges) // 2
        self.edges_to_shard = [e + i // 2 for e, i in zip(edges, internal)]
        self.min_edges_to_shard = min(self.edges_to_shard, default=_INT_MAX)

    def update_edges_to_shard(self, addr: str, old_shard: int) -> None:
        """Adjust the shard edge weights after ``addr`` moved out of ``old_shard``."""
        v_shard = self.partition_map[addr]
        for u in self.graph.neighbors(addr):
            u_shard = self.partition_map[u]
            if v_shard != u_shard:
                self.edges_to_shard[v_shard] += 1
                if u_shard == old_shard:
                    self.cross_shard_edge_num += 1
                else:
                    self.edges_to_shard[old_shard] -= 1
            else:
                self.edges_to_shard[old_shard] -= 1
                self.cross_shard_edge_num -= 1
        self.min_edges_to_shard = min(self.edges_to_shard)

    def shard_score(self, addr: str, shard: int) -> float:
        """Score of placing ``addr`` in ``shard``: neighbour share times the load penalty."""
        neighbours = self.graph.neighbors(addr)
        to_shard = sum(1 for u in neighbours if self.partition_map.get(u, 0) == shard)
        penalty = 1 - self.weight_penalty * _fdiv(
            self.edges_to_shard[shard], self.min_edges_to_shard
        )
        return _fdiv(to_shard, len(neighbours)) * penalty

    def partition(self) -> tuple[list[str], dict[str, int]]:
        """Run label propagation.

        Returns the moved addresses in order of their first move and the final
        shard of each of them.
        """
        self.compute_edges_to_shard()
        logger.info("cross-shard edges before partition: %d", self.cross_shard_edge_num)
        moved: dict[str, int] = {}
        order: list[str] = []
        moves: Counter[str] = Counter()
        for iteration in range(self.max_iterations):
            for v in self.graph.vertices:
                if moves[v] >= _MAX_MOVES_PER_VERTEX:
                    continue
                scores: dict[int, float] = {}
                max_score = -9999.0
                current = self.partition_map[v]
                best = current
                for u in self.graph.neighbors(v):
                    u_shard = self.partition_map[u]
                    if u_shard in scores:
                        continue
                    scores[u_shard] = self.shard_score(v, u_shard)
                    if max_score < scores[u_shard]:
                        max_score = scores[u_shard]
                        best = u_shard
                if best != current and self.vertices_in_shard[current] > 1:
                    self.partition_map[v] = best
                    if v not in moved:
                        order.append(v)
                    moved[v] = best
                    moves[v] += 1
                    self.vertices_in_shard[current] -= 1
                    self.vertices_in_shard[best] += 1
                    self.update_edges_to_shard(v, current)
            logger.info("iteration %d over", iteration)
        for shard, count in enumerate(self.vertices_in_shard):
            logger.info("%d has vertexs: %d", shard, count)
        return order, moved

    def render(self) -> str:
        """Text dump of the graph, the minimum shard weight, labels and shard weights."""
        labels = "".join(f"{addr} {shard}\t" for addr, shard in self.partition_map.items())
        weights = "".join(f"{weight} " for weight in self.edges_to_shard)
        return f"{self.graph.render()}{self.min_edges_to_shard}\n{labels}{weights}\n"