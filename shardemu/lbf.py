"""Load-balanced random fill (LBF) partitioning of the transaction graph."""

from __future__ import annotations

import logging
import random

from shardemu.account import AccountRegistry
from shardemu.graph import Graph

logger = logging.getLogger(__name__)


class LBFState:
    """Fills shards one by one with random vertices until each holds an average load."""

    def __init__(self, alpha: float, shard_num: int, registry: AccountRegistry) -> None:
        if shard_num <= 0:
            raise ValueError("shard_num must be positive")
        self.alpha = alpha
        self.shard_num = shard_num
        self.registry = registry
        self.graph = Graph()
        self.partition_map: dict[str, int] = {}
        self.avg_weight = 0.0

    def add_vertex(self, addr: str) -> None:
        self.graph.add_vertex(addr)

    def add_edge(self, u: str, v: str, directed: bool = False) -> None:
        """Add an edge; a directed one is recorded only at ``v``."""
        self.graph.add_edge(u, v, directed)

    def compute_avg_weight(self) -> float:
        """Set and return the average shard load: total adjacency size over shard count."""
        total = sum(len(neighbours) for neighbours in self.graph.edges.values())
        self.avg_weight = total / self.shard_num
        return self.avg_weight

    def partition(self, rng: random.Random | None = None) -> tuple[list[str], dict[str, int]]:
        """Assign every vertex a shard.

        Returns the addresses whose new shard differs from their registry
        shard, in assignment order, and the new shard of each.
        """
        rng = rng or random.Random()
        self.compute_avg_weight()
        logger.info("average shard weight: %s", self.avg_weight)
        moved: dict[str, int] = {}
        order: list[str] = []
        self.partition_map = {}
        remaining = list(self.graph.vertices)

        def place(vertex: str, shard: int) -> None:
            self.partition_map[vertex] = shard
            if shard != self.registry.addr_to_shard(vertex):
                order.append(vertex)
                moved[vertex] = shard

        for shard in range(self.shard_num - 1):
            load = 0.0
            while load < self.avg_weight and remaining:
                vertex = remaining.pop(rng.randrange(len(remaining)))
                place(vertex, shard)
                load += len(self.graph.neighbors(vertex))
        for vertex in remaining:
            place(vertex, self.shard_num - 1)
        return order, moved