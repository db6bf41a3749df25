"""Partitioning through an external METIS partitioner executable."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from shardemu.account import AccountRegistry
from shardemu.graph import Graph

logger = logging.getLogger(__name__)

GRAPH_FILE = "sampleGraph0.txt"
PARTITION_FILE = "MetisPartionGraph0.txt"
DEFAULT_EXECUTABLE = "METIS/partition"


class METISState:
    """Writes the graph in the partitioner's input format and reads its labels back."""

    def __init__(self, alpha: float, shard_num: int, registry: AccountRegistry) -> None:
        if shard_num <= 0:
            raise ValueError("shard_num must be positive")
        self.alpha = alpha
        self.shard_num = shard_num
        self.registry = registry
        self.graph = Graph()
        self.partition_map: dict[str, int] = {}

    def add_vertex(self, addr: str) -> None:
        self.graph.add_vertex(addr)

    def add_edge(self, u: str, v: str, directed: bool = False) -> None:
        """Add an edge; a directed one is recorded only at ``v``."""
        self.graph.add_edge(u, v, directed)

    def write_graph(self, path: str | Path) -> None:
        """Write ``"<vertices> <edges>"`` then one ``"1 idx weight ..."`` line per vertex."""
        if len(self.graph.index) != len(self.graph.vertices):
            raise RuntimeError("vertex index and vertex list differ in size")
        entries = sum(len(weights) for weights in self.graph.edge_weight)
        if entries % 2:
            raise ValueError("edge weights are not symmetric")
        lines = [f"{len(self.graph.vertices)} {entries // 2}\n"]
        for weights in self.graph.edge_weight:
            lines.append("1" + "".join(f" {key} {value}" for key, value in weights.items()) + "\n")
        Path(path).write_text("".join(lines))

    def run_partitioner(
        self, input_path: str | Path, output_path: str | Path, executable: str | Path
    ) -> str | None:
        """Run the partitioner; return its output, or None if it could not run or failed."""
        logger.info("running partitioner %s", executable)
        try:
            completed = subprocess.run(
                [str(executable), str(input_path), str(output_path), str(self.shard_num)],
                capture_output=True,
                check=True,
                text=True,
            )
        except (OSError, subprocess.CalledProcessError) as exc:
            logger.error("partitioner failed: %s", exc)
            return None
        logger.info("partitioner finished")
        return completed.stdout

    def partition(
        self, executable: str | Path = DEFAULT_EXECUTABLE, workdir: str | Path = "."
    ) -> tuple[list[str], dict[str, int]]:
        """Partition with the external tool.

        Returns the addresses whose new shard differs from their registry
        shard, in the order the tool lists them, and the new shard of each.
        """
        workdir = Path(workdir)
        input_path = workdir / GRAPH_FILE
        output_path = workdir / PARTITION_FILE
        self.write_graph(input_path)
        self.run_partitioner(input_path, output_path, executable)

        moved: dict[str, int] = {}
        order: list[str] = []
        with output_path.open() as result:
            for line in result:
                line = line.rstrip("\r\n")
                parts = line.split(" ")
                try:
                    index, shard = int(parts[0]), int(parts[1])
                    vertex = self.graph.vertices[index]
                except (ValueError, IndexError) as exc:
                    raise ValueError(f"malformed partition line: {line!r}") from exc
                if shard != self.registry.addr_to_shard(vertex):
                    order.append(vertex)
                    moved[vertex] = shard
        return order, moved