"""Transaction graph: accounts as vertices, transfers as weighted edges."""

from __future__ import annotations

import copy as _copy
from dataclasses import dataclass, field


@dataclass
class Graph:
    """Adjacency lists plus per-vertex edge weights keyed by vertex index."""

    index: dict[str, int] = field(default_factory=dict)
    vertices: list[str] = field(default_factory=list)
    edges: dict[str, list[str]] = field(default_factory=dict)
    edge_weight: list[dict[int, int]] = field(default_factory=list)

    def __contains__(self, addr: object) -> bool:
        return addr in self.index

    def __len__(self) -> int:
        return len(self.vertices)

    def neighbors(self, addr: str) -> list[str]:
        """Adjacent vertices of ``addr``, repeated once per edge."""
        return self.edges.get(addr, [])

    def add_vertex(self, addr: str) -> None:
        """Add a vertex unless it is already present."""
        if addr not in self.index:
            self.index[addr] = len(self.vertices)
            self.vertices.append(addr)
            self.edge_weight.append({})

    def add_edge(self, u: str, v: str, directed: bool = False) -> None:
        """Add an edge between ``u`` and ``v``.

        An undirected edge is recorded at both ends; a directed one only in
        the adjacency list of ``v``, pointing back to ``u``.
        """
        self.add_vertex(u)
        self.add_vertex(v)
        iu, iv = self.index[u], self.index[v]
        if not directed:
            self.edges.setdefault(u, []).append(v)
            self.edge_weight[iu][iv] = self.edge_weight[iu].get(iv, 0) + 1
        self.edges.setdefault(v, []).append(u)
        self.edge_weight[iv][iu] = self.edge_weight[iv].get(iu, 0) + 1

    def copy(self) -> Graph:
        """Return an independent copy of the graph."""
        return _copy.deepcopy(self)

    def render(self) -> str:
        """Text listing of every vertex followed by its neighbours."""
        lines = [
            f"{v} edge:" + "".join(f" {u}\t" for u in self.neighbors(v)) for v in self.vertices
        ]
        return "\n".join(lines) + "\n\n"