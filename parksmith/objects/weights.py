"""Neighbourhood topology and spatial weights.

NeighborList holds topology only. SpatialWeights pairs a NeighborList with
one weight per edge, so connectivity can be tested independently of the
weighting scheme.
"""

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

import numpy as np
from scipy import sparse

from parksmith.utils.errors import DataValidationError, IsolatedPointError

ROW_SUM_TOLERANCE = 1e-9


@dataclass(frozen=True)
class NeighborList:
    """Mapping from observation index to its neighbour indices.

    Attributes:
        neighbors: One sorted tuple of neighbour indices per observation.
        directed: If False, the relation must be symmetric.
    """

    neighbors: tuple[tuple[int, ...], ...]
    directed: bool = False

    def __post_init__(self) -> None:
        """Validate NeighborList invariants."""
        n = len(self.neighbors)
        normalized = []
        for i, row in enumerate(self.neighbors):
            row = tuple(sorted({int(j) for j in row}))
            for j in row:
                if j < 0 or j >= n:
                    raise DataValidationError(
                        f"Neighbour index {j} of point {i} is outside [0, {n})"
                    )
                if j == i:
                    raise DataValidationError(f"Point {i} lists itself as a neighbour")
            normalized.append(row)
        object.__setattr__(self, "neighbors", tuple(normalized))

        if not self.directed:
            for i, row in enumerate(self.neighbors):
                for j in row:
                    if i not in self.neighbors[j]:
                        raise DataValidationError(
                            f"Neighbour relation is not symmetric: {j} is a neighbour "
                            f"of {i} but not the reverse",
                            suggestion="Pass directed=True or call symmetrize()",
                        )

    @classmethod
    def from_dict(
        cls, mapping: Mapping[int, Iterable[int]], n: Optional[int] = None,
        directed: bool = False,
    ) -> "NeighborList":
        """Build from a {index: neighbours} mapping; missing indices are isolates."""
        if n is None:
            n = max(mapping) + 1 if mapping else 0
        return cls(
            neighbors=tuple(tuple(mapping.get(i, ())) for i in range(n)),
            directed=directed,
        )

    @classmethod
    def from_edges(
        cls, edges: Iterable[tuple[int, int]], n: int
    ) -> "NeighborList":
        """Build a symmetric NeighborList from undirected edges."""
        rows: list[set[int]] = [set() for _ in range(n)]
        for i, j in edges:
            rows[i].add(j)
            rows[j].add(i)
        return cls(neighbors=tuple(tuple(row) for row in rows))

    def __len__(self) -> int:
        return len(self.neighbors)

    def __getitem__(self, index: int) -> tuple[int, ...]:
        return self.neighbors[index]

    @property
    def n_observations(self) -> int:
        """Number of observations."""
        return len(self.neighbors)

    @property
    def cardinalities(self) -> np.ndarray:
        """Number of neighbours per observation."""
        return np.array([len(row) for row in self.neighbors], dtype=np.int64)

    @property
    def isolates(self) -> np.ndarray:
        """Indices of observations with no neighbours."""
        return np.flatnonzero(self.cardinalities == 0)

    @property
    def n_links(self) -> int:
        """Number of directed links (each undirected edge counts twice)."""
        return int(self.cardinalities.sum())

    @property
    def n_edges(self) -> int:
        """Number of edges as returned by edges()."""
        return len(self.edges())

    def edges(self) -> list[tuple[int, int]]:
        """Undirected edges (i < j) for symmetric lists, else directed links."""
        if self.directed:
            return [(i, j) for i, row in enumerate(self.neighbors) for j in row]
        return [(i, j) for i, row in enumerate(self.neighbors) for j in row if i < j]

    def symmetrize(self) -> "NeighborList":
        """Return the symmetric closure as an undirected NeighborList."""
        return NeighborList.from_edges(
            [(i, j) for i, row in enumerate(self.neighbors) for j in row], len(self)
        )

    def to_dict(self) -> dict[int, set[int]]:
        """{index: set of neighbour indices}."""
        return {i: set(row) for i, row in enumerate(self.neighbors)}

    def __repr__(self) -> str:
        """String representation."""
        cards = self.cardinalities
        mean = cards.mean() if len(cards) else 0.0
        return (
            f"NeighborList(n={len(self)}, links={self.n_links}, "
            f"avg_neighbors={mean:.1f}, isolates={len(self.isolates)})"
        )


@dataclass(frozen=True, eq=False)
class SpatialWeights:
    """Spatial weights: topology plus one weight per neighbour link.

    Attributes:
        neighbors: NeighborList topology.
        weights: One weight array per observation, aligned with its neighbours.
        style: 'W' (row-standardized) or 'B' (raw/binary weights).
        zero_policy: If True, observations without neighbours are allowed
            and contribute zero to every statistic.
    """

    neighbors: NeighborList
    weights: tuple[np.ndarray, ...]
    style: str = "W"
    zero_policy: bool = False

    def __post_init__(self) -> None:
        """Validate SpatialWeights invariants."""
        if self.style not in ("W", "B"):
            raise DataValidationError(f"style must be 'W' or 'B', got {self.style!r}")
        if len(self.weights) != len(self.neighbors):
            raise DataValidationError(
                f"weights has {len(self.weights)} rows, neighbours has "
                f"{len(self.neighbors)}"
            )
        rows = []
        for i, (row_neighbors, row_weights) in enumerate(
            zip(self.neighbors.neighbors, self.weights)
        ):
            row_weights = np.array(row_weights, dtype=np.float64)
            if row_weights.shape != (len(row_neighbors),):
                raise DataValidationError(
                    f"Row {i} has {len(row_neighbors)} neighbours but "
                    f"{row_weights.size} weights"
                )
            if not np.all(np.isfinite(row_weights)) or np.any(row_weights < 0):
                raise DataValidationError(f"Row {i} has negative or non-finite weights")
            row_weights.setflags(write=False)
            rows.append(row_weights)
        object.__setattr__(self, "weights", tuple(rows))

        isolates = self.neighbors.isolates
        if len(isolates) and not self.zero_policy:
            raise IsolatedPointError(
                f"{len(isolates)} observation(s) have no neighbours: "
                f"{isolates[:10].tolist()}",
                suggestion="Enable zero_policy to let isolated points contribute zero",
                details={"isolates": isolates.tolist()},
            )

        if self.style == "W":
            sums = self.row_sums
            nonempty = self.neighbors.cardinalities > 0
            if not np.allclose(sums[nonempty], 1.0, atol=ROW_SUM_TOLERANCE):
                raise DataValidationError(
                    "Row-standardized weights must sum to 1 for every row"
                )

    def __len__(self) -> int:
        return len(self.neighbors)

    @property
    def n_observations(self) -> int:
        """Number of observations."""
        return len(self.neighbors)

    @property
    def row_sums(self) -> np.ndarray:
        """Sum of weights per row."""
        return np.array([row.sum() for row in self.weights])

    @property
    def n_isolates(self) -> int:
        """Number of observations with no neighbours."""
        return len(self.neighbors.isolates)

    def to_sparse(self) -> sparse.csr_matrix:
        """Weights as a scipy CSR matrix (n x n)."""
        n = len(self)
        indptr = np.concatenate([[0], np.cumsum(self.neighbors.cardinalities)])
        indices = np.array(
            [j for row in self.neighbors.neighbors for j in row], dtype=np.int64
        )
        data = np.concatenate(self.weights) if n else np.empty(0)
        return sparse.csr_matrix((data, indices, indptr), shape=(n, n))

    def to_dense(self) -> np.ndarray:
        """Weights as a dense array (n x n)."""
        return self.to_sparse().toarray()

    def to_neighbor_list(self) -> NeighborList:
        """Topology rebuilt from the nonzero pattern of the weights matrix."""
        w = self.to_sparse()
        w.eliminate_zeros()
        return NeighborList(
            neighbors=tuple(
                tuple(w.indices[w.indptr[i] : w.indptr[i + 1]]) for i in range(len(self))
            ),
            directed=self.neighbors.directed,
        )

    @property
    def s0(self) -> float:
        """Sum of all weights."""
        return float(sum(row.sum() for row in self.weights))

    @property
    def s1(self) -> float:
        """0.5 * sum_ij (w_ij + w_ji)^2."""
        w = self.to_sparse()
        return float(0.5 * (w + w.T).power(2).sum())

    @property
    def s2(self) -> float:
        """sum_i (w_i. + w_.i)^2."""
        w = self.to_sparse()
        row = np.asarray(w.sum(axis=1)).ravel()
        col = np.asarray(w.sum(axis=0)).ravel()
        return float(np.sum((row + col) ** 2))

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"SpatialWeights(style={self.style}, n={len(self)}, "
            f"links={self.neighbors.n_links}, isolates={self.n_isolates}, "
            f"zero_policy={self.zero_policy})"
        )
