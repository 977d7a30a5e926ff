"""
Rail adjacency graph construction.

Two rail blocks are adjacent when one sits at a cardinal offset (±1 in x or
z) from the other, either level or one block up/down to follow slopes.
Diagonal neighbors are never connected.
"""

from typing import Dict, Iterable, List, Set, Tuple

from .geometry import GridPosition

CARDINAL_DIRECTIONS: Tuple[Tuple[int, int], ...] = ((1, 0), (-1, 0), (0, 1), (0, -1))
VERTICAL_OFFSETS: Tuple[int, ...] = (0, 1, -1)


def neighbor_offsets() -> List[Tuple[int, int, int]]:
    """All (dx, dy, dz) offsets a neighbor may sit at."""
    return [
        (dx, dy, dz)
        for dx, dz in CARDINAL_DIRECTIONS
        for dy in VERTICAL_OFFSETS
    ]


def build_adjacency(positions: Iterable[GridPosition]) -> Dict[GridPosition, Set[GridPosition]]:
    """
    Compute the neighbor set of every position against the candidate set.

    Args:
        positions: Candidate rail positions

    Returns:
        Mapping from each position to the candidate positions adjacent to it
    """
    candidates = set(positions)
    offsets = neighbor_offsets()
    adjacency = {}

    for position in candidates:
        neighbors = set()
        for dx, dy, dz in offsets:
            neighbor = position.offset(dx, dy, dz)
            if neighbor in candidates:
                neighbors.add(neighbor)
        adjacency[position] = neighbors

    return adjacency


def degree_counts(adjacency: Dict[GridPosition, Set[GridPosition]]) -> Dict[str, int]:
    """Summarize the graph as endpoint/path/junction/isolated counts for logging."""
    counts = {"isolated": 0, "endpoints": 0, "path": 0, "junctions": 0}
    for neighbors in adjacency.values():
        degree = len(neighbors)
        if degree == 0:
            counts["isolated"] += 1
        elif degree == 1:
            counts["endpoints"] += 1
        elif degree == 2:
            counts["path"] += 1
        else:
            counts["junctions"] += 1
    return counts
