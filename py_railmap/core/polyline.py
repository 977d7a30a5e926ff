"""
Polyline simplification for rendering.

A line's blocks are first ordered into a walk, then collapsed so that only
the points where the direction of travel changes are kept.
"""

from typing import Iterable, List, Sequence, Tuple

from .adjacency import build_adjacency
from .geometry import GridPosition
from .line_tracer import rank_candidates


def _direction(a: GridPosition, b: GridPosition) -> Tuple[int, int]:
    return (b.x > a.x) - (b.x < a.x), (b.z > a.z) - (b.z < a.z)


def order_path(blocks: Iterable[GridPosition]) -> List[GridPosition]:
    """
    Order a line's blocks as a walk covering every block once.

    The walk starts at the first endpoint (or the smallest block when the
    line is a loop) and proceeds depth-first, trying straight continuations
    before turns at every step.
    """
    adjacency = build_adjacency(blocks)
    if not adjacency:
        return []

    ordered = sorted(adjacency)
    start = next((p for p in ordered if len(adjacency[p]) == 1), ordered[0])

    path = [start]
    visited = {start}
    # Each frame is (position, iterator over its ranked neighbors)
    stack = [(start, iter(rank_candidates(start, None, adjacency[start])))]

    while stack:
        current, candidates = stack[-1]
        for candidate in candidates:
            if candidate in visited:
                continue
            visited.add(candidate)
            path.append(candidate)
            stack.append((candidate, iter(rank_candidates(candidate, current, adjacency[candidate]))))
            break
        else:
            stack.pop()

    return path


def simplify_path(path: Sequence[GridPosition]) -> List[GridPosition]:
    """Collapse collinear runs of an ordered walk to their end points."""
    if not path:
        return []

    vertices = [path[0]]
    last_direction = (0, 0)

    for previous, current in zip(path, path[1:]):
        direction = _direction(previous, current)
        if direction != last_direction:
            if vertices[-1] != previous:
                vertices.append(previous)
            last_direction = direction

    if vertices[-1] != path[-1]:
        vertices.append(path[-1])

    return vertices


def simplify_polyline(blocks: Iterable[GridPosition]) -> List[GridPosition]:
    """Minimal vertex list for drawing a line's blocks."""
    return simplify_path(order_path(blocks))
