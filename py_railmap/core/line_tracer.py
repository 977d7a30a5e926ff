"""
Rail line tracing.

This module partitions a set of rail positions into line segments:
- Phase A walks from every endpoint (one neighbor), following straight
  track first and turning deterministically, stopping at junctions
- Phase B groups whatever the walks left behind (loops, cycles, the far
  side of junctions) into connected clusters

Each position ends up in at most one segment. Walks and clusters with a
single position are discarded.
"""

from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

import structlog

from .adjacency import build_adjacency, degree_counts
from .geometry import (
    GridPosition,
    Segment,
    TFL_PALETTE,
    new_scan_token,
    provisional_id,
)
from .placer import PlacerResolver

logger = structlog.get_logger()

MIN_SEGMENT_BLOCKS = 2
JUNCTION_DEGREE = 3

# Direction categories, best first
STRAIGHT = 0
TURN = 1
BACKTRACK = 2


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def turn_score(current: GridPosition, candidate: GridPosition) -> int:
    """Prefer moving toward +x, then toward +z."""
    return 2 * _sign(candidate.x - current.x) + _sign(candidate.z - current.z)


def direction_rank(
    current: GridPosition, previous: Optional[GridPosition], candidate: GridPosition
) -> Tuple[int, int]:
    """
    Rank a candidate next step; lower sorts first.

    The category comes from the dot product of the incoming x/z direction
    with the outgoing one: positive is straight, zero is a turn, negative
    is backtracking. Within a category the turn score breaks ties.
    """
    if previous is None:
        category = STRAIGHT
    else:
        from_dx = current.x - previous.x
        from_dz = current.z - previous.z
        dot = (candidate.x - current.x) * from_dx + (candidate.z - current.z) * from_dz
        if dot > 0:
            category = STRAIGHT
        elif dot == 0:
            category = TURN
        else:
            category = BACKTRACK
    return category, -turn_score(current, candidate)


def rank_candidates(
    current: GridPosition, previous: Optional[GridPosition], candidates: Iterable[GridPosition]
) -> List[GridPosition]:
    return sorted(candidates, key=lambda c: (direction_rank(current, previous, c), c))


def choose_next(
    current: GridPosition, previous: Optional[GridPosition], candidates: Iterable[GridPosition]
) -> Optional[GridPosition]:
    """Pick the next step of a walk, or None when only backtracking remains."""
    ranked = rank_candidates(current, previous, candidates)
    if not ranked:
        return None
    best = ranked[0]
    if direction_rank(current, previous, best)[0] == BACKTRACK:
        return None
    return best


def walk_from_endpoint(
    start: GridPosition,
    adjacency: Dict[GridPosition, Set[GridPosition]],
    visited: Set[GridPosition],
) -> List[GridPosition]:
    """
    Follow the track from an endpoint until it ends or reaches a junction.

    Every position stepped on is added to ``visited``. A junction reached by
    the walk is included and ends it.
    """
    walk = [start]
    visited.add(start)
    previous = None
    current = start

    while True:
        neighbors = adjacency[current]
        if len(neighbors) >= JUNCTION_DEGREE:
            break

        candidates = [n for n in neighbors if n not in visited]
        next_position = choose_next(current, previous, candidates)
        if next_position is None:
            break

        walk.append(next_position)
        visited.add(next_position)
        previous, current = current, next_position

    return walk


def collect_cluster(
    start: GridPosition,
    adjacency: Dict[GridPosition, Set[GridPosition]],
    visited: Set[GridPosition],
) -> Set[GridPosition]:
    """Depth-first collection of the unvisited component containing ``start``."""
    cluster = set()
    stack = [start]

    while stack:
        position = stack.pop()
        if position in visited:
            continue
        visited.add(position)
        cluster.add(position)
        for neighbor in adjacency.get(position, ()):
            if neighbor not in visited:
                stack.append(neighbor)

    return cluster


def color_for_index(index: int, palette: Sequence[str] = TFL_PALETTE) -> str:
    return palette[index % len(palette)]


class LineTracer:
    """Traces rail positions into line segments."""

    def __init__(
        self,
        resolve_placer: Optional[PlacerResolver] = None,
        palette: Sequence[str] = TFL_PALETTE,
    ):
        """
        Args:
            resolve_placer: Optional majority-vote placer for naming lines
            palette: Colors cycled over lines in creation order
        """
        self.resolve_placer = resolve_placer
        self.palette = tuple(palette)

    def trace(self, positions: Iterable[GridPosition]) -> List[Segment]:
        """
        Partition positions into segments with provisional ids.

        Args:
            positions: Candidate rail positions

        Returns:
            Segments in creation order (walks first, then residual clusters)
        """
        adjacency = build_adjacency(positions)
        if not adjacency:
            return []

        scan_token = new_scan_token()
        visited: Set[GridPosition] = set()
        placer_counts: Dict[str, int] = {}
        segments: List[Segment] = []
        discarded = 0

        ordered = sorted(adjacency)

        # Phase A: directional walks from endpoints
        for position in ordered:
            if position in visited or len(adjacency[position]) != 1:
                continue
            walk = walk_from_endpoint(position, adjacency, visited)
            if len(walk) >= MIN_SEGMENT_BLOCKS:
                segments.append(self._make_segment(walk, len(segments), scan_token, placer_counts))
            else:
                discarded += 1

        walked = len(segments)

        # Phase B: loops and leftovers
        for position in ordered:
            if position in visited:
                continue
            cluster = collect_cluster(position, adjacency, visited)
            if len(cluster) >= MIN_SEGMENT_BLOCKS:
                segments.append(self._make_segment(cluster, len(segments), scan_token, placer_counts))
            else:
                discarded += 1

        logger.info(
            "Rail lines traced",
            positions=len(adjacency),
            walked=walked,
            clustered=len(segments) - walked,
            discarded=discarded,
            **degree_counts(adjacency),
        )
        return segments

    def _make_segment(
        self,
        blocks: Iterable[GridPosition],
        index: int,
        scan_token: str,
        placer_counts: Dict[str, int],
    ) -> Segment:
        blocks = frozenset(blocks)
        segment_id = provisional_id(scan_token, index)
        name = None
        created_by = None

        if self.resolve_placer is not None:
            created_by = self.resolve_placer(blocks)
            if created_by:
                number = placer_counts.get(created_by, 0) + 1
                placer_counts[created_by] = number
                name = f"{created_by}'s Line: No. {number}"

        return Segment(
            id=segment_id,
            color=color_for_index(index, self.palette),
            blocks=blocks,
            name=name,
            created_by=created_by or None,
        )


def trace_lines(
    positions: Iterable[GridPosition],
    resolve_placer: Optional[PlacerResolver] = None,
) -> List[Segment]:
    """Trace positions into segments with the default palette."""
    return LineTracer(resolve_placer=resolve_placer).trace(positions)
