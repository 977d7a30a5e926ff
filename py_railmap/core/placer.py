"""
Placer attribution for rail lines.

A placer lookup answers "who placed this block?" for one position. A line's
creator is decided by majority vote over its blocks.
"""

from typing import Callable, Dict, Iterable, Optional

import structlog

from .geometry import GridPosition

logger = structlog.get_logger()

Placer = Callable[[GridPosition], Optional[str]]
PlacerResolver = Callable[[Iterable[GridPosition]], Optional[str]]


def majority_placer(placer: Placer, blocks: Iterable[GridPosition]) -> Optional[str]:
    """
    Return the identity that placed the most blocks.

    Blocks are polled in sorted order. On a tie the identity seen first
    wins; a strictly greater count is needed to replace the leader.
    """
    votes: Dict[str, int] = {}
    for block in sorted(blocks):
        identity = placer(block)
        if identity:
            votes[identity] = votes.get(identity, 0) + 1

    best = None
    best_count = 0
    for identity, count in votes.items():
        if count > best_count:
            best = identity
            best_count = count
    return best


def placer_resolver(placer: Optional[Placer]) -> Optional[PlacerResolver]:
    """Wrap a per-block placer lookup into a per-line resolver."""
    if placer is None:
        return None

    def resolve(blocks: Iterable[GridPosition]) -> Optional[str]:
        return majority_placer(placer, blocks)

    return resolve


def safe_placer(placer: Placer) -> Placer:
    """Turn lookup failures into an absent identity."""

    def lookup(position: GridPosition) -> Optional[str]:
        try:
            return placer(position)
        except Exception as e:
            logger.warning("Placer lookup failed", position=tuple(position), error=str(e))
            return None

    return lookup


def no_placer(position: GridPosition) -> Optional[str]:
    return None


def mapping_placer(placements: Dict[GridPosition, str]) -> Placer:
    """Placer backed by a block-history snapshot."""
    return placements.get
