"""
Reconciliation of freshly traced lines with stored lines.

Stored lines are validated against the current world: a line survives as
long as at least half of its blocks still exist. Newly traced lines are
added only when they are mostly not covered by lines already kept, which
makes re-scanning an unchanged region a no-op.
"""

from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Set

import structlog

from .geometry import GridPosition, Segment

logger = structlog.get_logger()

EXISTENCE_THRESHOLD = 0.5
OVERLAP_THRESHOLD = 0.7

StillExists = Callable[[GridPosition], bool]


@dataclass
class MergeResult:
    """Outcome of one merge pass."""
    segments: List[Segment] = field(default_factory=list)
    kept: List[Segment] = field(default_factory=list)
    passed_through: List[Segment] = field(default_factory=list)
    dropped: List[Segment] = field(default_factory=list)
    added: List[Segment] = field(default_factory=list)
    skipped: List[Segment] = field(default_factory=list)


def existence_ratio(segment: Segment, still_exists: StillExists) -> float:
    """Fraction of the segment's blocks still present in the world."""
    if not segment.blocks:
        return 0.0
    present = sum(1 for block in segment.blocks if still_exists(block))
    return present / len(segment.blocks)


def overlap_ratio(segment: Segment, covered: Set[GridPosition]) -> float:
    """Fraction of the segment's blocks already covered by other lines."""
    if not segment.blocks:
        return 0.0
    overlapping = sum(1 for block in segment.blocks if block in covered)
    return overlapping / len(segment.blocks)


def merge_segments(
    new_segments: Iterable[Segment],
    stored_segments: Iterable[Segment],
    still_exists: StillExists,
    region: str,
) -> MergeResult:
    """
    Merge newly traced lines for one region into the stored lines.

    New segments are processed in the given order; each accepted one extends
    the coverage later ones are checked against.

    Args:
        new_segments: Lines traced in this scan, in creation order
        stored_segments: Previously stored lines (any region)
        still_exists: Whether a position is still a rail block right now
        region: Region being reconciled

    Returns:
        MergeResult whose ``segments`` are the kept stored lines followed by
        the accepted new lines
    """
    new_segments = list(new_segments)
    stored_segments = list(stored_segments)
    result = MergeResult()

    logger.info(
        "Merging rail lines",
        region=region,
        new=len(new_segments),
        stored=len(stored_segments),
    )

    # Validate stored lines from this region against the world
    for segment in stored_segments:
        if not segment.in_region(region):
            result.passed_through.append(segment)
            result.segments.append(segment)
            continue

        ratio = existence_ratio(segment, still_exists)
        if ratio >= EXISTENCE_THRESHOLD:
            result.kept.append(segment)
            result.segments.append(segment)
            logger.debug("Stored line validated", line_id=segment.id, existence=round(ratio, 3))
        else:
            result.dropped.append(segment)
            logger.info("Stored line removed", line_id=segment.id, existence=round(ratio, 3))

    covered: Set[GridPosition] = set()
    for segment in result.kept:
        covered.update(block for block in segment.blocks if block.region == region)

    for segment in new_segments:
        if not segment.blocks:
            result.skipped.append(segment)
            continue

        ratio = overlap_ratio(segment, covered)
        if ratio > OVERLAP_THRESHOLD:
            result.skipped.append(segment)
            logger.debug("Skipping duplicate line", line_id=segment.id, overlap=round(ratio, 3))
            continue

        result.added.append(segment)
        result.segments.append(segment)
        covered.update(segment.blocks)
        logger.debug(
            "Added new line",
            line_id=segment.id,
            blocks=segment.block_count,
            overlap=round(ratio, 3),
        )

    logger.info(
        "Merge complete",
        region=region,
        kept=len(result.kept),
        passed_through=len(result.passed_through),
        dropped=len(result.dropped),
        added=len(result.added),
        skipped=len(result.skipped),
    )
    return result
