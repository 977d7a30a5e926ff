"""
Scan-and-merge pipeline for one region.

Stages:
1. Trace the region's rail positions into lines (provisional ids)
2. Replace provisional ids with permanent ones
3. Merge with the stored lines against the current world snapshot
"""

from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional

import structlog

from .geometry import GridPosition, Segment, positions_in_region
from .line_tracer import LineTracer
from .merge import MergeResult, StillExists, merge_segments
from .placer import PlacerResolver

logger = structlog.get_logger()


@dataclass
class ScanResult:
    """Result of scanning one region."""
    region: str
    rail_blocks: int
    traced: List[Segment] = field(default_factory=list)
    merge: MergeResult = field(default_factory=MergeResult)

    @property
    def segments(self) -> List[Segment]:
        return self.merge.segments

    @property
    def player_placed(self) -> int:
        return sum(1 for segment in self.segments if segment.created_by)


def assign_permanent_ids(segments: Iterable[Segment], allocate_id: Callable[[], str]) -> List[Segment]:
    """Copy provisional segments under ids from ``allocate_id``."""
    assigned = []
    for segment in segments:
        if segment.is_provisional:
            segment = segment.with_id(allocate_id())
        assigned.append(segment)
    return assigned


def scan_region(
    candidates: Iterable[GridPosition],
    region: str,
    stored: Iterable[Segment],
    allocate_id: Callable[[], str],
    still_exists: Optional[StillExists] = None,
    resolve_placer: Optional[PlacerResolver] = None,
) -> ScanResult:
    """
    Trace a region and reconcile it with the stored lines.

    Args:
        candidates: Rail positions found in the region
        region: Region being scanned; positions from other regions are ignored
        stored: All stored lines
        allocate_id: Source of permanent line ids
        still_exists: World check for stored blocks; defaults to membership
            in ``candidates``
        resolve_placer: Optional majority-vote placer for naming lines

    Returns:
        ScanResult with the traced lines and the merge outcome
    """
    rails = positions_in_region(candidates, region)
    logger.info("Scanning region", region=region, rail_blocks=len(rails))

    if still_exists is None:
        still_exists = rails.__contains__

    traced = LineTracer(resolve_placer=resolve_placer).trace(rails)
    traced = assign_permanent_ids(traced, allocate_id)
    merged = merge_segments(traced, stored, still_exists, region)

    result = ScanResult(region=region, rail_blocks=len(rails), traced=traced, merge=merged)
    logger.info(
        "Region scan complete",
        region=region,
        lines=len(result.segments),
        player_placed=result.player_placed,
    )
    return result
