"""
Map marker construction for rail lines.

Turns stored segments into polyline markers: simplified vertices centered
on their blocks, flattened to a fixed elevation, with the line's style.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

import numpy as np
import structlog

from .geometry import Segment
from .polyline import simplify_polyline

logger = structlog.get_logger()

BLOCK_CENTER = 0.5


@dataclass
class PolylineMarker:
    """A line overlay ready for the map renderer."""
    id: str
    label: str
    region: str
    xs: np.ndarray
    ys: np.ndarray
    zs: np.ndarray
    color: int
    width: int
    opacity: float

    @property
    def vertex_count(self) -> int:
        return len(self.xs)

    def vertices(self) -> List[List[float]]:
        return np.column_stack((self.xs, self.ys, self.zs)).tolist()


def parse_color(hex_color: str) -> int:
    """Convert '#RRGGBB' to an int, black when malformed."""
    try:
        return int(hex_color.lstrip("#"), 16)
    except (AttributeError, ValueError):
        logger.warning("Invalid line color", color=hex_color)
        return 0x000000


def build_marker(segment: Segment, settings) -> Optional[PolylineMarker]:
    """
    Build the polyline marker for one line.

    Args:
        segment: Line to render
        settings: Settings providing marker_y, line_width and line_opacity

    Returns:
        PolylineMarker, or None when the line has fewer than two vertices
    """
    vertices = simplify_polyline(segment.blocks)
    if len(vertices) < 2:
        logger.debug("Line too short to render", line_id=segment.id)
        return None

    coords = np.array([(v.x, v.z) for v in vertices], dtype=np.float64) + BLOCK_CENTER
    return PolylineMarker(
        id=segment.id,
        label=segment.name,
        region=vertices[0].region,
        xs=coords[:, 0],
        ys=np.full(len(vertices), settings.marker_y, dtype=np.float64),
        zs=coords[:, 1],
        color=parse_color(segment.color),
        width=settings.line_width,
        opacity=settings.line_opacity,
    )


def should_render(segment: Segment, player_placed_only: bool = False) -> bool:
    if not segment.active or segment.block_count < 2:
        return False
    return not player_placed_only or segment.created_by is not None


def build_markers(segments: Iterable[Segment], settings) -> List[PolylineMarker]:
    """Build markers for every renderable line."""
    markers = []
    for segment in segments:
        if not should_render(segment, settings.player_placed_only):
            continue
        marker = build_marker(segment, settings)
        if marker is not None:
            markers.append(marker)

    logger.info("Rail markers built", markers=len(markers))
    return markers
