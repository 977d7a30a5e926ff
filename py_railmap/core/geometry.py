"""
Grid positions and rail line segments.

A grid position is one block in one region (world). A segment is a set of
connected rail positions rendered as a single line on the map.
"""

import time
import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Dict, FrozenSet, Iterable, List, NamedTuple, Optional, Tuple

PROVISIONAL_PREFIX = "tmp_"

# TfL tube map colors, assigned to traced lines in creation order
TFL_PALETTE: Tuple[str, ...] = (
    "#E21836",  # Bakerloo
    "#000000",  # Central
    "#FFD300",  # Circle
    "#00B0F0",  # District
    "#EE7C0E",  # Hammersmith & City
    "#A0A5A9",  # Jubilee
    "#F391A0",  # Metropolitan
    "#9B0056",  # Northern
    "#E7A81E",  # Piccadilly
    "#00A4EF",  # Victoria
    "#0019A8",  # Waterloo & City
)


class GridPosition(NamedTuple):
    """A single block coordinate in a region."""
    x: int
    y: int
    z: int
    region: str

    def offset(self, dx: int = 0, dy: int = 0, dz: int = 0) -> "GridPosition":
        return GridPosition(self.x + dx, self.y + dy, self.z + dz, self.region)

    def to_list(self) -> List[Any]:
        return [self.x, self.y, self.z, self.region]

    @classmethod
    def from_list(cls, values) -> "GridPosition":
        x, y, z, region = values
        return cls(int(x), int(y), int(z), str(region))


def now_millis() -> int:
    return int(time.time() * 1000)


def new_scan_token() -> str:
    return uuid.uuid4().hex[:8]


def provisional_id(scan_token: str, index: int) -> str:
    """Scan-local identifier, replaced by a permanent id before persisting."""
    return f"{PROVISIONAL_PREFIX}{scan_token}_{index}"


def is_provisional(segment_id: str) -> bool:
    return segment_id.startswith(PROVISIONAL_PREFIX)


def default_line_name(segment_id: str) -> str:
    return f"Line {segment_id}"


@dataclass(frozen=True)
class Segment:
    """A detected rail line: a connected set of rail blocks.

    Segments are never modified in place; use ``dataclasses.replace`` (or the
    ``with_*`` helpers) to derive an edited copy.
    """
    id: str
    color: str
    blocks: FrozenSet[GridPosition] = field(default_factory=frozenset)
    name: Optional[str] = None
    created_by: Optional[str] = None
    active: bool = True
    created_at: int = field(default_factory=now_millis)

    def __post_init__(self):
        if not isinstance(self.blocks, frozenset):
            object.__setattr__(self, "blocks", frozenset(self.blocks))
        if self.name is None:
            object.__setattr__(self, "name", default_line_name(self.id))

    @property
    def block_count(self) -> int:
        return len(self.blocks)

    @property
    def is_provisional(self) -> bool:
        return is_provisional(self.id)

    @property
    def regions(self) -> FrozenSet[str]:
        return frozenset(block.region for block in self.blocks)

    def in_region(self, region: str) -> bool:
        return any(block.region == region for block in self.blocks)

    def bounding_box(self) -> Optional[Tuple[int, int, int, int]]:
        """Return (min_x, min_z, max_x, max_z), or None for an empty segment."""
        if not self.blocks:
            return None
        xs = [block.x for block in self.blocks]
        zs = [block.z for block in self.blocks]
        return min(xs), min(zs), max(xs), max(zs)

    def with_id(self, segment_id: str) -> "Segment":
        """Copy under a new id; generic names follow the id, owned names are kept."""
        name = self.name
        if self.created_by is None and name == default_line_name(self.id):
            name = default_line_name(segment_id)
        return replace(self, id=segment_id, name=name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "blocks": [block.to_list() for block in sorted(self.blocks)],
            "created_by": self.created_by,
            "active": self.active,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Segment":
        return cls(
            id=data["id"],
            name=data.get("name"),
            color=data["color"],
            blocks=frozenset(GridPosition.from_list(b) for b in data.get("blocks", [])),
            created_by=data.get("created_by"),
            active=data.get("active", True),
            created_at=data.get("created_at", 0),
        )


def positions_in_region(positions: Iterable[GridPosition], region: str) -> FrozenSet[GridPosition]:
    return frozenset(p for p in positions if p.region == region)
