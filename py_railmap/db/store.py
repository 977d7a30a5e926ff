"""
Rail line storage.

The store owns the persisted line collection. Lines go in and come out as
core Segment objects; the record model stays behind this module.
"""

import re
import uuid
from typing import Dict, Iterable, List, Set

import structlog
from sqlalchemy.orm import Session

from ..core.geometry import Segment
from ..core.line_tracer import MIN_SEGMENT_BLOCKS
from ..core.scan import assign_permanent_ids
from .models import RailLineRecord

logger = structlog.get_logger()

COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")


class LineNotFoundError(KeyError):
    """Raised when a line id is not in the store."""


def validate_color(color: str) -> str:
    """Return the color as upper-case '#RRGGBB' or raise ValueError."""
    if not isinstance(color, str) or not COLOR_PATTERN.match(color):
        raise ValueError(f"Invalid color format: {color!r}. Use hex format like #FF0000")
    return color.upper()


class SegmentStore:
    """Persisted rail lines for one database session."""

    def __init__(self, session: Session):
        """Initialize with database session."""
        self.session = session
        self._issued: Set[str] = set()

    def load_segments(self) -> Dict[str, Segment]:
        """All stored lines keyed by id."""
        return {record.id: record.to_segment() for record in self.session.query(RailLineRecord).all()}

    def list_segments(self) -> List[Segment]:
        """All stored lines, oldest first."""
        records = (
            self.session.query(RailLineRecord)
            .order_by(RailLineRecord.created_at, RailLineRecord.id)
            .all()
        )
        return [record.to_segment() for record in records]

    def _get_record(self, line_id: str) -> RailLineRecord:
        record = self.session.get(RailLineRecord, line_id)
        if record is None:
            raise LineNotFoundError(line_id)
        return record

    def get_segment(self, line_id: str) -> Segment:
        return self._get_record(line_id).to_segment()

    def generate_line_id(self) -> str:
        """Allocate a permanent id not used by any stored or issued line."""
        while True:
            line_id = f"line_{uuid.uuid4().hex[:8]}"
            if line_id in self._issued:
                continue
            if self.session.get(RailLineRecord, line_id) is not None:
                continue
            self._issued.add(line_id)
            return line_id

    def assign_permanent_ids(self, segments: Iterable[Segment]) -> List[Segment]:
        return assign_permanent_ids(segments, self.generate_line_id)

    def save_segment(self, segment: Segment) -> Segment:
        """Insert or update a single line."""
        if segment.is_provisional:
            raise ValueError(f"Line {segment.id} still has a provisional id")
        self.session.merge(RailLineRecord.from_segment(segment))
        self.session.flush()
        return segment

    def replace_all_filtered(self, segments: Iterable[Segment], min_line_length: int) -> int:
        """
        Replace the whole collection, keeping lines of at least min_line_length blocks.

        Returns:
            Number of lines stored
        """
        min_blocks = max(MIN_SEGMENT_BLOCKS, min_line_length)
        kept = {}
        filtered = 0
        for segment in segments:
            if segment.block_count < min_blocks:
                filtered += 1
                continue
            if segment.is_provisional:
                raise ValueError(f"Line {segment.id} still has a provisional id")
            kept[segment.id] = segment

        self.session.query(RailLineRecord).delete()
        # Records loaded earlier in this session must not shadow the new rows
        self.session.expunge_all()
        for segment in kept.values():
            self.session.add(RailLineRecord.from_segment(segment))
        self.session.flush()

        logger.info(
            "Replaced all rail lines",
            stored=len(kept),
            filtered=filtered,
            min_line_length=min_blocks,
        )
        return len(kept)

    def remove_segment(self, line_id: str) -> Segment:
        record = self._get_record(line_id)
        segment = record.to_segment()
        self.session.delete(record)
        self.session.flush()
        logger.info("Rail line removed", line_id=line_id)
        return segment

    def rename_segment(self, line_id: str, name: str) -> Segment:
        name = name.strip()
        if not name:
            raise ValueError("Line name must not be empty")
        record = self._get_record(line_id)
        record.name = name
        self.session.flush()
        return record.to_segment()

    def recolor_segment(self, line_id: str, color: str) -> Segment:
        color = validate_color(color)
        record = self._get_record(line_id)
        record.color = color
        self.session.flush()
        return record.to_segment()

    def set_active(self, line_id: str, active: bool) -> Segment:
        record = self._get_record(line_id)
        record.is_active = active
        self.session.flush()
        return record.to_segment()

    def clear(self) -> None:
        self.session.query(RailLineRecord).delete()
        self.session.flush()
        logger.info("Cleared all rail lines")
