"""Database models for rail line storage."""

from sqlalchemy import BigInteger, Boolean, Column, Integer, JSON, String
from sqlalchemy.orm import declarative_base

from ..core.geometry import GridPosition, Segment

Base = declarative_base()


class RailLineRecord(Base):
    """Stored rail line."""

    __tablename__ = "rail_lines"

    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)
    color = Column(String(7), nullable=False)  # Hex color code

    # Blocks as [x, y, z, region] lists
    blocks = Column(JSON, nullable=False, default=list)
    block_count = Column(Integer, nullable=False, default=0)

    created_by = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(BigInteger, nullable=False)  # epoch milliseconds

    def to_segment(self) -> Segment:
        return Segment(
            id=self.id,
            name=self.name,
            color=self.color,
            blocks=frozenset(GridPosition.from_list(b) for b in self.blocks or []),
            created_by=self.created_by,
            active=self.is_active,
            created_at=self.created_at,
        )

    @classmethod
    def from_segment(cls, segment: Segment) -> "RailLineRecord":
        data = segment.to_dict()
        return cls(
            id=data["id"],
            name=data["name"],
            color=data["color"],
            blocks=data["blocks"],
            block_count=segment.block_count,
            created_by=data["created_by"],
            is_active=data["active"],
            created_at=data["created_at"],
        )
