"""
Database utilities and models.

This package provides:
- SQLAlchemy model for stored rail lines
- Database connection management
- The rail line store
"""

from .connection import Database, db
from .models import Base, RailLineRecord
from .store import SegmentStore, LineNotFoundError, validate_color

__all__ = [
    # Connection management
    'Database', 'db',

    # Models
    'Base', 'RailLineRecord',

    # Store
    'SegmentStore', 'LineNotFoundError', 'validate_color',
]
