#!/usr/bin/env python3
"""Initialize the database for py-railmap."""

from ..config.config import settings
from .connection import db


def main():
    """Initialize the database."""
    try:
        print(f"Initializing database at {settings.database_url}...")
        db.initialize()
        print("✓ Database initialized successfully!")
        print("✓ Tables created")

    except Exception as e:
        print(f"✗ Database initialization failed: {e}")
        import traceback
        traceback.print_exc()
        return False

    return True


if __name__ == "__main__":
    main()
