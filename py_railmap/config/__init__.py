"""
Configuration for rail line scanning, storage and rendering.
"""

from .config import Settings, settings

__all__ = ['Settings', 'settings']
