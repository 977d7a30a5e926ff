"""
Rail line detection and map rendering.
"""

__version__ = "0.1.0"
