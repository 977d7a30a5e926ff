"""
Core rail line detection functionality.
"""

from .geometry import GridPosition, Segment, TFL_PALETTE
from .adjacency import build_adjacency
from .line_tracer import LineTracer, trace_lines
from .merge import MergeResult, merge_segments, EXISTENCE_THRESHOLD, OVERLAP_THRESHOLD
from .polyline import order_path, simplify_path, simplify_polyline
from .placer import majority_placer, placer_resolver, safe_placer
from .scan import ScanResult, scan_region, assign_permanent_ids

__all__ = ['GridPosition', 'Segment', 'TFL_PALETTE', 'build_adjacency',
           'LineTracer', 'trace_lines', 'MergeResult', 'merge_segments',
           'EXISTENCE_THRESHOLD', 'OVERLAP_THRESHOLD',
           'order_path', 'simplify_path', 'simplify_polyline',
           'majority_placer', 'placer_resolver', 'safe_placer',
           'ScanResult', 'scan_region', 'assign_permanent_ids']
