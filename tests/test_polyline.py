"""Tests for polyline ordering and simplification."""

import pytest
from py_railmap.core.geometry import GridPosition
from py_railmap.core.polyline import order_path, simplify_path, simplify_polyline

WORLD = "world"


def pos(x, z, y=64):
    return GridPosition(x, y, z, WORLD)


RING = [pos(0, 0), pos(1, 0), pos(2, 0), pos(2, 1),
        pos(2, 2), pos(1, 2), pos(0, 2), pos(0, 1)]


class TestOrderPath:
    """Test ordering a line's blocks into a walk."""

    def test_empty(self):
        assert order_path([]) == []

    def test_single_block(self):
        assert order_path([pos(3, 3)]) == [pos(3, 3)]

    def test_straight_from_endpoint(self):
        blocks = {pos(x, 0) for x in range(5)}
        assert order_path(blocks) == [pos(x, 0) for x in range(5)]

    def test_follows_corner(self):
        blocks = [pos(3, 3), pos(3, 1), pos(0, 0), pos(2, 0), pos(3, 2), pos(1, 0), pos(3, 0)]
        assert order_path(blocks) == [
            pos(0, 0), pos(1, 0), pos(2, 0), pos(3, 0), pos(3, 1), pos(3, 2), pos(3, 3)
        ]

    def test_loop_starts_at_smallest_block(self):
        path = order_path(set(RING))
        assert path == RING

    def test_branches_cover_every_block_once(self):
        blocks = {pos(x, 0) for x in range(5)} | {pos(2, z) for z in range(1, 4)}
        path = order_path(blocks)

        assert len(path) == len(blocks)
        assert set(path) == blocks


class TestSimplify:
    """Test collinear collapse."""

    def test_straight_line_has_two_vertices(self):
        blocks = {pos(x, 0) for x in range(5)}
        assert simplify_polyline(blocks) == [pos(0, 0), pos(4, 0)]

    def test_l_shape_has_three_vertices(self):
        blocks = {pos(x, 0) for x in range(4)} | {pos(3, z) for z in range(1, 4)}
        assert simplify_polyline(blocks) == [pos(0, 0), pos(3, 0), pos(3, 3)]

    def test_slope_does_not_add_vertices(self):
        blocks = [pos(0, 0), pos(1, 0, y=65), pos(2, 0, y=65), pos(3, 0, y=66)]
        assert simplify_polyline(blocks) == [pos(0, 0), pos(3, 0, y=66)]

    def test_loop(self):
        assert simplify_polyline(RING) == [pos(0, 0), pos(2, 0), pos(2, 2), pos(0, 2), pos(0, 1)]

    def test_two_blocks(self):
        assert simplify_polyline([pos(0, 0), pos(0, 1)]) == [pos(0, 0), pos(0, 1)]

    def test_single_block(self):
        assert simplify_polyline([pos(5, 5)]) == [pos(5, 5)]

    def test_empty(self):
        assert simplify_path([]) == []

    def test_staircase_keeps_every_corner(self):
        path = [pos(0, 0), pos(1, 0), pos(1, 1), pos(2, 1), pos(2, 2)]
        assert simplify_path(path) == path

    def test_vertices_are_path_members_in_order(self):
        blocks = {pos(x, 0) for x in range(6)} | {pos(5, z) for z in range(1, 6)} | {pos(x, 5) for x in range(6, 9)}
        path = order_path(blocks)
        vertices = simplify_path(path)

        indices = [path.index(v) for v in vertices]
        assert indices == sorted(indices)
        assert vertices[0] == path[0]
        assert vertices[-1] == path[-1]
        assert len(vertices) == 4
