"""Tests for rail adjacency graph construction."""

import pytest
from py_railmap.core.geometry import GridPosition
from py_railmap.core.adjacency import build_adjacency, degree_counts, neighbor_offsets

WORLD = "world"


def pos(x, y, z, region=WORLD):
    return GridPosition(x, y, z, region)


class TestNeighborOffsets:
    """Test the adjacency offset rule."""

    def test_twelve_offsets(self):
        offsets = neighbor_offsets()
        assert len(offsets) == 12
        assert len(set(offsets)) == 12

    def test_no_diagonals(self):
        for dx, dy, dz in neighbor_offsets():
            assert abs(dx) + abs(dz) == 1
            assert dy in (-1, 0, 1)


class TestBuildAdjacency:
    """Test neighbor map construction."""

    def test_empty_input(self):
        assert build_adjacency([]) == {}

    def test_single_position_has_no_neighbors(self):
        adjacency = build_adjacency([pos(0, 64, 0)])
        assert adjacency == {pos(0, 64, 0): set()}

    def test_straight_line(self):
        blocks = [pos(x, 64, 0) for x in range(4)]
        adjacency = build_adjacency(blocks)

        assert adjacency[pos(0, 64, 0)] == {pos(1, 64, 0)}
        assert adjacency[pos(1, 64, 0)] == {pos(0, 64, 0), pos(2, 64, 0)}
        assert adjacency[pos(3, 64, 0)] == {pos(2, 64, 0)}

    def test_slopes_connect(self):
        """Ascending and descending rails connect across one block of height."""
        blocks = [pos(0, 64, 0), pos(1, 65, 0), pos(2, 64, 0)]
        adjacency = build_adjacency(blocks)

        assert adjacency[pos(1, 65, 0)] == {pos(0, 64, 0), pos(2, 64, 0)}

    def test_two_block_height_gap_does_not_connect(self):
        adjacency = build_adjacency([pos(0, 64, 0), pos(1, 66, 0)])
        assert adjacency[pos(0, 64, 0)] == set()

    def test_diagonal_does_not_connect(self):
        adjacency = build_adjacency([pos(0, 64, 0), pos(1, 64, 1)])
        assert adjacency[pos(0, 64, 0)] == set()
        assert adjacency[pos(1, 64, 1)] == set()

    def test_regions_are_separate(self):
        adjacency = build_adjacency([pos(0, 64, 0), pos(1, 64, 0, "nether")])
        assert adjacency[pos(0, 64, 0)] == set()

    def test_neighbors_are_candidates(self):
        blocks = {pos(x, 64, z) for x in range(3) for z in range(3)}
        adjacency = build_adjacency(blocks)

        assert set(adjacency) == blocks
        for neighbors in adjacency.values():
            assert neighbors <= blocks

    def test_input_not_modified(self):
        blocks = {pos(0, 64, 0), pos(1, 64, 0)}
        build_adjacency(blocks)
        assert blocks == {pos(0, 64, 0), pos(1, 64, 0)}


@pytest.mark.parametrize("blocks", [
    [pos(x, 64, 0) for x in range(6)],
    [pos(x, 64 + (x % 2), z) for x in range(4) for z in range(4)],
    [pos(0, 64, 0), pos(1, 65, 0), pos(1, 63, 0), pos(0, 64, 1), pos(-1, 64, 0)],
    [pos(x, 64 + x, 0) for x in range(5)] + [pos(2, 65, 1), pos(2, 67, -1)],
])
def test_adjacency_is_symmetric(blocks):
    adjacency = build_adjacency(blocks)
    candidates = set(blocks)

    for a in candidates:
        for b in candidates:
            assert (b in adjacency[a]) == (a in adjacency[b])


def test_degree_counts():
    # T-shape: junction at (1, 64, 0)
    blocks = [pos(0, 64, 0), pos(1, 64, 0), pos(2, 64, 0), pos(1, 64, 1), pos(9, 64, 9)]
    counts = degree_counts(build_adjacency(blocks))

    assert counts == {"isolated": 1, "endpoints": 3, "path": 0, "junctions": 1}
