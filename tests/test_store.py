"""Tests for the SQLAlchemy rail line store."""

from unittest.mock import patch

import pytest
from py_railmap.core.geometry import GridPosition, Segment
from py_railmap.db.connection import Database
from py_railmap.db.store import LineNotFoundError, SegmentStore, validate_color

WORLD = "world"


def pos(x, z, y=64, region=WORLD):
    return GridPosition(x, y, z, region)


def line(segment_id, n, z=0, **kwargs):
    return Segment(id=segment_id, color="#E21836",
                   blocks=frozenset(pos(x, z) for x in range(n)), **kwargs)


@pytest.fixture
def database():
    database = Database(url="sqlite://")
    database.initialize()
    return database


@pytest.fixture
def store(database):
    with database.get_session() as session:
        yield SegmentStore(session)


class TestSegmentRoundTrip:
    """Stored lines come back unchanged."""

    def test_save_and_load(self, database):
        blocks = frozenset([pos(x, 0) for x in range(5)] + [pos(5, 0, y=65)])
        segment = Segment(id="line_1", color="#E21836", blocks=blocks,
                          name="alice's Line: No. 1", created_by="alice",
                          active=False, created_at=1700000000000)

        with database.get_session() as session:
            SegmentStore(session).save_segment(segment)

        with database.get_session() as session:
            loaded = SegmentStore(session).load_segments()

        assert loaded == {"line_1": segment}

    def test_dict_contract(self):
        segment = line("line_1", 3, created_by="bob")
        assert Segment.from_dict(segment.to_dict()) == segment
        assert segment.to_dict()["blocks"][0] == [0, 64, 0, WORLD]


class TestSegmentStore:
    """Test store operations."""

    def test_get_missing(self, store):
        with pytest.raises(LineNotFoundError):
            store.get_segment("nope")

    def test_generate_line_id_is_unique(self, store):
        store.save_segment(line("line_1", 3))
        ids = {store.generate_line_id() for _ in range(50)}

        assert len(ids) == 50
        assert "line_1" not in ids
        assert all(i.startswith("line_") for i in ids)

    def test_assign_permanent_ids(self, store):
        segments = [line("tmp_abc_0", 3), line("tmp_abc_1", 3, z=4)]
        assigned = store.assign_permanent_ids(segments)

        assert all(not s.is_provisional for s in assigned)
        assert len({s.id for s in assigned}) == 2

    def test_provisional_ids_are_rejected(self, store):
        with pytest.raises(ValueError):
            store.save_segment(line("tmp_abc_0", 3))
        with pytest.raises(ValueError):
            store.replace_all_filtered([line("tmp_abc_0", 3)], 2)

    def test_replace_all_filtered(self, store):
        store.save_segment(line("line_old", 4, z=9))
        stored = store.replace_all_filtered(
            [line("line_1", 20), line("line_2", 5, z=3), line("line_3", 1, z=6)], 15
        )

        assert stored == 1
        assert list(store.load_segments()) == ["line_1"]

    def test_replace_all_never_keeps_single_blocks(self, store):
        stored = store.replace_all_filtered([line("line_1", 1), line("line_2", 2, z=3)], 0)
        assert stored == 1
        assert list(store.load_segments()) == ["line_2"]

    def test_replace_after_load(self, store):
        """Replacing lines loaded in the same session keeps the new content."""
        store.save_segment(line("line_1", 4))
        loaded = store.list_segments()
        renamed = Segment(id="line_1", color="#000000", blocks=loaded[0].blocks, name="Main")

        store.replace_all_filtered([renamed], 2)

        assert store.get_segment("line_1").name == "Main"
        assert store.get_segment("line_1").color == "#000000"

    def test_list_segments_oldest_first(self, store):
        store.save_segment(line("line_b", 3, created_at=2))
        store.save_segment(line("line_a", 3, z=4, created_at=1))
        assert [s.id for s in store.list_segments()] == ["line_a", "line_b"]

    def test_remove(self, store):
        store.save_segment(line("line_1", 3))
        removed = store.remove_segment("line_1")

        assert removed.id == "line_1"
        assert store.load_segments() == {}
        with pytest.raises(LineNotFoundError):
            store.remove_segment("line_1")

    def test_rename(self, store):
        store.save_segment(line("line_1", 3))
        assert store.rename_segment("line_1", "  Northern  ").name == "Northern"
        with pytest.raises(ValueError):
            store.rename_segment("line_1", "   ")

    def test_recolor(self, store):
        store.save_segment(line("line_1", 3))
        assert store.recolor_segment("line_1", "#00a4ef").color == "#00A4EF"
        with pytest.raises(ValueError):
            store.recolor_segment("line_1", "blue")

    def test_set_active(self, store):
        store.save_segment(line("line_1", 3))
        assert store.set_active("line_1", False).active is False

    def test_clear(self, store):
        store.save_segment(line("line_1", 3))
        store.clear()
        assert store.load_segments() == {}


@pytest.mark.parametrize("color,valid", [
    ("#FF0000", True), ("#ff00aa", True), ("FF0000", False), ("#FFF", False), ("#GG0000", False),
])
def test_validate_color(color, valid):
    if valid:
        assert validate_color(color) == color.upper()
    else:
        with pytest.raises(ValueError):
            validate_color(color)


def test_uninitialized_database():
    with pytest.raises(RuntimeError):
        with Database(url="sqlite://").get_session():
            pass


def test_init_db_script(database):
    from py_railmap.db import init_db

    with patch("py_railmap.db.init_db.db", database):
        assert init_db.main() is True


def test_init_db_script_failure():
    from py_railmap.db import init_db

    broken = Database(url="notadialect://")
    with patch("py_railmap.db.init_db.db", broken):
        assert init_db.main() is False
