import pytest

from grid import Grid, GridCorruptedError
from models import PieceKind, Point, Size

from data import DOMINO, L_TROMINO, shape


def test_index_round_trip_matches_point_order():
    g = Grid(Size(2, 3, 4))
    points = [g.point_at(i) for i in range(24)]
    assert points == sorted(points)
    assert g.index_of(Point(1, 2, 3)) == 23
    assert g.index_of(Point(0, 1, 0)) == 4


def test_try_place_and_undo():
    g = Grid(Size(2, 2, 1))
    assert g.try_place(L_TROMINO, Point(0, 0, 0))
    assert g.filled_count == 3
    assert g.owner(Point(1, 0, 0)) is PieceKind.A
    assert not g.is_occupied(Point(1, 1, 0))
    assert g.next_empty_cell() == 3

    pl = g.undo_last()
    assert pl.shape is L_TROMINO
    assert g.filled_count == 0
    assert g.history == []
    assert g.cells == [None] * 4


def test_try_place_rejects_out_of_bound_without_mutation():
    g = Grid(Size(2, 2, 1))
    assert not g.try_place(DOMINO, Point(1, 0, 0))
    assert g.cells == [None] * 4
    assert g.history == []


def test_try_place_rejects_overlap_without_mutation():
    g = Grid(Size(3, 1, 1))
    first = shape("A", (0, 0, 0), (1, 0, 0))
    second = shape("B", (0, 0, 0), (1, 0, 0))
    assert g.try_place(first, Point(0, 0, 0))
    assert not g.try_place(second, Point(1, 0, 0))
    assert g.owner(Point(2, 0, 0)) is None
    assert len(g.history) == 1


def test_owner_out_of_bound_raises():
    g = Grid(Size(1, 1, 1))
    assert g.is_out_of_bound(Point(0, 0, 1))
    assert g.is_out_of_bound(Point(-1, 0, 0))
    with pytest.raises(IndexError):
        g.is_occupied(Point(1, 0, 0))


def test_next_empty_cell_resumes_from_cursor():
    g = Grid(Size(4, 1, 1))
    g.try_place(shape("B", (0, 0, 0)), Point(1, 0, 0))
    assert g.next_empty_cell(0) == 0
    assert g.next_empty_cell(1) == 2
    assert g.next_empty_cell(4) is None
    g.try_place(shape("C", (0, 0, 0), (1, 0, 0)), Point(2, 0, 0))
    assert g.next_empty_cell(2) is None
    assert g.next_empty_cell(0) == 0


def test_undo_on_empty_history_is_fatal():
    with pytest.raises(GridCorruptedError):
        Grid(Size(1, 1, 1)).undo_last()


def test_undo_detects_foreign_owner():
    g = Grid(Size(2, 1, 1))
    g.try_place(DOMINO, Point(0, 0, 0))
    g._cells[1] = PieceKind.B
    with pytest.raises(GridCorruptedError):
        g.undo_last()


def test_placed_context_undoes_on_exit_and_on_error():
    g = Grid(Size(2, 1, 1))
    with g.placed(DOMINO, Point(0, 0, 0)) as ok:
        assert ok
        assert g.is_full
    assert g.filled_count == 0

    with pytest.raises(RuntimeError):
        with g.placed(DOMINO, Point(0, 0, 0)):
            raise RuntimeError("boom")
    assert g.history == []

    with g.placed(DOMINO, Point(1, 0, 0)) as ok:
        assert not ok
    assert g.history == []


def test_snapshot_is_independent_of_later_changes():
    g = Grid(Size(2, 1, 1))
    g.try_place(DOMINO, Point(0, 0, 0))
    snap = g.snapshot()
    g.undo_last()
    assert snap.is_complete
    assert snap.labels() == ("A", "A")
    assert snap.history() == ((PieceKind.A, Point(0, 0, 0)),)


def test_has_duplicate_kind():
    g = Grid(Size(4, 1, 1))
    g.try_place(shape("A", (0, 0, 0), (1, 0, 0)), Point(0, 0, 0))
    assert not g.has_duplicate_kind()
    g.try_place(shape("A", (0, 0, 0), (1, 0, 0)), Point(2, 0, 0))
    assert g.has_duplicate_kind()
