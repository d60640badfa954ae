from catalog import REFERENCE_BOX, REFERENCE_CATALOG
from grid import Grid
from models import Point, Size
from orientations import all_orientations
from solutions import SolutionSink, box_rotations
from solver.backtrack import enumerate_packings

from data import DOMINO, REFERENCE_DISTINCT_COUNT, REFERENCE_SOLUTION_COUNT, shape


def test_box_rotation_counts():
    assert len(box_rotations(Size(3, 3, 3))) == 24
    assert len(box_rotations(Size(4, 4, 2))) == 8
    assert len(box_rotations(Size(2, 3, 4))) == 4


def test_sink_keeps_order_and_duplicates():
    g = Grid(Size(2, 1, 1))
    g.try_place(DOMINO, Point(0, 0, 0))
    sink = SolutionSink()
    first = sink.record(g)
    second = sink.record(g)
    assert len(sink) == 2
    assert list(sink) == [first, second]
    assert sink[0] is first
    assert first == second


def test_sink_limit_marks_full():
    g = Grid(Size(1, 1, 1))
    sink = SolutionSink(limit=1)
    assert not sink.full
    sink.record(g)
    assert sink.full
    assert not SolutionSink(limit=0).full


def test_mirror_images_collapse_under_box_symmetry():
    box = Size(2, 1, 1)
    a = shape("A", (0, 0, 0))
    b = shape("B", (0, 0, 0))
    sink = SolutionSink()
    for first, second in ((a, b), (b, a)):
        g = Grid(box)
        g.try_place(first, Point(0, 0, 0))
        g.try_place(second, Point(1, 0, 0))
        sink.record(g)
    assert len(sink) == 2
    assert len(sink.distinct_up_to_symmetry()) == 1


def test_reference_catalog_is_one_packing_up_to_symmetry():
    sets = [all_orientations(s, REFERENCE_BOX.z) for s in REFERENCE_CATALOG]
    sink = enumerate_packings(REFERENCE_BOX, sets, max_solutions=-1, node_limit=-1, max_seconds=0)
    assert len(sink) == REFERENCE_SOLUTION_COUNT
    distinct = sink.distinct_up_to_symmetry()
    assert len(distinct) == REFERENCE_DISTINCT_COUNT
    assert distinct[0] is sink[0]
    keys = {s.canonical_key() for s in sink}
    assert len(keys) == 1


def test_to_dict_shape():
    g = Grid(Size(2, 1, 1))
    g.try_place(DOMINO, Point(0, 0, 0))
    d = g.snapshot().to_dict()
    assert d == {
        "box": [2, 1, 1],
        "cells": ["A", "A"],
        "placements": [{"kind": "A", "anchor": [0, 0, 0]}],
    }


def test_partial_snapshot_reports_occupancy():
    g = Grid(Size(3, 1, 1))
    g.try_place(DOMINO, Point(1, 0, 0))
    snap = g.snapshot()
    assert snap.occupied_count == 2
    assert not snap.is_complete
    assert snap.labels() == (".", "A", "A")
    assert snap.owner(Point(0, 0, 0)) is None
