import pytest

from catalog import REFERENCE_BOX, REFERENCE_CATALOG
from orientations import all_orientations, symmetry_order

from data import (
    CHIRAL,
    CROSS_3D,
    CUBE,
    DOMINO,
    L_TROMINO,
    REFERENCE_ORIENTATIONS_ALL,
    REFERENCE_ORIENTATIONS_FILTERED,
    STRAIGHT_TROMINO,
)


@pytest.mark.parametrize("piece, expected", [
    (CHIRAL, 24),
    (CUBE, 1),
    (DOMINO, 3),
    (STRAIGHT_TROMINO, 3),
    (L_TROMINO, 12),
])
def test_orientation_count_depends_on_symmetry(piece, expected):
    oset = all_orientations(piece)
    assert len(oset) == expected
    assert symmetry_order(piece) == 24 // expected


def test_orientations_are_distinct_sorted_and_normalized():
    oset = all_orientations(CHIRAL)
    shapes = list(oset)
    assert len(set(shapes)) == len(shapes)
    assert shapes == sorted(shapes)
    for s in shapes:
        assert s.kind is CHIRAL.kind
        assert len(s) == len(CHIRAL)
        assert min(p.x for p in s.points) == 0
        assert min(p.y for p in s.points) == 0
        assert min(p.z for p in s.points) == 0


def test_orientation_set_contains_input_shape():
    assert CHIRAL in set(all_orientations(CHIRAL))
    assert all_orientations(CHIRAL).cell_count == 5


def test_reference_catalog_counts():
    filtered = [len(all_orientations(s, REFERENCE_BOX.z)) for s in REFERENCE_CATALOG]
    unfiltered = [len(all_orientations(s)) for s in REFERENCE_CATALOG]
    assert filtered == REFERENCE_ORIENTATIONS_FILTERED
    assert unfiltered == REFERENCE_ORIENTATIONS_ALL


def test_height_filter_can_empty_the_set():
    assert len(all_orientations(CROSS_3D)) == 1
    oset = all_orientations(CROSS_3D, max_height=2)
    assert len(oset) == 0
    assert oset.cell_count == 0


def test_rotating_any_orientation_stays_in_the_set():
    members = set(all_orientations(L_TROMINO))
    for s in members:
        assert s.rotate_x() in members
        assert s.rotate_y() in members
        assert s.rotate_z() in members
