"""Enumerate the distinct rotations of a piece."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from models import PieceKind, Shape

# Walk of the rotation group: four turns about x for each of the six facings
# of the piece's x-axis (+x, +y, -x, -y, +z, -z).  Each entry lists the turns
# applied before the next orientation is recorded; 24 records in total.
_TRAVERSAL: Tuple[str, ...] = (
    "", "x", "x", "x",
    "z", "y", "y", "y",
    "z", "x", "x", "x",
    "z", "y", "y", "y",
    "x", "z", "z", "z",
    "xx", "z", "z", "z",
)

_TURNS = {
    "x": Shape.rotate_x,
    "y": Shape.rotate_y,
    "z": Shape.rotate_z,
}


@dataclass(frozen=True)
class OrientationSet:
    kind: PieceKind
    shapes: Tuple[Shape, ...]

    def __len__(self) -> int:
        return len(self.shapes)

    def __iter__(self) -> Iterator[Shape]:
        return iter(self.shapes)

    def __getitem__(self, idx: int) -> Shape:
        return self.shapes[idx]

    @property
    def cell_count(self) -> int:
        return len(self.shapes[0]) if self.shapes else 0


def all_orientations(shape: Shape, max_height: Optional[int] = None) -> OrientationSet:
    """Return every structurally distinct rotation of ``shape``.

    Symmetric pieces collapse to fewer than 24 entries.  When ``max_height`` is
    given, orientations whose z-extent exceeds it are dropped; the result may
    then be empty.
    """
    seen = {}
    current = shape.normalized()
    for step in _TRAVERSAL:
        for turn in step:
            current = _TURNS[turn](current)
        seen.setdefault(current, current)

    shapes = sorted(seen.values())
    if max_height is not None:
        shapes = [s for s in shapes if s.size.z <= max_height]
    return OrientationSet(shape.kind, tuple(shapes))


def symmetry_order(shape: Shape) -> int:
    return 24 // len(all_orientations(shape))
