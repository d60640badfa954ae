from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, List, Optional

from models import PieceKind, Placement, Point, Position, Shape, Size
from solutions import Solution


class GridCorruptedError(RuntimeError):
    """Placement history and occupancy disagree; the search state is unusable."""


class Grid:
    """Dense occupancy index over a fixed box plus a LIFO placement history.

    Cells are stored flattened in scan order, ``index = x*Y*Z + y*Z + z``, so
    the flattened index order equals :class:`Point` order.
    """

    def __init__(self, size: Size):
        self.size = size
        self._yz = size.y * size.z
        self._cells: List[Optional[PieceKind]] = [None] * size.volume
        self.history: List[Placement] = []
        self.filled_count = 0

    # ---------------- addressing ----------------

    def index_of(self, p: Point) -> int:
        return p.x * self._yz + p.y * self.size.z + p.z

    def point_at(self, index: int) -> Point:
        x, rest = divmod(index, self._yz)
        y, z = divmod(rest, self.size.z)
        return Point(x, y, z)

    # ---------------- queries ----------------

    def is_out_of_bound(self, pos: Position) -> bool:
        return (
            pos.x < 0 or pos.x >= self.size.x
            or pos.y < 0 or pos.y >= self.size.y
            or pos.z < 0 or pos.z >= self.size.z
        )

    def owner(self, pos: Position) -> Optional[PieceKind]:
        if self.is_out_of_bound(pos):
            raise IndexError(f"{pos} is outside the {self.size} box")
        return self._cells[self.index_of(pos)]

    def is_occupied(self, pos: Position) -> bool:
        return self.owner(pos) is not None

    @property
    def cells(self) -> List[Optional[PieceKind]]:
        return list(self._cells)

    @property
    def is_full(self) -> bool:
        return self.filled_count == len(self._cells)

    def next_empty_cell(self, cursor: int = 0) -> Optional[int]:
        """First empty flattened index at or after ``cursor``, or ``None``."""
        if cursor >= len(self._cells):
            return None
        try:
            return self._cells.index(None, max(0, cursor))
        except ValueError:
            return None

    def has_duplicate_kind(self) -> bool:
        seen = set()
        for pl in self.history:
            if pl.kind in seen:
                return True
            seen.add(pl.kind)
        return False

    # ---------------- mutation ----------------

    def try_place(self, shape: Shape, anchor: Position) -> bool:
        """Place ``shape`` at ``anchor`` if every covered cell is free.

        Nothing is written unless the whole shape fits.
        """
        targets: List[int] = []
        for cell in shape.cells_at(anchor):
            if self.is_out_of_bound(cell):
                return False
            idx = self.index_of(cell)
            if self._cells[idx] is not None:
                return False
            targets.append(idx)
        for idx in targets:
            self._cells[idx] = shape.kind
        self.filled_count += len(targets)
        self.history.append(Placement(shape, anchor))
        return True

    def undo_last(self) -> Placement:
        if not self.history:
            raise GridCorruptedError("undo_last called with an empty placement history")
        placement = self.history.pop()
        for cell in placement.cells():
            if self.is_out_of_bound(cell) or self._cells[self.index_of(cell)] is not placement.kind:
                raise GridCorruptedError(
                    f"cell {cell} not held by {placement.kind.label} while undoing placement at {placement.anchor}"
                )
            self._cells[self.index_of(cell)] = None
        self.filled_count -= len(placement.shape)
        return placement

    @contextmanager
    def placed(self, shape: Shape, anchor: Position) -> Iterator[bool]:
        """Scoped placement: yields whether it fit, undoes it on exit."""
        ok = self.try_place(shape, anchor)
        try:
            yield ok
        finally:
            if ok:
                self.undo_last()

    def snapshot(self) -> Solution:
        return Solution(self.size, tuple(self._cells), tuple(self.history))
