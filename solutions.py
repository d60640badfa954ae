from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from models import EMPTY_LABEL, PieceKind, Placement, Point, Position, Size

Rotation = Tuple[Tuple[int, int, int], Tuple[int, int, int]]  # (perm, signs)


def _perm_parity(perm: Tuple[int, int, int]) -> int:
    inv = 0
    for i in range(3):
        for j in range(i + 1, 3):
            if perm[i] > perm[j]:
                inv += 1
    return 1 if inv % 2 == 0 else -1


def box_rotations(size: Size) -> List[Rotation]:
    """Proper rotations (det=+1) that map a box of ``size`` onto itself."""
    dims = size.as_tuple()
    out: List[Rotation] = []
    for perm in itertools.permutations((0, 1, 2)):
        if tuple(dims[p] for p in perm) != dims:
            continue
        parity = _perm_parity(perm)
        for signs in itertools.product((1, -1), repeat=3):
            if parity * signs[0] * signs[1] * signs[2] == 1:
                out.append((perm, signs))
    return out


@dataclass(frozen=True)
class Solution:
    """Value snapshot of a grid: cell owners plus the placement history."""

    size: Size
    cells: Tuple[Optional[PieceKind], ...]
    placements: Tuple[Placement, ...]

    def _index(self, p: Point) -> int:
        return (p.x * self.size.y + p.y) * self.size.z + p.z

    def owner(self, p: Point) -> Optional[PieceKind]:
        return self.cells[self._index(p)]

    def labels(self) -> Tuple[str, ...]:
        return tuple(EMPTY_LABEL if k is None else k.label for k in self.cells)

    def history(self) -> Tuple[Tuple[PieceKind, Position], ...]:
        return tuple((pl.kind, pl.anchor) for pl in self.placements)

    @property
    def occupied_count(self) -> int:
        return sum(1 for k in self.cells if k is not None)

    @property
    def is_complete(self) -> bool:
        return all(k is not None for k in self.cells)

    def canonical_key(self) -> Tuple[str, ...]:
        """Smallest label layout over the box's rotational symmetries."""
        sx, sy, sz = self.size.as_tuple()
        dims = (sx, sy, sz)
        labels = self.labels()
        best: Optional[Tuple[str, ...]] = None
        for perm, signs in box_rotations(self.size):
            moved = [EMPTY_LABEL] * len(labels)
            idx = 0
            for x in range(sx):
                for y in range(sy):
                    for z in range(sz):
                        v = (x, y, z)
                        c = [0, 0, 0]
                        for axis in range(3):
                            src = v[perm[axis]]
                            c[axis] = src if signs[axis] > 0 else dims[perm[axis]] - 1 - src
                        moved[(c[0] * sy + c[1]) * sz + c[2]] = labels[idx]
                        idx += 1
            key = tuple(moved)
            if best is None or key < best:
                best = key
        return best if best is not None else labels

    def to_dict(self) -> Dict[str, object]:
        return {
            "box": list(self.size.as_tuple()),
            "cells": list(self.labels()),
            "placements": [
                {"kind": pl.kind.label, "anchor": list(pl.anchor.as_tuple())}
                for pl in self.placements
            ],
        }


class SolutionSink:
    """Ordered collection of complete grids, in discovery order.

    ``on_record`` is called with every new :class:`Solution` so callers can
    stream results; ``limit`` marks the sink full once that many are stored.
    """

    def __init__(
        self,
        on_record: Optional[Callable[[Solution], None]] = None,
        limit: Optional[int] = None,
    ):
        self._solutions: List[Solution] = []
        self._on_record = on_record
        self.limit = limit if (limit is not None and limit > 0) else None

    def record(self, grid) -> Solution:
        return self.add(grid.snapshot())

    def add(self, solution: Solution) -> Solution:
        self._solutions.append(solution)
        if self._on_record is not None:
            self._on_record(solution)
        return solution

    @property
    def solutions(self) -> List[Solution]:
        return list(self._solutions)

    @property
    def full(self) -> bool:
        return self.limit is not None and len(self._solutions) >= self.limit

    def distinct_up_to_symmetry(self) -> List[Solution]:
        seen = set()
        out: List[Solution] = []
        for sol in self._solutions:
            key = sol.canonical_key()
            if key in seen:
                continue
            seen.add(key)
            out.append(sol)
        return out

    def __len__(self) -> int:
        return len(self._solutions)

    def __iter__(self) -> Iterator[Solution]:
        return iter(self._solutions)

    def __getitem__(self, idx: int) -> Solution:
        return self._solutions[idx]
