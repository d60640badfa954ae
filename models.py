from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator, Tuple

EMPTY_LABEL = "."

_SIZE_RE = re.compile(r"^\s*(\d+)\s*[x×,]\s*(\d+)\s*[x×,]\s*(\d+)\s*$", re.IGNORECASE)


@dataclass(frozen=True, order=True)
class Point:
    x: int
    y: int
    z: int

    def __add__(self, other: "Point") -> "Point":
        return Point(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Point") -> "Point":
        return Point(self.x - other.x, self.y - other.y, self.z - other.z)

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.x, self.y, self.z)

    def __str__(self) -> str:
        return f"({self.x}, {self.y}, {self.z})"


# A translation applied to a shape's own frame when it is placed.
Position = Point


@dataclass(frozen=True)
class Size:
    x: int
    y: int
    z: int

    @property
    def volume(self) -> int:
        return self.x * self.y * self.z

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.x, self.y, self.z)

    @classmethod
    def parse(cls, text: str) -> "Size":
        m = _SIZE_RE.match(str(text or ""))
        if not m:
            raise ValueError(f"Bad box size: {text!r} (expected e.g. 4x4x2)")
        x, y, z = (int(g) for g in m.groups())
        if x <= 0 or y <= 0 or z <= 0:
            raise ValueError(f"Bad box size: {text!r} (extents must be positive)")
        return cls(x, y, z)

    def __str__(self) -> str:
        return f"{self.x}x{self.y}x{self.z}"


class PieceKind(Enum):
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"
    F = "F"
    G = "G"
    H = "H"
    I = "I"
    J = "J"
    K = "K"
    L = "L"
    M = "M"

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def parse(cls, token) -> "PieceKind":
        if isinstance(token, cls):
            return token
        key = str(token or "").strip().upper()
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown piece kind: {token!r}") from None

    def __str__(self) -> str:
        return self.value


def _normalize(points: Iterable[Point]) -> Tuple[Tuple[Point, ...], Size]:
    pts = list(points)
    min_x = min(p.x for p in pts)
    min_y = min(p.y for p in pts)
    min_z = min(p.z for p in pts)
    shifted = sorted(Point(p.x - min_x, p.y - min_y, p.z - min_z) for p in pts)
    size = Size(
        max(p.x for p in shifted) + 1,
        max(p.y for p in shifted) + 1,
        max(p.z for p in shifted) + 1,
    )
    return tuple(shifted), size


@dataclass(frozen=True, order=True)
class Shape:
    """A rigid piece in canonical form.

    The point tuple is always translated so every axis starts at 0 and sorted
    under :class:`Point` order, so two rotations of one piece compare equal
    exactly when they occupy the same cells.  ``kind`` and ``size`` take no
    part in equality, hashing or ordering.
    """

    points: Tuple[Point, ...]
    kind: PieceKind = field(compare=False)
    size: Size = field(compare=False)

    @classmethod
    def of(cls, kind: PieceKind, points: Iterable) -> "Shape":
        pts = [p if isinstance(p, Point) else Point(*p) for p in points]
        canon, size = _normalize(pts)
        return cls(canon, PieceKind.parse(kind), size)

    def normalized(self) -> "Shape":
        canon, size = _normalize(self.points)
        return Shape(canon, self.kind, size)

    def _mapped(self, fn) -> "Shape":
        canon, size = _normalize(fn(p) for p in self.points)
        return Shape(canon, self.kind, size)

    # 90° turns; each result is re-normalized.
    def rotate_z(self) -> "Shape":
        return self._mapped(lambda p: Point(p.y, -p.x, p.z))

    def rotate_x(self) -> "Shape":
        return self._mapped(lambda p: Point(p.x, p.z, -p.y))

    def rotate_y(self) -> "Shape":
        return self._mapped(lambda p: Point(p.z, p.y, -p.x))

    @property
    def anchor_point(self) -> Point:
        return self.points[0]

    def anchor_for(self, target: Point) -> Position:
        """Translation that puts this shape's smallest point on ``target``."""
        return target - self.points[0]

    def cells_at(self, anchor: Position) -> Iterator[Point]:
        for p in self.points:
            yield anchor + p

    def __len__(self) -> int:
        return len(self.points)

    def __str__(self) -> str:
        pts = " ".join(str(p) for p in self.points)
        return f"ID: {self.kind.label}, size: [{self.size.x}, {self.size.y}, {self.size.z}], points: [ {pts} ]"


@dataclass(frozen=True)
class Placement:
    shape: Shape
    anchor: Position

    @property
    def kind(self) -> PieceKind:
        return self.shape.kind

    def cells(self) -> Iterator[Point]:
        return self.shape.cells_at(self.anchor)
