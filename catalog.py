# catalog.py: piece catalog parsing and validation
from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

from models import PieceKind, Point, Shape, Size

_COMPACT_RE = re.compile(r"^\d{3}$")
_SIGNED_RE = re.compile(r"^\(?\s*(-?\d+)\s*,\s*(-?\d+)\s*,\s*(-?\d+)\s*\)?$")
_LINE_RE = re.compile(r"^\s*(?P<kind>[A-Za-z])\s*[:=]\s*(?P<points>.*)$")
# A parenthesized point may contain spaces; anything else splits on whitespace or ";".
_POINT_TOKEN_RE = re.compile(r"\([^)]*\)|[^\s;]+")


def _catalog(entries: Sequence[Tuple[str, Sequence[str]]]) -> Tuple[Shape, ...]:
    return tuple(Shape.of(PieceKind.parse(k), [parse_point(t) for t in pts]) for k, pts in entries)


def parse_point(token: Any) -> Point:
    """``"012"`` (one digit per axis), ``"x,y,z"`` or a 3-sequence of ints."""
    if isinstance(token, Point):
        return token
    if isinstance(token, (list, tuple)):
        if len(token) != 3:
            raise ValueError(f"Bad point: {token!r} (expected 3 coordinates)")
        return Point(*(int(v) for v in token))
    text = str(token or "").strip()
    if _COMPACT_RE.match(text):
        return Point(int(text[0]), int(text[1]), int(text[2]))
    m = _SIGNED_RE.match(text)
    if m:
        return Point(*(int(g) for g in m.groups()))
    raise ValueError(f"Bad point: {token!r} (expected e.g. 012 or 0,1,2)")


def _as_listish(val: Any) -> List[Any]:
    if val is None:
        return []
    if isinstance(val, (list, tuple)):
        return list(val)
    if isinstance(val, str):
        return _POINT_TOKEN_RE.findall(val)
    return [val]


def _piece(kind: Any, points: Any) -> Shape:
    pts = [parse_point(t) for t in _as_listish(points)]
    if not pts:
        raise ValueError(f"Piece {kind!r} has no points")
    return Shape.of(PieceKind.parse(kind), pts)


def parse_catalog(obj: Any) -> Tuple[List[Shape], Optional[str]]:
    """
    Return (pieces, error_message_or_None).  Catalog order is preserved: it
    drives the order in which the search tries pieces.
    """
    if not obj:
        return [], "empty catalog"

    try:
        # --- Shape 1: {"pieces": [{"kind": "A", "points": [...]}, ...]} ---
        if isinstance(obj, dict) and isinstance(obj.get("pieces"), list):
            obj = obj["pieces"]

        # --- Shape 2: list of piece dicts -----------------------------------
        if isinstance(obj, (list, tuple)):
            pieces = []
            for entry in obj:
                if isinstance(entry, Shape):
                    pieces.append(entry)
                    continue
                if not isinstance(entry, dict):
                    return [], f"bad catalog entry: {entry!r}"
                pieces.append(_piece(entry.get("kind") or entry.get("id"), entry.get("points")))
            return (pieces, None) if pieces else ([], "empty catalog")

        # --- Shape 3: {"A": [...], "B": [...]} ------------------------------
        if isinstance(obj, dict):
            pieces = [_piece(k, v) for k, v in obj.items()]
            return (pieces, None) if pieces else ([], "empty catalog")

        # --- Shape 4: text lines "A: 000 100 010" ---------------------------
        if isinstance(obj, str):
            pieces = []
            for lineno, line in enumerate(obj.splitlines(), 1):
                line = line.split("#", 1)[0].strip()
                if not line:
                    continue
                m = _LINE_RE.match(line)
                if not m:
                    return [], f"line {lineno}: expected 'K: xyz xyz ...'"
                pieces.append(_piece(m.group("kind"), m.group("points")))
            return (pieces, None) if pieces else ([], "empty catalog")
    except (TypeError, ValueError) as e:
        return [], str(e)

    return [], f"unsupported catalog type: {type(obj).__name__}"


def parse_box(obj: Any) -> Size:
    """``"4x4x2"``, ``[4, 4, 2]`` or ``{"x": 4, "y": 4, "z": 2}``."""
    if isinstance(obj, Size):
        return obj
    if isinstance(obj, dict):
        try:
            vals = [int(obj[k]) for k in ("x", "y", "z")]
        except (KeyError, TypeError, ValueError):
            raise ValueError(f"Bad box size: {obj!r}") from None
    elif isinstance(obj, (list, tuple)):
        if len(obj) != 3:
            raise ValueError(f"Bad box size: {obj!r} (expected 3 extents)")
        try:
            vals = [int(v) for v in obj]
        except (TypeError, ValueError):
            raise ValueError(f"Bad box size: {obj!r}") from None
    else:
        return Size.parse(obj)
    if any(v <= 0 for v in vals):
        raise ValueError(f"Bad box size: {obj!r} (extents must be positive)")
    return Size(*vals)


def validate_catalog(pieces: Sequence[Shape], size: Optional[Size] = None) -> Optional[str]:
    """Return a human-readable problem with the catalog, or ``None``."""
    if not pieces:
        return "empty catalog"
    for shape in pieces:
        if len(shape) == 0:
            return f"piece {shape.kind.label} has no points"
        if len(set(shape.points)) != len(shape.points):
            return f"piece {shape.kind.label} has duplicate points"
    if size is not None:
        total = sum(len(s) for s in pieces)
        if total != size.volume:
            return f"piece volume {total} does not match box {size} volume {size.volume}"
    return None


def catalog_summary(pieces: Sequence[Shape]) -> List[Dict[str, Any]]:
    return [
        {"kind": s.kind.label, "cells": len(s), "points": [list(p.as_tuple()) for p in s.points]}
        for s in pieces
    ]


REFERENCE_BOX = Size(4, 4, 2)

REFERENCE_CATALOG: Tuple[Shape, ...] = _catalog((
    ("C", ("000", "100", "110", "111")),
    ("D", ("000", "100", "200", "001")),
    ("B", ("000", "100", "200", "210", "211")),
    ("F", ("000", "200", "010", "110", "210", "201")),
    ("A", ("000", "100", "010", "001", "101", "011")),
    ("E", ("000", "100", "200", "010", "110", "210", "201")),
))
