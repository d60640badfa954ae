from __future__ import annotations

import time
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from catalog import parse_box, parse_catalog, validate_catalog
from config import CFG
from models import Shape, Size
from orientations import OrientationSet, all_orientations
from progress import (
    log_event,
    reset,
    set_box,
    set_done,
    set_message,
    set_phase,
    set_solutions,
    set_status,
    start_timer,
)
from solutions import Solution, SolutionSink
from solver.backtrack import enumerate_packings

BACKENDS = ("backtrack", "cp_sat")

# Stop reasons that end a run without it having covered the whole search space.
_INCOMPLETE_REASONS = {
    "node_limit": "node limit reached",
    "time_limit": "time limit reached",
    "cancelled": "cancelled by caller",
}


def _resolve_filter_height(size: Size, filter_height: Union[int, bool, None]) -> Optional[int]:
    if filter_height is None:
        return size.z if getattr(CFG, "FILTER_BY_HEIGHT", True) else None
    if filter_height is False:
        return None
    if filter_height is True:
        return size.z
    return int(filter_height)


def build_orientation_sets(
    pieces: Sequence[Shape],
    size: Size,
    filter_height: Union[int, bool, None] = None,
) -> List[OrientationSet]:
    """One orientation set per piece, in catalog order.

    ``filter_height`` caps the z-extent of kept orientations: ``None`` follows
    ``CFG.FILTER_BY_HEIGHT`` (cap at the box height), ``False`` keeps all, an
    int is used as the cap.
    """
    max_height = _resolve_filter_height(size, filter_height)
    return [all_orientations(shape, max_height) for shape in pieces]


def _coerce_inputs(pieces: Any, size: Any) -> Tuple[List[Shape], Optional[Size], Optional[str]]:
    try:
        box = parse_box(size)
    except ValueError as e:
        return [], None, str(e)
    if isinstance(pieces, (list, tuple)) and pieces and all(isinstance(p, Shape) for p in pieces):
        return list(pieces), box, None
    parsed, err = parse_catalog(pieces)
    if err:
        return [], box, f"Bad catalog: {err}"
    return parsed, box, None


def solve_catalog(
    pieces: Any,
    size: Any,
    *,
    backend: str = "backtrack",
    filter_height: Union[int, bool, None] = None,
    max_solutions: Optional[int] = None,
    node_limit: Optional[int] = None,
    max_seconds: Optional[float] = None,
    should_continue: Optional[Callable[[Dict[str, object]], bool]] = None,
    on_record: Optional[Callable[[Solution], None]] = None,
) -> Tuple[bool, SolutionSink, Optional[str], Dict[str, Any]]:
    """
    Returns: (ok, sink, reason, meta)

    ``ok`` is True when at least one packing was found and the search was not
    cut short by a node/time budget or cancellation.  A ``max_solutions`` cap
    counts as a normal finish.
    """
    t0 = time.time()
    sink = SolutionSink(on_record=on_record)
    meta: Dict[str, Any] = {"backend": backend}

    def _finish(ok: bool, reason: Optional[str]):
        meta["elapsed"] = time.time() - t0
        meta["solutions"] = len(sink)
        if len(sink):
            meta["distinct"] = len(sink.distinct_up_to_symmetry())
        else:
            meta["distinct"] = 0
        set_solutions(len(sink))
        set_done(ok, reason=reason)
        log_event(
            "Catalog solved" if ok else "Catalog not solved",
            backend=backend,
            solutions=meta["solutions"],
            distinct=meta["distinct"],
            reason=reason,
        )
        return ok, sink, reason, meta

    reset()
    set_status("Solving")
    start_timer()

    if backend not in BACKENDS:
        return _finish(False, f"Unknown backend: {backend!r} (expected one of {', '.join(BACKENDS)})")

    shapes, box, err = _coerce_inputs(pieces, size)
    if err:
        return _finish(False, err)
    meta["box"] = str(box)
    meta["pieces"] = [s.kind.label for s in shapes]
    set_box(box, pieces=len(shapes))

    problem = validate_catalog(shapes, box)
    if problem:
        return _finish(False, f"Bad catalog: {problem}")

    orientation_sets = build_orientation_sets(shapes, box, filter_height)
    meta["orientations"] = {o.kind.label: len(o) for o in orientation_sets}
    log_event("Orientations built", box=str(box), counts=meta["orientations"])
    empty = [o.kind.label for o in orientation_sets if len(o) == 0]
    if empty:
        return _finish(False, f"No orientation of piece(s) {', '.join(empty)} fits the box height")

    set_phase(backend)
    if backend == "cp_sat":
        from solver.cp_sat import enumerate_packings_cp_sat

        cp_ok, sols, cp_reason = enumerate_packings_cp_sat(
            box,
            orientation_sets,
            max_seconds=max_seconds,
            max_solutions=max_solutions,
        )
        for sol in sols:
            sink.add(sol)
        meta["cp_sat"] = dict(getattr(enumerate_packings_cp_sat, "last_meta", {}))
        if not cp_ok:
            return _finish(False, cp_reason)
    else:
        set_message("")
        enumerate_packings(
            box,
            orientation_sets,
            sink,
            should_continue=should_continue,
            node_limit=node_limit,
            max_seconds=max_seconds,
            max_solutions=max_solutions,
        )
        stats = dict(getattr(enumerate_packings, "last_stats", {}))
        meta["stats"] = stats
        stop = stats.get("reason")
        if stop in _INCOMPLETE_REASONS:
            return _finish(False, f"Search stopped: {_INCOMPLETE_REASONS[stop]} after {len(sink)} solution(s)")

    if not len(sink):
        return _finish(False, "No packing exists for this catalog and box")
    return _finish(True, None)
