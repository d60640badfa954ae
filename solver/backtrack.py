# solver/backtrack.py
import time
from typing import Callable, Dict, List, Optional, Sequence

import progress
from config import CFG
from grid import Grid
from models import Size
from orientations import OrientationSet
from solutions import SolutionSink


def _budget(value, cfg_name: str, cast):
    """Explicit argument wins; otherwise fall back to CFG.  Non-positive means off."""
    if value is None:
        try:
            value = cast(getattr(CFG, cfg_name))
        except Exception:
            value = None
    if value is None or value <= 0:
        return None
    return cast(value)


def enumerate_packings(
    size: Size,
    orientation_sets: Sequence[OrientationSet],
    sink: Optional[SolutionSink] = None,
    *,
    should_continue: Optional[Callable[[Dict[str, object]], bool]] = None,
    node_limit: Optional[int] = None,
    max_seconds: Optional[float] = None,
    max_solutions: Optional[int] = None,
) -> SolutionSink:
    """Enumerate every exact packing of the pieces into a ``size`` box.

    Each node targets the earliest empty cell in scan order and tries every
    remaining piece in every orientation, anchored so the orientation's
    smallest point covers that cell.  All cells before the target are already
    full, so no other anchor could cover it; the search is exhaustive while
    never looping over positions.

    Solutions are recorded into ``sink`` (a fresh one when omitted) in
    discovery order.  The search stops early, keeping what it found, when
    ``should_continue`` returns False or a node/time/solution budget runs out.
    Run statistics are left on ``enumerate_packings.last_stats``.
    """
    if sink is None:
        sink = SolutionSink()

    node_cap = _budget(node_limit, "NODE_LIMIT", int)
    time_cap = _budget(max_seconds, "MAX_SECONDS", float)
    solution_cap = _budget(max_solutions, "MAX_SOLUTIONS", int)
    try:
        report_every = max(1, int(getattr(CFG, "PROGRESS_EVERY", 5000)))
    except Exception:
        report_every = 5000

    grid = Grid(size)
    remaining: List[int] = list(range(len(orientation_sets)))
    t0 = time.time()
    deadline = (t0 + time_cap) if time_cap is not None else None

    stats: Dict[str, object] = {
        "box": str(size),
        "pieces": len(orientation_sets),
        "nodes": 0,
        "placements": 0,
        "dead_ends": 0,
        "max_depth": 0,
        "solutions": 0,
        "stopped": False,
        "reason": None,
        "elapsed": 0.0,
    }

    def _stop(reason: str) -> None:
        stats["stopped"] = True
        stats["reason"] = reason

    def _search(cursor: int) -> None:
        if stats["stopped"]:
            return
        stats["nodes"] += 1
        nodes = stats["nodes"]
        depth = len(grid.history)
        if depth > stats["max_depth"]:
            stats["max_depth"] = depth
        if nodes % report_every == 0:
            progress.set_nodes(nodes, depth)
            if deadline is not None and time.time() >= deadline:
                _stop("time_limit")
                return
        if node_cap is not None and nodes > node_cap:
            _stop("node_limit")
            return
        if should_continue is not None and not should_continue(stats):
            _stop("cancelled")
            return

        if not remaining:
            sink.record(grid)
            stats["solutions"] = len(sink)
            progress.set_solutions(len(sink))
            if sink.full or (solution_cap is not None and len(sink) >= solution_cap):
                _stop("solution_limit")
            return

        target_idx = grid.next_empty_cell(cursor)
        if target_idx is None:
            stats["dead_ends"] += 1
            return
        target = grid.point_at(target_idx)

        covered = False
        for slot in range(len(remaining)):
            set_idx = remaining[slot]
            for shape in orientation_sets[set_idx]:
                with grid.placed(shape, shape.anchor_for(target)) as ok:
                    if not ok:
                        continue
                    covered = True
                    stats["placements"] += 1
                    del remaining[slot]
                    try:
                        _search(target_idx + 1)
                    finally:
                        remaining.insert(slot, set_idx)
                if stats["stopped"]:
                    return
        if not covered:
            stats["dead_ends"] += 1

    # The deadline is only polled every ``report_every`` nodes, so check it once
    # up front for callers passing a budget that is already spent.
    if deadline is not None and time.time() >= deadline:
        _stop("time_limit")
    else:
        _search(0)

    stats["elapsed"] = time.time() - t0
    progress.set_nodes(stats["nodes"], len(grid.history))
    setattr(enumerate_packings, "last_stats", dict(stats))
    return sink
