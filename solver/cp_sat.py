import time
from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Tuple

from ortools.sat.python import cp_model as _cp

import progress
from config import CFG
from grid import Grid
from models import Point, Position, Shape, Size
from orientations import OrientationSet
from solutions import Solution

# (set index, shape, anchor)
Option = Tuple[int, Shape, Position]


def _anchors(size: Size, shape: Shape) -> List[Position]:
    """Every translation keeping ``shape`` inside the box."""
    out: List[Position] = []
    for x in range(size.x - shape.size.x + 1):
        for y in range(size.y - shape.size.y + 1):
            for z in range(size.z - shape.size.z + 1):
                out.append(Point(x, y, z))
    return out


def build_options(size: Size, orientation_sets: Sequence[OrientationSet]) -> List[List[Option]]:
    """Per piece, every (orientation, anchor) that lies fully inside the box."""
    options: List[List[Option]] = []
    for i, oset in enumerate(orientation_sets):
        opts: List[Option] = []
        for shape in oset:
            for anchor in _anchors(size, shape):
                opts.append((i, shape, anchor))
        options.append(opts)
    return options


class _Collector(_cp.CpSolverSolutionCallback):
    """Turns each CP-SAT assignment back into a grid snapshot."""

    def __init__(self, size: Size, options, p, limit: Optional[int]):
        super().__init__()
        self._size = size
        self._options = options
        self._p = p
        self._limit = limit
        self.solutions: List[Solution] = []
        self.limit_hit = False

    def on_solution_callback(self) -> None:
        grid = Grid(self._size)
        for i, opts in enumerate(self._options):
            for k, (_i, shape, anchor) in enumerate(opts):
                if self.BooleanValue(self._p[i][k]):
                    grid.try_place(shape, anchor)
                    break
        self.solutions.append(grid.snapshot())
        progress.set_solutions(len(self.solutions))
        if self._limit is not None and len(self.solutions) >= self._limit:
            self.limit_hit = True
            self.StopSearch()


def enumerate_packings_cp_sat(
    size: Size,
    orientation_sets: Sequence[OrientationSet],
    *,
    max_seconds: Optional[float] = None,
    max_solutions: Optional[int] = None,
) -> Tuple[bool, List[Solution], Optional[str]]:
    """Enumerate all exact packings with an exact-cover CP-SAT model.

    One Boolean per fitting (piece, orientation, anchor); each piece is used
    exactly once and each cell is covered exactly once.  Returns the same
    solution set as the backtracking search, in solver order.
    """
    meta: Dict[str, object] = {"box": str(size), "pieces": len(orientation_sets)}
    t0 = time.time()

    def _finish(ok: bool, sols: List[Solution], reason: Optional[str]):
        meta["elapsed"] = time.time() - t0
        meta["solutions"] = len(sols)
        meta["reason"] = reason
        setattr(enumerate_packings_cp_sat, "last_meta", dict(meta))
        return ok, sols, reason

    options = build_options(size, orientation_sets)
    meta["options"] = sum(len(o) for o in options)

    m = _cp.CpModel()
    p = [[m.NewBoolVar(f"p_{i}_{k}") for k in range(len(options[i]))] for i in range(len(options))]

    for i in range(len(options)):
        if not p[i]:
            return _finish(False, [], "No placements remain for at least one piece")
        m.AddExactlyOne(p[i])

    cell_to_vars: Dict[Point, List[_cp.IntVar]] = defaultdict(list)
    for i, opts in enumerate(options):
        for k, (_i, shape, anchor) in enumerate(opts):
            for cell in shape.cells_at(anchor):
                cell_to_vars[cell].append(p[i][k])

    grid = Grid(size)
    for idx in range(size.volume):
        cell = grid.point_at(idx)
        covering = cell_to_vars.get(cell)
        if not covering:
            # Nothing can cover this cell; the model is trivially infeasible.
            return _finish(True, [], None)
        m.AddExactlyOne(covering)

    if max_seconds is None:
        max_seconds = float(getattr(CFG, "CP_SAT_MAX_SECONDS", 60))
    limit = max_solutions if (max_solutions is not None and max_solutions > 0) else None

    solver = _cp.CpSolver()
    if max_seconds and max_seconds > 0:
        solver.parameters.max_time_in_seconds = float(max_seconds)
    # Full enumeration is only exhaustive on a single worker.
    solver.parameters.num_workers = 1
    solver.parameters.enumerate_all_solutions = True
    solver.parameters.log_search_progress = False

    collector = _Collector(size, options, p, limit)
    res = solver.Solve(m, collector)
    meta["status"] = solver.StatusName(res)

    if res == _cp.MODEL_INVALID:
        return _finish(False, [], "Model invalid (configuration error)")
    if res in (_cp.OPTIMAL, _cp.INFEASIBLE) or collector.limit_hit:
        return _finish(True, collector.solutions, None)
    return _finish(False, collector.solutions, "Stopped before completion (timebox)")
