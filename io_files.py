"""Helpers for writing enumerated packings to disk."""

from __future__ import annotations

import json
import os
from typing import Sequence

from config import CFG
from render import render_solution
from solutions import Solution


def _resolve_output_path(base_dir: str, configured_name: str, fallback: str) -> str:
    """Return the absolute path where an output artifact should be written."""

    name = (configured_name or "").strip() or fallback
    if os.path.isabs(name):
        return name
    return os.path.join(base_dir, name)


def write_solutions(solutions: Sequence[Solution], base_dir: str) -> str:
    """Write every solution as text to the configured file."""

    path = _resolve_output_path(base_dir, CFG.SOLUTIONS_OUT, "solutions.txt")
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        if not solutions:
            f.write("No solution\n")
        else:
            for i, sol in enumerate(solutions, 1):
                f.write(render_solution(sol, i))
                f.write("\n\n")
    return path


def write_solutions_json(solutions: Sequence[Solution], base_dir: str) -> str:
    path = _resolve_output_path(base_dir, CFG.SOLUTIONS_JSON, "solutions.json")
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)

    payload = {"count": len(solutions), "solutions": [s.to_dict() for s in solutions]}
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=1)
    return path


__all__ = ["write_solutions", "write_solutions_json"]
