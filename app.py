# app.py: HTTP front end for the packing enumerator; progress no-cache
from __future__ import annotations
import os
import time
from typing import Any, Dict, Optional, Tuple

from flask import Flask, request, send_from_directory, jsonify

from solver.orchestrator import BACKENDS, solve_catalog
from catalog import REFERENCE_BOX, REFERENCE_CATALOG, catalog_summary
from config import CFG
from io_files import write_solutions, write_solutions_json
from render import render_layers, render_placements

from progress import (
    reset as progress_reset,
    as_json as progress_json,
    set_status, set_done,
)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# Solutions returned inline by /solve; the rest only go to the download file.
MAX_INLINE_SOLUTIONS = 50


def _resolve_output_paths(configured: str, fallback: str) -> Tuple[str, str, str]:
    name = (configured or "").strip() or fallback
    if os.path.isabs(name):
        full_path = name
    else:
        full_path = os.path.abspath(os.path.join(BASE_DIR, name))
    directory = os.path.dirname(full_path) or BASE_DIR
    filename = os.path.basename(full_path) or fallback
    return full_path, directory, filename


_SOLUTIONS_FULL_PATH, SOLUTIONS_DIR, SOLUTIONS_FILENAME = _resolve_output_paths(
    CFG.SOLUTIONS_OUT, "solutions.txt"
)


def _empty_result() -> Dict[str, Any]:
    return {
        "ok": False,
        "reason": "No run yet",
        "backend": None,
        "box": None,
        "pieces": [],
        "solution_count": 0,
        "distinct_count": 0,
        "orientations": {},
        "elapsed_str": "0s",
        "solutions": [],
        "solutions_filename": SOLUTIONS_FILENAME,
    }


LAST_RESULT: Dict[str, Any] = _empty_result()

app = Flask(__name__)


@app.after_request
def _no_cache_progress(resp):
    if request.path == "/progress":
        resp.headers["Cache-Control"] = "no-store, max-age=0"
        resp.headers["Pragma"] = "no-cache"
        resp.headers["Expires"] = "0"
    return resp


@app.route("/")
def index():
    return jsonify({
        "usage": {
            "POST /solve": "JSON body {catalog, box, backend, max_solutions}",
            "GET /result/latest": "last solve result",
            "GET /progress": "live search progress",
            "GET /download/solutions": "all solutions of the last run as text",
        },
        "backends": list(BACKENDS),
        "reference": {
            "box": str(REFERENCE_BOX),
            "catalog": catalog_summary(REFERENCE_CATALOG),
        },
    })


@app.route("/result/latest")
def result_latest():
    return jsonify(LAST_RESULT)


def _fmt_elapsed(seconds: float) -> str:
    if seconds < 1:
        return f"{int(seconds * 1000)}ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    m, s = divmod(int(seconds), 60)
    return f"{m}m {s}s"


def _bad_request(reason: str, t0: float):
    set_status("Error")
    set_done(False, reason=reason)
    LAST_RESULT.clear()
    LAST_RESULT.update(_empty_result())
    LAST_RESULT.update({"reason": reason, "elapsed_str": _fmt_elapsed(time.time() - t0)})
    return jsonify(LAST_RESULT), 400


def _optional_int(value: Any, name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be an integer") from None


@app.route("/solve", methods=["POST"])
def solve():
    progress_reset()
    t0 = time.time()

    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return _bad_request("Bad request: expected a JSON object body", t0)

    catalog = payload.get("catalog")
    box = payload.get("box")
    if catalog is None:
        catalog = list(REFERENCE_CATALOG)
        if box is None:
            box = REFERENCE_BOX
    if box is None:
        box = CFG.BOX
    backend = str(payload.get("backend") or "backtrack")
    if backend not in BACKENDS:
        return _bad_request(f"Bad request: unknown backend {backend!r}", t0)
    try:
        max_solutions = _optional_int(payload.get("max_solutions"), "max_solutions")
    except ValueError as e:
        return _bad_request(f"Bad request: {e}", t0)

    ok, sink, reason, meta = solve_catalog(
        catalog, box, backend=backend, max_solutions=max_solutions
    )
    if "box" not in meta:
        # Input never made it past parsing.
        return _bad_request(reason or "Bad request", t0)

    solutions_name = SOLUTIONS_FILENAME
    try:
        path = write_solutions(sink.solutions, BASE_DIR)
        write_solutions_json(sink.solutions, BASE_DIR)
        solutions_name = os.path.basename(path) or SOLUTIONS_FILENAME
    except OSError as e:
        app.logger.warning("could not write solutions: %s", e)

    LAST_RESULT.clear()
    LAST_RESULT.update({
        "ok": ok,
        "reason": reason,
        "backend": backend,
        "box": meta.get("box"),
        "pieces": meta.get("pieces", []),
        "solution_count": len(sink),
        "distinct_count": meta.get("distinct", 0),
        "orientations": meta.get("orientations", {}),
        "elapsed_str": _fmt_elapsed(time.time() - t0),
        "solutions": [
            {
                "layers": render_layers(sol),
                "placements": render_placements(sol),
                "history": [[k.label, list(a.as_tuple())] for k, a in sol.history()],
            }
            for sol in sink.solutions[:MAX_INLINE_SOLUTIONS]
        ],
        "solutions_filename": solutions_name,
    })
    return jsonify(LAST_RESULT)


@app.route("/download/solutions")
def download_solutions():
    return send_from_directory(SOLUTIONS_DIR, SOLUTIONS_FILENAME, as_attachment=True)


@app.route("/progress")
def progress():
    return jsonify(progress_json())


if __name__ == "__main__":
    app.run(debug=False)
