from __future__ import annotations

import json
import logging
import os
import threading
import time
from pathlib import Path
from typing import Any, Dict, Optional

from config import CFG

# ------------------------------
# Thread-safe global progress state
# ------------------------------

PROGRESS_LOCK = threading.Lock()


def _log_dir() -> Path:
    configured = Path(CFG.LOG_DIR)
    if configured.is_absolute():
        return configured
    return Path(__file__).resolve().parent / configured


def _state_file_path() -> Path:
    configured = os.environ.get("PC_PROGRESS_STATE_FILE")
    if configured:
        return Path(configured)
    return _log_dir() / "progress_state.json"


STATE_FILE = _state_file_path()
STATE_FILE_TMP = STATE_FILE.with_name(STATE_FILE.name + ".tmp")
_LAST_STATE_MTIME: float = 0.0


def _init_logger() -> logging.Logger:
    logger = logging.getLogger("polycube.search")
    if logger.handlers:
        return logger

    log_path = _log_dir() / "search.log"
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path, encoding="utf-8")
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        logger.propagate = False
    except Exception:
        # Without a writable log directory the search still runs unlogged.
        logger.handlers.clear()
    return logger


SEARCH_LOGGER = _init_logger()


def _log_enabled() -> bool:
    return bool(SEARCH_LOGGER.handlers)


def _fmt_seconds(seconds: Optional[float]) -> Optional[str]:
    if seconds is None:
        return None
    try:
        return f"{float(seconds):.2f}s"
    except Exception:
        return None


def _emit_log(event: str, **fields: Any) -> None:
    if not _log_enabled():
        return
    extras = [
        f"{key}={value}"
        for key, value in fields.items()
        if value is not None and value != ""
    ]
    try:
        if extras:
            SEARCH_LOGGER.info("%s | %s", event, " ".join(extras))
        else:
            SEARCH_LOGGER.info("%s", event)
    except Exception:
        # Logging failures must never bubble back to callers.
        pass


def log_event(event: str, **fields: Any) -> None:
    """Write a free-form ``event | key=value`` line to the search log."""
    _emit_log(event, **fields)


LOG_STATE: Dict[str, Any] = {
    "run_start": None,
    "phase": "",
    "phase_start": None,
}

# Single source of truth for the progress endpoint
PROGRESS: Dict[str, Any] = {
    "status": "Idle",          # Idle | Solving | Solved | Error
    "phase": "",               # solver backend, e.g. backtrack | cp_sat
    "box": "",                 # e.g. "4x4x2"
    "pieces": 0,               # pieces in the catalog
    "nodes": 0,                # search nodes visited
    "depth": 0,                # pieces currently placed
    "best_depth": 0,           # deepest placement reached
    "solutions": 0,            # packings found so far
    "elapsed_start": None,     # t0 (float) when solving started
    "elapsed": 0.0,            # seconds snapshot
    "message": "",             # optional note
    "done": False,             # run completed
    "ok": None,                # success flag if known
    "run_id": 0,               # monotonically increasing identifier
}


def _persist_locked() -> None:
    global _LAST_STATE_MTIME
    try:
        STATE_FILE.parent.mkdir(parents=True, exist_ok=True)
        with STATE_FILE_TMP.open("w", encoding="utf-8") as fh:
            json.dump(PROGRESS, fh, ensure_ascii=False, separators=(",", ":"))
        STATE_FILE_TMP.replace(STATE_FILE)
        try:
            _LAST_STATE_MTIME = STATE_FILE.stat().st_mtime
        except OSError:
            _LAST_STATE_MTIME = time.time()
    except Exception:
        # Persistence must never break search progress updates.
        pass


def _load_persisted_locked(force: bool = False) -> None:
    global _LAST_STATE_MTIME
    try:
        stat = STATE_FILE.stat()
    except OSError:
        return
    if not force and stat.st_mtime <= _LAST_STATE_MTIME:
        return
    try:
        with STATE_FILE.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
    except Exception:
        return
    if not isinstance(data, dict):
        return
    for key in PROGRESS.keys():
        if key in data:
            PROGRESS[key] = data[key]
    _LAST_STATE_MTIME = stat.st_mtime


def _log_phase_transition_locked(new_phase: str) -> None:
    prev_phase = LOG_STATE.get("phase") or ""
    if new_phase == prev_phase:
        return
    now = _now()
    if prev_phase and LOG_STATE.get("phase_start"):
        duration = max(0.0, now - float(LOG_STATE["phase_start"]))
        _emit_log(
            "Phase finished",
            phase=prev_phase,
            nodes=PROGRESS.get("nodes"),
            duration=_fmt_seconds(duration),
        )
    LOG_STATE["phase"] = new_phase
    LOG_STATE["phase_start"] = now
    if new_phase:
        _emit_log("Phase started", phase=new_phase, box=PROGRESS.get("box") or "")


# ------------------------------
# Helpers
# ------------------------------

def _now() -> float:
    return time.time()


def _fmt_elapsed(seconds: float) -> str:
    seconds = max(0.0, float(seconds))
    if seconds < 60:
        return f"{int(seconds)}s"
    m, s = divmod(int(seconds), 60)
    if m < 60:
        return f"{m}m {s}s"
    h, m = divmod(m, 60)
    return f"{h}h {m}m"


def _touch_elapsed_locked() -> None:
    t0 = PROGRESS.get("elapsed_start")
    if t0 is not None:
        PROGRESS["elapsed"] = _now() - float(t0)


def reset() -> None:
    with PROGRESS_LOCK:
        try:
            current_run_id = int(PROGRESS.get("run_id", 0))
        except Exception:
            current_run_id = 0
        PROGRESS.update({
            "status": "Idle",
            "phase": "",
            "box": "",
            "pieces": 0,
            "nodes": 0,
            "depth": 0,
            "best_depth": 0,
            "solutions": 0,
            "elapsed_start": None,
            "elapsed": 0.0,
            "message": "",
            "done": False,
            "ok": None,
            "run_id": current_run_id + 1,
        })
        LOG_STATE.update({"phase": "", "phase_start": None, "run_start": None})
        _emit_log("Progress reset")
        _persist_locked()


def start_timer() -> None:
    with PROGRESS_LOCK:
        now = _now()
        PROGRESS["elapsed_start"] = now
        PROGRESS["elapsed"] = 0.0
        LOG_STATE["run_start"] = now
        _emit_log("Run timer started")
        _persist_locked()


# ------------------------------
# Setters
# ------------------------------

def set_status(v: Any) -> None:
    with PROGRESS_LOCK:
        PROGRESS["status"] = str(v)
        _persist_locked()


def set_phase(v: Any) -> None:
    with PROGRESS_LOCK:
        phase_str = "" if v is None else str(v)
        PROGRESS["phase"] = phase_str
        _log_phase_transition_locked(phase_str)
        _persist_locked()


def set_box(v: Any, pieces: Any = None) -> None:
    with PROGRESS_LOCK:
        PROGRESS["box"] = "" if v is None else str(v)
        if pieces is not None:
            try:
                PROGRESS["pieces"] = max(0, int(pieces))
            except Exception:
                PROGRESS["pieces"] = 0
        _persist_locked()


def set_nodes(nodes: Any, depth: Any = None) -> None:
    try:
        n = int(nodes)
    except Exception:
        n = 0
    with PROGRESS_LOCK:
        PROGRESS["nodes"] = max(0, n)
        _touch_elapsed_locked()
        _persist_locked()
    if depth is not None:
        set_depth(depth)


def set_depth(depth: Any) -> None:
    try:
        d = max(0, int(depth))
    except Exception:
        d = 0
    with PROGRESS_LOCK:
        PROGRESS["depth"] = d
        if d > int(PROGRESS.get("best_depth") or 0):
            PROGRESS["best_depth"] = d
        _persist_locked()


def set_solutions(n: Any) -> None:
    try:
        i = int(n)
    except Exception:
        i = 0
    with PROGRESS_LOCK:
        prev = int(PROGRESS.get("solutions") or 0)
        PROGRESS["solutions"] = max(0, i)
        if i > prev:
            _emit_log("Solution found", index=i, nodes=PROGRESS.get("nodes"))
        _persist_locked()


def set_message(msg: Any) -> None:
    with PROGRESS_LOCK:
        PROGRESS["message"] = "" if msg is None else str(msg)
        _persist_locked()


def set_done(ok: Any = None, *, reason: Any = None) -> None:
    """Mark the run complete.

    ``ok`` decides the final status when given; otherwise an idle status is
    promoted to ``"Solved"``.  ``reason`` is surfaced via ``message``.
    """
    final_status: Optional[str] = None
    ok_flag: Optional[bool] = None
    if ok is not None:
        ok_flag = bool(ok)
        final_status = "Solved" if ok_flag else "Error"

    with PROGRESS_LOCK:
        _touch_elapsed_locked()
        now = _now()
        if final_status is not None:
            PROGRESS["status"] = final_status
        elif PROGRESS.get("status") in ("", "Idle", "Solving", None):
            PROGRESS["status"] = "Solved"
            ok_flag = True
        if reason is not None:
            PROGRESS["message"] = str(reason)
        PROGRESS["done"] = True
        if ok_flag is not None:
            PROGRESS["ok"] = ok_flag
        _log_phase_transition_locked("")
        run_start = LOG_STATE.get("run_start")
        total = max(0.0, now - float(run_start)) if isinstance(run_start, (int, float)) else None
        LOG_STATE["run_start"] = None
        _emit_log(
            "Run finished",
            status=PROGRESS.get("status"),
            ok=PROGRESS.get("ok"),
            duration=_fmt_seconds(total),
            nodes=PROGRESS.get("nodes"),
            solutions=PROGRESS.get("solutions"),
            message=PROGRESS.get("message"),
        )
        _persist_locked()


# ------------------------------
# Snapshots for the HTTP layer
# ------------------------------

def snapshot() -> Dict[str, Any]:
    with PROGRESS_LOCK:
        _load_persisted_locked()
        _touch_elapsed_locked()
        out = {k: v for k, v in PROGRESS.items() if k != "elapsed_start"}
        out["elapsed_str"] = _fmt_elapsed(PROGRESS["elapsed"])
        return out


def as_json() -> Dict[str, Any]:
    return snapshot()


with PROGRESS_LOCK:
    _load_persisted_locked(force=True)
