# config.py
import os

# ======= Default box =======
BOX = os.getenv("PC_BOX", "4x4x2")

# ======= Search budgets =======
# Non-positive values disable the corresponding budget.
NODE_LIMIT    = int(os.getenv("PC_NODE_LIMIT", "-1"))
MAX_SECONDS   = float(os.getenv("PC_MAX_SECONDS", "0"))
MAX_SOLUTIONS = int(os.getenv("PC_MAX_SOLUTIONS", "-1"))

# ======= Orientation filtering =======
# Drop orientations taller than the box before searching.  Purely a speed-up:
# the placement check rejects them anyway.
FILTER_BY_HEIGHT = int(os.getenv("PC_FILTER_BY_HEIGHT", "1")) != 0

# ======= Progress reporting =======
PROGRESS_EVERY = int(os.getenv("PC_PROGRESS_EVERY", "5000"))  # nodes between updates

# ======= CP-SAT cross-check =======
CP_SAT_MAX_SECONDS = float(os.getenv("PC_CP_SAT_MAX_SECONDS", "60"))

# ======= Output names =======
SOLUTIONS_OUT  = os.getenv("PC_SOLUTIONS_OUT", "solutions.txt")
SOLUTIONS_JSON = os.getenv("PC_SOLUTIONS_JSON", "solutions.json")
LOG_DIR        = os.getenv("PC_LOG_DIR", "logs")

class CFG:
    BOX = BOX

    NODE_LIMIT    = NODE_LIMIT
    MAX_SECONDS   = MAX_SECONDS
    MAX_SOLUTIONS = MAX_SOLUTIONS

    FILTER_BY_HEIGHT = FILTER_BY_HEIGHT
    PROGRESS_EVERY   = PROGRESS_EVERY

    CP_SAT_MAX_SECONDS = CP_SAT_MAX_SECONDS

    SOLUTIONS_OUT  = SOLUTIONS_OUT
    SOLUTIONS_JSON = SOLUTIONS_JSON
    LOG_DIR        = LOG_DIR

__all__ = ["CFG"]
