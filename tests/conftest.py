import os
import tempfile

# Keep the progress state file and search log out of the source tree.  Must run
# before ``progress`` is first imported.
_SCRATCH = tempfile.mkdtemp(prefix="polycube-tests-")
os.environ.setdefault("PC_LOG_DIR", os.path.join(_SCRATCH, "logs"))
os.environ.setdefault("PC_PROGRESS_STATE_FILE", os.path.join(_SCRATCH, "logs", "progress_state.json"))
