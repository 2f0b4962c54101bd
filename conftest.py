"""Global pytest configuration."""

import os
import tempfile

# Point the session store at a throwaway directory before notra is imported
_TMP = tempfile.mkdtemp(prefix="notra-test-")
os.environ.setdefault("DATA_DIR", _TMP)
os.environ.setdefault("DB_PATH", os.path.join(_TMP, "notra.sqlite3"))
os.environ.setdefault("LLM_PROVIDER", "openai")
os.environ.setdefault("DEFAULT_PLAN", "free")
