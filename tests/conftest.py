import os
import tempfile
from pathlib import Path

_TMP_DIR = Path(tempfile.mkdtemp(prefix="keyword-clusters-tests-"))

# Must be set before keyword_clusters.db creates its engine.
os.environ["DATABASE_URL"] = f"sqlite:///{(_TMP_DIR / 'test.db').as_posix()}"
os.environ["APP_LOG_DIR"] = str(_TMP_DIR / "logs")
