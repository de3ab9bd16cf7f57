"""Configuration constants, paths, and limits."""

import os
from pathlib import Path

# ---------------------------------------------------------------------------
# Load .env if present
# ---------------------------------------------------------------------------
BASE_DIR = Path(__file__).resolve().parent.parent
_env_path = BASE_DIR / ".env"
if _env_path.exists():
    for _line in _env_path.read_text(encoding="utf-8").splitlines():
        _line = _line.strip()
        if _line and not _line.startswith("#") and "=" in _line:
            _k, _, _v = _line.partition("=")
            os.environ.setdefault(_k.strip(), _v.strip().strip("\"'"))

# ---------------------------------------------------------------------------
# Collaborator endpoints
# ---------------------------------------------------------------------------
CATALOG_URL = os.environ.get(
    "BID_CONDITIONS_CATALOG_URL",
    "http://localhost:3000/api/contract-condition-system/csv-data",
)
RISK_API_URL = os.environ.get("BID_CONDITIONS_RISK_API_URL", "http://localhost:3000/api/miso/workflow")
HTTP_TIMEOUT_SEC = float(os.environ.get("BID_CONDITIONS_HTTP_TIMEOUT", "30"))

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
DATA_DIR = Path(os.environ.get("BID_CONDITIONS_DATA_DIR", str(Path.cwd() / "data")))
OUTPUT_DIR = Path(os.environ.get("BID_CONDITIONS_OUTPUT_DIR", str(Path.cwd() / "generated_docs")))
EXPORT_HISTORY_PATH = DATA_DIR / "pdf-export-history.json"
ANALYSIS_HISTORY_PATH = DATA_DIR / "risk-analysis-history.json"
REVIEW_AUDIT_PATH = DATA_DIR / "audit" / "review-events.jsonl"

# ---------------------------------------------------------------------------
# Limits
# ---------------------------------------------------------------------------
EXPORT_HISTORY_LIMIT = 20
ANALYSIS_HISTORY_LIMIT = 10
MAX_IMAGE_BYTES = 5 * 1024 * 1024

# ---------------------------------------------------------------------------
# Print surface
# ---------------------------------------------------------------------------
PRINT_CLOSE_DELAY_SEC = float(os.environ.get("BID_CONDITIONS_PRINT_CLOSE_DELAY", "3.0"))
PRINT_HEADLESS = os.environ.get("BID_CONDITIONS_PRINT_HEADLESS", "1").strip().lower() not in {"0", "false", "no"}
