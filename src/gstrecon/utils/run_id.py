from __future__ import annotations

import random
import string
from datetime import datetime, timezone
from pathlib import Path


def _rand4() -> str:
    alphabet = string.ascii_lowercase + string.digits
    return "".join(random.choice(alphabet) for _ in range(4))


def new_run_id() -> str:
    """Reconciliation run id: YYYYMMDD_HHMMSS_<rand4>, safe as a folder name."""
    ts = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    return f"{ts}_{_rand4()}"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def get_run_dir(runs_dir: str | Path, run_id: str) -> Path:
    run_dir = Path(runs_dir) / run_id
    run_dir.mkdir(parents=True, exist_ok=True)
    return run_dir
