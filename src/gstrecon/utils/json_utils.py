from __future__ import annotations

import json
import os
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any, Dict


def write_json(path: Path, obj: Dict[str, Any]) -> Path:
    """
    Pretty-print JSON to a UTF-8 file, atomically: write a temp file in the
    same directory, then replace the target. A failed dump leaves the target untouched.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with NamedTemporaryFile("w", encoding="utf-8", dir=path.parent, suffix=".tmp", delete=False) as tmp:
        tmp_path = Path(tmp.name)
        try:
            json.dump(obj, tmp, ensure_ascii=False, indent=2)
            tmp.write("\n")
        except Exception:
            tmp.close()
            tmp_path.unlink(missing_ok=True)
            raise

    os.replace(tmp_path, path)
    return path


def read_json(path: Path) -> Dict[str, Any]:
    return json.loads(Path(path).read_text(encoding="utf-8"))
