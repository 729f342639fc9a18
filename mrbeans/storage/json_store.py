"""
mrbeans/storage/json_store.py — Flat JSON file storage
One document per entity collection (see models.DATA_FILES). Writes go to a
temp file first and are swapped in with os.replace, so a crash mid-write
never leaves a truncated document behind.
"""
from __future__ import annotations

import json
import os
import tempfile
import threading
import time
from pathlib import Path
from typing import Any, Optional

from mrbeans.core.logging import log_store_operation
from mrbeans.models import DATA_FILES


class JsonStore:
    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self._write_lock = threading.Lock()

    def path_for(self, filename: str) -> Path:
        return self.data_dir / filename

    def read(self, filename: str) -> Optional[dict[str, Any]]:
        """Return the parsed document, or None when missing/corrupt (logged)."""
        start = time.monotonic()
        try:
            data = json.loads(self.path_for(filename).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            log_store_operation(filename, "read", False, (time.monotonic() - start) * 1000, str(exc))
            return None
        log_store_operation(filename, "read", True, (time.monotonic() - start) * 1000)
        return data

    def write(self, filename: str, data: dict[str, Any]) -> bool:
        start = time.monotonic()
        target = self.path_for(filename)
        try:
            with self._write_lock:
                target.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{filename}.", suffix=".tmp")
                try:
                    with os.fdopen(fd, "w", encoding="utf-8") as fh:
                        json.dump(data, fh, ensure_ascii=False, indent=2)
                    os.replace(tmp_name, target)
                except BaseException:
                    Path(tmp_name).unlink(missing_ok=True)
                    raise
        except (OSError, TypeError, ValueError) as exc:
            log_store_operation(filename, "write", False, (time.monotonic() - start) * 1000, str(exc))
            return False
        log_store_operation(filename, "write", True, (time.monotonic() - start) * 1000)
        return True

    def ensure_defaults(self) -> list[str]:
        """Create any missing data file with its empty collection. Returns created names."""
        created = []
        for filename, empty in DATA_FILES.items():
            if self.path_for(filename).exists():
                continue
            if self.write(filename, empty):
                created.append(filename)
                log_store_operation(filename, "seed", True, 0.0)
        return created
