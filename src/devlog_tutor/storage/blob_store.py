"""Named JSON blobs on local disk (fcntl.flock + atomic write)."""

import fcntl
import json
import os
import tempfile
from pathlib import Path
from typing import Any

PROFILE_BLOB = "devlog_profile"
ROADMAPS_BLOB = "devlog_roadmaps"


class BlobStore:
    """Whole-value key/blob store; every write replaces the previous value.

    Args:
        data_dir: Directory holding one ``<name>.json`` file per blob.
    """

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, name: str) -> Path:
        return self.data_dir / f"{name}.json"

    def read(self, name: str) -> Any | None:
        """Return the decoded blob, or None if it was never written."""
        path = self.path_for(name)
        if not path.exists():
            return None
        with open(path, encoding="utf-8") as f:
            fcntl.flock(f, fcntl.LOCK_SH)
            data = json.load(f)
            fcntl.flock(f, fcntl.LOCK_UN)
        return data

    def write(self, name: str, value: Any) -> None:
        path = self.path_for(name)
        with tempfile.NamedTemporaryFile(
            "w", dir=self.data_dir, delete=False, suffix=".json", encoding="utf-8"
        ) as tmp:
            json.dump(value, tmp, default=str)
        os.replace(tmp.name, path)

    def delete(self, name: str) -> None:
        self.path_for(name).unlink(missing_ok=True)
