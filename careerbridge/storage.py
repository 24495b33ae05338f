from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Optional, Protocol

# Fixed key namespace shared with earlier stored data.
KEY_CURRENT_USER = "veteranCareerBridgeCurrentUser"
KEY_ALL_USERS = "veteranCareerBridgeAllUsers"
KEY_JOBS = "veteranCareerBridgeJobs"
KEY_APPLICATIONS = "veteranCareerBridgeApplications"

ALL_KEYS = (KEY_CURRENT_USER, KEY_ALL_USERS, KEY_JOBS, KEY_APPLICATIONS)


def _ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def _best_effort_lockdown_file_permissions(path: Path) -> None:
    """
    Best-effort privacy: on Unix, set 600. On Windows, no-op.
    """
    try:
        os.chmod(path, 0o600)
    except OSError:
        pass


class KeyValueStorage(Protocol):
    """String values under string keys; absent keys read as None."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class MemoryStorage:
    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileStorage:
    """
    Local persistence, one file per key.

    Layout:
      <base_dir>/
        veteranCareerBridgeCurrentUser.json   -> {User...}
        veteranCareerBridgeAllUsers.json      -> [{User...}, ...]
        veteranCareerBridgeJobs.json          -> [{Job...}, ...]
        veteranCareerBridgeApplications.json  -> [{Application...}, ...]
    """

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = Path(base_dir)
        _ensure_dir(self.base_dir)

    def path_for(self, key: str) -> Path:
        return self.base_dir / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        # atomic replace
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(value, encoding="utf-8")
        os.replace(tmp, path)
        _best_effort_lockdown_file_permissions(path)

    def delete(self, key: str) -> None:
        try:
            self.path_for(key).unlink()
        except FileNotFoundError:
            pass
