"""Pluggable storage for the engine aggregate.

The engine only sees ``load()`` and ``save(snapshot)``; snapshots are plain
JSON-compatible dictionaries built by :mod:`portalsnake.protocol`.
"""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path
import tempfile
from typing import Any, Dict, Optional, Protocol, Union


class Storage(Protocol):
    def load(self) -> Optional[Dict[str, Any]]:
        ...

    def save(self, snapshot: Dict[str, Any]) -> None:
        ...


class MemoryStorage:
    """Keeps the last saved snapshot in process memory."""

    def __init__(self, snapshot: Optional[Dict[str, Any]] = None) -> None:
        self._snapshot = copy.deepcopy(snapshot)
        self.saves = 0

    def load(self) -> Optional[Dict[str, Any]]:
        return copy.deepcopy(self._snapshot)

    def save(self, snapshot: Dict[str, Any]) -> None:
        self._snapshot = copy.deepcopy(snapshot)
        self.saves += 1


class JsonFileStorage:
    """Stores the snapshot as a JSON document, replacing the file atomically."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def load(self) -> Optional[Dict[str, Any]]:
        if not self.path.exists():
            return None
        with self.path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
        if not isinstance(payload, dict):
            raise ValueError(f"{self.path} does not contain a JSON object")
        return payload

    def save(self, snapshot: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=str(self.path.parent), prefix=self.path.name, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(snapshot, handle)
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
