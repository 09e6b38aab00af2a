"""JSON file cache with lazy TTL expiry for generated editorial content.

One file per key under the cache directory, holding ``{"value", "expiresAt"}``
with ``expiresAt`` in epoch milliseconds. There is no locking: callers are
single-process and regenerating a lost entry only costs another generation
call, so the last writer for a key wins.
"""

from __future__ import annotations

import json
import logging
import re
import time
from pathlib import Path
from typing import Any

from .config import DEFAULT_CACHE_DIR

logger = logging.getLogger(__name__)

_MS_PER_DAY = 24 * 60 * 60 * 1000
_UNSAFE_KEY_CHARS = re.compile(r"[^a-z0-9\-_.]", re.IGNORECASE)


def _now_ms() -> int:
    return int(time.time() * 1000)


class FileCache:
    def __init__(self, directory: str | Path = DEFAULT_CACHE_DIR):
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        safe = _UNSAFE_KEY_CHARS.sub("-", key)
        return self.directory / f"{safe}.json"

    def read(self, key: str) -> Any | None:
        """Stored value for ``key``, or None when missing, unreadable, or expired."""
        path = self.path_for(key)
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            logger.warning("Cache read failed for %s: %s", key, exc)
            return None
        if not isinstance(payload, dict):
            return None
        expires_at = payload.get("expiresAt")
        if isinstance(expires_at, (int, float)) and _now_ms() > expires_at:
            try:
                path.unlink()
            except OSError as exc:
                logger.debug("Could not remove expired cache entry %s: %s", path, exc)
            return None
        return payload.get("value")

    def write(self, key: str, value: Any, ttl_days: float = 7) -> bool:
        """Persist ``value`` until ``now + ttl_days``. Returns False on failure."""
        payload = {"value": value, "expiresAt": _now_ms() + int(ttl_days * _MS_PER_DAY)}
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            self.path_for(key).write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Cache write failed for %s: %s", key, exc)
            return False
        return True
