"""On-disk key/value cache with per-entry timestamps.

Each (namespace, key) pair maps to one JSON file under
``<root>/<namespace>/``. Files hold ``{"key", "payload", "created_at"}``.
Anything unreadable is a cache miss; writes go through a temp file and
``os.replace`` so readers never observe a partially written entry.
"""
import hashlib
import json
import logging
import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from .errors import CacheError

logger = logging.getLogger(__name__)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def key_digest(key: str) -> str:
    """Stable filename-safe digest for a cache key."""
    return hashlib.sha256(key.encode("utf-8")).hexdigest()[:32]


class CacheStore:
    """JSON-file backed cache shared by the frequency loader and translator."""

    def __init__(self, root: str | Path, clock: Callable[[], datetime] = _now_utc):
        self.root = Path(root)
        self._clock = clock

    def path_for(self, namespace: str, key: str) -> Path:
        return self.root / namespace / f"{key_digest(key)}.json"

    def get(
        self,
        namespace: str,
        key: str,
        max_age: Optional[timedelta] = None,
    ) -> Optional[Any]:
        """Return the cached payload, or None if missing, corrupt or expired."""
        path = self.path_for(namespace, key)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("Cache miss: %s/%s", namespace, key)
            return None
        except OSError as e:
            logger.warning("Unreadable cache file %s: %s", path, e)
            return None

        try:
            entry = json.loads(raw)
            created_at = datetime.fromisoformat(entry["created_at"])
            payload = entry["payload"]
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("Ignoring corrupt cache file %s: %s", path, e)
            return None

        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)

        if max_age is not None and self._clock() - created_at > max_age:
            logger.info("Cache entry %s/%s is stale, will refetch", namespace, key)
            return None

        logger.debug("Cache hit: %s/%s", namespace, key)
        return payload

    def put(self, namespace: str, key: str, payload: Any) -> Path:
        """Write a payload atomically. Raises CacheError on I/O failure."""
        path = self.path_for(namespace, key)
        entry = {
            "key": key,
            "payload": payload,
            "created_at": self._clock().isoformat(),
        }
        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=path.parent, prefix=f".{path.stem}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(entry, f, ensure_ascii=False)
            os.replace(tmp_name, path)
        except (OSError, TypeError, ValueError) as e:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise CacheError(f"Failed to write cache entry {namespace}/{key}: {e}") from e

        logger.debug("Cached %s/%s -> %s", namespace, key, path)
        return path

    def stats(self) -> Dict[str, int]:
        """Return entry counts per namespace."""
        if not self.root.is_dir():
            return {}
        counts = {}
        for ns_dir in sorted(p for p in self.root.iterdir() if p.is_dir()):
            counts[ns_dir.name] = sum(1 for _ in ns_dir.glob("*.json"))
        return counts
