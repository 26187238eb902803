"""Small persistent key-value stores for lightweight client-style data.

The notification list, soil-moisture readings, cost items and community
posts are whole-document collections that are rewritten on every change.
They live behind the :class:`KeyValueStore` interface so the medium can be
swapped: :class:`JsonFileStore` keeps one JSON file per key under a
directory (default ``var/``), :class:`MemoryStore` keeps everything in a
dict for tests and ephemeral runs.

Corrupt or unreadable documents are logged and treated as missing so the
caller falls back to an empty collection.
"""
from __future__ import annotations

import copy
import json
import logging
import os
import re
import threading
import time
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"[^A-Za-z0-9_.-]")


class KeyValueStore(Protocol):
    """Whole-document persistence keyed by a string."""

    def load(self, key: str, default: Any = None) -> Any: ...

    def save(self, key: str, value: Any) -> None: ...

    def update(self, key: str, fn: Callable[[Any], Any], default: Any = None) -> Any:
        """Load, transform with ``fn`` and save as one atomic step; returns the saved value."""
        ...

    def delete(self, key: str) -> bool: ...

    def keys(self) -> list[str]: ...


class FileLock:
    """Simple file-lock using a lockfile (cross-platform, advisory).

    Note: This is a lightweight lock suitable for single-writer or low-contention
    scenarios. It uses atomic creation of a .lock file and retries until timeout.
    """

    def __init__(self, lock_path: str, timeout: float = 5.0, retry: float = 0.05) -> None:
        self.lock_path = lock_path
        self.timeout = float(timeout)
        self.retry = float(retry)
        self._acquired = False

    def acquire(self) -> bool:
        start = time.time()
        while True:
            try:
                # O_EXCL ensures atomic creation; failing if exists
                fd = os.open(self.lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
                os.close(fd)
                self._acquired = True
                return True
            except FileExistsError:
                if (time.time() - start) >= self.timeout:
                    return False
                time.sleep(self.retry)

    def release(self) -> None:
        try:
            if self._acquired and os.path.exists(self.lock_path):
                os.unlink(self.lock_path)
        finally:
            self._acquired = False

    def __enter__(self):
        ok = self.acquire()
        if not ok:
            raise TimeoutError(f"Failed to acquire file lock: {self.lock_path}")
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()


class JsonFileStore:
    """One JSON document per key, written atomically via a temp file.

    Several processes (web server and ``aquawise-scheduler``) may share a
    directory; :meth:`update` holds the key's lock file across its
    read-modify-write so neither side overwrites the other's changes.
    """

    def __init__(self, directory: str) -> None:
        self._dir = os.path.abspath(directory)
        os.makedirs(self._dir, exist_ok=True)

    @property
    def directory(self) -> str:
        return self._dir

    def _path(self, key: str) -> str:
        return os.path.join(self._dir, _SAFE_KEY.sub("_", key) + ".json")

    def _read(self, path: str, key: str, default: Any) -> Any:
        if not os.path.exists(path):
            return default
        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("Failed to load JSON store %s: %s", key, e)
            return default
        return default if data is None else data

    @staticmethod
    def _write(path: str, value: Any) -> None:
        tmp = path + ".tmp"
        with open(tmp, "w", encoding="utf-8") as fh:
            json.dump(value, fh)
        os.replace(tmp, path)

    def load(self, key: str, default: Any = None) -> Any:
        path = self._path(key)
        if not os.path.exists(path):
            return default
        try:
            with FileLock(path + ".lock"):
                return self._read(path, key, default)
        except TimeoutError as e:
            logger.warning("Failed to load JSON store %s: %s", key, e)
            return default

    def save(self, key: str, value: Any) -> None:
        path = self._path(key)
        with FileLock(path + ".lock"):
            self._write(path, value)

    def update(self, key: str, fn: Callable[[Any], Any], default: Any = None) -> Any:
        path = self._path(key)
        with FileLock(path + ".lock"):
            value = fn(self._read(path, key, default))
            self._write(path, value)
        return value

    def delete(self, key: str) -> bool:
        path = self._path(key)
        try:
            os.remove(path)
            return True
        except FileNotFoundError:
            return False

    def keys(self) -> list[str]:
        return sorted(f[: -len(".json")] for f in os.listdir(self._dir) if f.endswith(".json"))


class MemoryStore:
    """In-process store; values are deep-copied on the way in and out."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(initial or {})
        self._lock = threading.RLock()

    def load(self, key: str, default: Any = None) -> Any:
        with self._lock:
            if key not in self._data:
                return default
            return copy.deepcopy(self._data[key])

    def save(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = copy.deepcopy(value)

    def update(self, key: str, fn: Callable[[Any], Any], default: Any = None) -> Any:
        with self._lock:
            value = fn(self.load(key, default))
            self.save(key, value)
            return value

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._data)
