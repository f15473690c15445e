"""Content-addressed, best-effort disk cache."""

from contextlib import contextmanager
from datetime import datetime, timezone
import glob
import json
import logging
import os
import re
import shutil
import tempfile
from typing import Any, Iterator
import uuid

from content_cache.content_cache_error import CacheIOError
from content_cache.content_cache_namespace import CacheNamespace


_KEY_RE = re.compile(r'^[A-Za-z0-9_-][A-Za-z0-9_.-]*$')
_ENTRY_SUFFIX = ".json"
_TEMP_SUFFIX = ".tmp"


def format_size(size_bytes: int) -> str:
    """
    Format a byte count for display.

    Args:
        size_bytes: Number of bytes

    Returns:
        Human readable size, e.g. "512 B", "1.0 KB" or "5.0 MB"
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"

    if size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"

    return f"{size_bytes / (1024 * 1024):.1f} MB"


@contextmanager
def _temporary_file(directory: str, prefix: str) -> Iterator[str]:
    """
    Provide a temporary file path in a directory, removing it on every exit path.

    If the caller has renamed the file into place, there is nothing left to remove.
    """
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=prefix, suffix=_TEMP_SUFFIX)
    os.close(fd)
    try:
        yield tmp_path

    finally:
        try:
            os.remove(tmp_path)

        except FileNotFoundError:
            pass


class ContentCache:
    """
    Key/value store on disk, partitioned by namespace.

    Every entry lives in its own file, "<root>/<namespace>/<key>.json", holding the key,
    the time it was stored and the payload.  The cache is best-effort: write failures are
    logged and ignored, and read failures behave exactly like a miss.  Writes go to a
    temporary file that is atomically renamed over the entry, and clearing renames the
    whole cache directory out of the way before deleting it, so a concurrent reader sees
    either a complete entry or nothing.
    """

    def __init__(self, root_dir: str) -> None:
        """
        Initialize the cache.

        Args:
            root_dir: Directory holding all namespaces; created lazily on first write
        """
        self._root_dir = os.path.abspath(root_dir)
        self._logger = logging.getLogger("ContentCache")

    def root_dir(self) -> str:
        """Get the directory holding all namespaces."""
        return self._root_dir

    def _entry_path(self, namespace: CacheNamespace, key: str) -> str:
        """
        Get the file path for an entry.

        Raises:
            CacheIOError: If the key is not safe to use as a file name
        """
        if not _KEY_RE.match(key):
            raise CacheIOError(f"Invalid cache key: {key!r}")

        return os.path.join(self._root_dir, namespace.value, key + _ENTRY_SUFFIX)

    def get(self, namespace: CacheNamespace, key: str) -> Any | None:
        """
        Read an entry.

        Args:
            namespace: Namespace to read from
            key: Entry key

        Returns:
            The stored payload, or None on a miss or any read failure
        """
        namespace = CacheNamespace(namespace)
        try:
            path = self._entry_path(namespace, key)
            with open(path, 'r', encoding='utf-8') as f:
                entry = json.load(f)

        except FileNotFoundError:
            return None

        except (CacheIOError, OSError, ValueError) as e:
            self._logger.warning("Cache read failed for %s/%s, treating as miss: %s", namespace.value, key, str(e))
            return None

        if not isinstance(entry, dict) or entry.get("key") != key or "payload" not in entry:
            self._logger.warning("Cache entry %s/%s is malformed, treating as miss", namespace.value, key)
            return None

        return entry["payload"]

    def put(self, namespace: CacheNamespace, key: str, payload: Any) -> None:
        """
        Write an entry, replacing any existing entry with the same key.

        Failures are logged and otherwise ignored.

        Args:
            namespace: Namespace to write to
            key: Entry key
            payload: JSON-serializable payload
        """
        namespace = CacheNamespace(namespace)
        try:
            self._write_entry(namespace, key, payload)

        except CacheIOError as e:
            self._logger.warning("Cache write failed for %s/%s: %s", namespace.value, key, str(e))

    def _write_entry(self, namespace: CacheNamespace, key: str, payload: Any) -> None:
        """
        Atomically write an entry.

        Raises:
            CacheIOError: If the payload cannot be serialized or the file cannot be written
        """
        path = self._entry_path(namespace, key)
        entry = {
            "key": key,
            "storedAt": datetime.now(timezone.utc).isoformat(),
            "payload": payload
        }

        try:
            text = json.dumps(entry, ensure_ascii=False)

        except (TypeError, ValueError) as e:
            raise CacheIOError(f"Payload is not serializable: {str(e)}") from e

        try:
            directory = os.path.dirname(path)
            os.makedirs(directory, exist_ok=True)

            # Write to temp file then rename for atomic operation
            with _temporary_file(directory, key + ".") as tmp_path:
                with open(tmp_path, 'w', encoding='utf-8') as f:
                    f.write(text)

                os.replace(tmp_path, path)

        except OSError as e:
            raise CacheIOError(f"Failed to write cache entry: {str(e)}") from e

        self._logger.debug("Cached %s/%s (%d bytes)", namespace.value, key, len(text))

    def size_bytes(self) -> int:
        """
        Get the total size of all committed entries across all namespaces.

        Returns:
            Size in bytes; 0 if the cache is empty or unreadable
        """
        total = 0
        for namespace in CacheNamespace:
            pattern = os.path.join(glob.escape(self._root_dir), namespace.value, "*" + _ENTRY_SUFFIX)
            for path in glob.glob(pattern):
                try:
                    total += os.path.getsize(path)

                except OSError:
                    # Removed by a concurrent clear
                    continue

        return total

    def clear(self) -> None:
        """
        Remove every entry in every namespace.

        The cache directory is renamed to a tombstone in one step and then deleted, so
        readers never observe a partially cleared namespace.
        """
        tombstone = f"{self._root_dir}.clearing-{uuid.uuid4().hex}"
        try:
            os.replace(self._root_dir, tombstone)

        except FileNotFoundError:
            pass

        except OSError as e:
            self._logger.warning("Failed to clear cache %s: %s", self._root_dir, str(e))
            return

        # Also sweep tombstones left behind by an interrupted clear
        for path in glob.glob(f"{glob.escape(self._root_dir)}.clearing-*"):
            try:
                shutil.rmtree(path)

            except OSError as e:
                self._logger.warning("Failed to remove cleared cache directory %s: %s", path, str(e))

        self._logger.info("Cache cleared: %s", self._root_dir)
