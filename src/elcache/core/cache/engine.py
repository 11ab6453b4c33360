"""
File Cache Engine

Persistence engine behind every cache context. Keeps the whole store in
memory, loads it from one flat file at construction and writes it back only
when its content hash changed. On close it merges in entries written to the
same file by other processes since this instance last synced with disk.
"""

import logging
import os
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, NamedTuple, Optional, Tuple

from elcache.core.cache import codec
from elcache.core.config.models import CacheConfig
from elcache.core.exceptions import (
    CacheClosedError,
    CacheDecodeError,
    CacheTooLargeError,
    CacheWriteError,
    ElcacheError,
    ErrorContext,
    PathNotWritableError,
)


logger = logging.getLogger(__name__)


class Entry(NamedTuple):
    """A cached value and the absolute timestamp it expires at."""
    value: Any
    expiry: float


@dataclass
class CacheStats:
    """Disk activity of one engine instance."""
    disk_reads: int = 0
    disk_writes: int = 0
    skipped_writes: int = 0
    merges: int = 0
    decode_failures: int = 0


class FileCache:
    """
    In-memory store persisted to ``<path>/elcache.<context>.php``.

    The engine is not thread-safe; one logical writer per instance is
    assumed. Concurrency across processes is handled only by the hash-based
    dirty check and the merge performed in :meth:`close`.
    """

    def __init__(self, config: Optional[CacheConfig] = None):
        """
        Open (or create) the cache file for a context.

        Args:
            config: Cache configuration

        Raises:
            PathNotWritableError: If the cache directory is missing or read-only
            CacheWriteError: If the initial empty file cannot be created
        """
        self.config = config or CacheConfig()
        self.stats = CacheStats()
        self._path = self.config.file_path
        self._data: Dict[str, Entry] = {}
        self._hash: Optional[str] = None
        self._signature: Optional[Tuple[int, int, int]] = None
        self._closed = False
        self.flush_error: Optional[ElcacheError] = None

        directory = self.config.path
        if not directory.is_dir() or not os.access(directory, os.W_OK):
            raise PathNotWritableError(
                f"Cache path is not writable: {directory}",
                path=str(directory),
                context=ErrorContext(
                    operation="open",
                    cache_context=self.config.context,
                    file_path=str(directory),
                ),
            )

        if not self._path.exists():
            payload = codec.EMPTY_PAYLOAD
            self._write_file(payload)
            self._hash = codec.payload_hash(payload)
            logger.info(f"Created cache file {self._path}")
            return

        self._data, self._hash = self._retrieve_file()
        self._signature = self._stat_signature()
        logger.debug(f"Loaded {len(self._data)} entries from {self._path}")

    @property
    def file_path(self) -> Path:
        """Path of the backing file."""
        return self._path

    @property
    def closed(self) -> bool:
        return self._closed

    def _retrieve_file(self) -> Tuple[Dict[str, Entry], str]:
        """
        Read and decode the backing file.

        Returns the decoded store and the hash of the raw payload. A payload
        that fails to decode yields an empty store.
        """
        content = self._path.read_bytes()
        self.stats.disk_reads += 1

        payload = codec.unframe(content)
        payload_hash = codec.payload_hash(payload)
        try:
            store = codec.decode_store(payload)
        except CacheDecodeError as e:
            self.stats.decode_failures += 1
            logger.warning(f"Ignoring unreadable cache file {self._path}: {e.message}")
            return {}, payload_hash

        return {key: Entry(*item) for key, item in store.items()}, payload_hash

    def _stat_signature(self) -> Optional[Tuple[int, int, int]]:
        """Inode, modification time and size of the backing file, None if missing."""
        try:
            stat = self._path.stat()
        except FileNotFoundError:
            return None
        return stat.st_ino, stat.st_mtime_ns, stat.st_size

    def _write_file(self, payload: bytes) -> None:
        """Replace the backing file with a framed payload in one step."""
        temp_path = None
        try:
            with tempfile.NamedTemporaryFile(
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix='.tmp',
                delete=False
            ) as temp_file:
                temp_path = temp_file.name
                temp_file.write(codec.frame(payload))
            os.replace(temp_path, self._path)
        except OSError as e:
            if temp_path and os.path.exists(temp_path):
                os.unlink(temp_path)
            raise CacheWriteError(
                f"Failed to write cache file {self._path}: {e}",
                path=str(self._path),
                cause=e
            )

        self.stats.disk_writes += 1
        self._signature = self._stat_signature()

    def _ensure_open(self) -> None:
        if self._closed:
            raise CacheClosedError(
                f"Cache context '{self.config.context}' has already been closed"
            )

    def get(self, key: str) -> Optional[Entry]:
        """Raw entry for a key, expired or not; None if absent."""
        return self._data.get(key)

    def set(self, key: str, value: Any, expiry: float) -> None:
        """Insert or overwrite an entry."""
        self._ensure_open()
        self._data[key] = Entry(value, expiry)

    def revoke(self, key: str) -> None:
        """Remove a key; absent keys are ignored."""
        self._ensure_open()
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data)

    def items(self) -> Iterator[Tuple[str, Entry]]:
        return iter(list(self._data.items()))

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def purge_expired(self, now: Optional[float] = None, then_write: bool = False) -> int:
        """
        Remove every entry whose expiry lies strictly before ``now``.

        Args:
            now: Reference timestamp (defaults to the current time)
            then_write: Write the store afterwards (unforced)

        Returns:
            Number of entries removed
        """
        self._ensure_open()
        if now is None:
            now = time.time()

        expired = [key for key, entry in self._data.items() if entry.expiry < now]
        for key in expired:
            del self._data[key]

        if expired:
            logger.debug(f"Purged {len(expired)} expired entries from {self._path}")

        if then_write:
            self.write()

        return len(expired)

    def purge_all(self, hard: bool = False) -> None:
        """
        Empty the store.

        A soft purge force-writes the empty store. A hard purge deletes the
        backing file instead; the next write recreates it.
        """
        self._ensure_open()
        self._data = {}

        if not hard:
            self.write(force=True)
            logger.info(f"Purged all entries from {self._path}")
            return

        try:
            self._path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise CacheWriteError(
                f"Failed to delete cache file {self._path}: {e}",
                path=str(self._path),
                cause=e
            )
        self._hash = None
        self._signature = None
        logger.info(f"Deleted cache file {self._path}")

    def write(self, force: bool = False) -> bool:
        """
        Persist the store if it changed since the last sync.

        Args:
            force: Write even when the content hash is unchanged

        Returns:
            True if the file was written

        Raises:
            CacheTooLargeError: If the encoded store exceeds max_buffer
            CacheWriteError: If the store cannot be serialized or written
        """
        try:
            payload = codec.encode_store(self._data)
        except (TypeError, ValueError) as e:
            raise CacheWriteError(
                f"Cache contains a value that cannot be serialized: {e}",
                path=str(self._path),
                cause=e
            )

        limit = self.config.max_buffer_bytes
        if limit is not None and len(payload) > limit:
            raise CacheTooLargeError(
                f"Cache data is {len(payload)} bytes, more than the allowed {limit}. "
                "Either increase max_buffer or revoke keys more often.",
                size=len(payload),
                limit=limit,
                context=ErrorContext(
                    operation="write",
                    cache_context=self.config.context,
                    file_path=str(self._path),
                ),
            )

        payload_hash = codec.payload_hash(payload)
        if not force and payload_hash == self._hash:
            self.stats.skipped_writes += 1
            logger.debug(f"Cache {self._path} unchanged, write skipped")
            return False

        self._write_file(payload)
        self._hash = payload_hash
        return True

    def _modified_elsewhere(self) -> bool:
        """Whether the file changed on disk since this instance last synced."""
        signature = self._stat_signature()
        return signature is not None and signature != self._signature

    def close(self) -> None:
        """
        Reconcile with concurrent writers and flush.

        If another instance wrote the file since our last sync, its entries
        are merged under ours (our value wins on a key collision) and the
        result is force-written. Otherwise a normal unforced write is done.
        Safe to call more than once.

        Close never raises: a failed flush is logged and kept in
        ``flush_error`` so the owner can report it.
        """
        if self._closed:
            return

        try:
            self._reconcile_and_flush()
        except ElcacheError as e:
            self.flush_error = e
            logger.error(f"Failed to flush cache {self._path} on close: {e.message}")
        except OSError as e:
            self.flush_error = CacheWriteError(
                f"Failed to flush cache file {self._path}: {e}",
                path=str(self._path),
                cause=e
            )
            logger.error(f"Failed to flush cache {self._path} on close: {e}")
        finally:
            self._closed = True

    def _reconcile_and_flush(self) -> None:
        """Merge in entries written by other instances, then write."""
        if self._hash is None and not self._data and not self._path.exists():
            # Hard-purged and nothing stored since: leave the file deleted
            logger.debug(f"Cache {self._path} was deleted, nothing to flush")
        elif self._modified_elsewhere():
            try:
                addition, _ = self._retrieve_file()
            except OSError as e:
                logger.warning(f"Could not re-read {self._path} on close, nothing merged: {e}")
                self.write()
            else:
                merged = dict(addition)
                merged.update(self._data)
                logger.info(
                    f"Merged {len(addition)} entries written by another process into {self._path}"
                )
                self._data = merged
                self.stats.merges += 1
                self.write(force=True)
        else:
            self.write()

    def __enter__(self) -> 'FileCache':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"FileCache(path={str(self._path)!r}, entries={len(self._data)})"
