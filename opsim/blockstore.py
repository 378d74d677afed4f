"""The ``bloques.dat`` file: a fixed size byte area mapped into memory."""

from __future__ import annotations

import mmap
import os
import threading
from pathlib import Path


class BlockStoreError(Exception):
    """Raised when the block file cannot be opened, mapped or accessed."""


class BlockStore:
    """A file of fixed size, read and written in place through a memory map."""

    def __init__(self, path: Path, size: int, mapping: mmap.mmap) -> None:
        self.path = path
        self.size = size
        self._map: mmap.mmap | None = mapping
        self._lock = threading.Lock()

    @classmethod
    def open(cls, path, size: int) -> "BlockStore":
        """Open or create ``path``, grow it to at least ``size`` bytes and map it."""
        if size <= 0:
            raise BlockStoreError(f"block file size must be positive: {size}")
        path = Path(path)
        try:
            fd = os.open(path, os.O_RDWR | os.O_CREAT, 0o777)
        except OSError as exc:
            raise BlockStoreError(f"cannot open or create {path}: {exc}") from exc
        try:
            if os.fstat(fd).st_size < size:
                os.ftruncate(fd, size)
            mapping = mmap.mmap(fd, size, access=mmap.ACCESS_WRITE)
        except (OSError, ValueError) as exc:
            raise BlockStoreError(f"cannot map {path}: {exc}") from exc
        finally:
            os.close(fd)
        return cls(path, size, mapping)

    def __enter__(self) -> "BlockStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        """Whether the store has been closed."""
        return self._map is None

    def _mapping(self) -> mmap.mmap:
        if self._map is None:
            raise BlockStoreError(f"block file {self.path} is closed")
        return self._map

    def _check(self, start: int, size: int) -> None:
        if start < 0 or size < 0 or start + size > self.size:
            raise BlockStoreError(
                f"range {start}..{start + size} outside block file of {self.size} bytes"
            )

    def read(self, start: int, size: int) -> bytes:
        """Return ``size`` bytes starting at ``start``."""
        self._check(start, size)
        with self._lock:
            return bytes(self._mapping()[start:start + size])

    def write(self, start: int, data: bytes) -> None:
        """Write ``data`` at ``start`` and sync it to disk."""
        data = bytes(data)
        self._check(start, len(data))
        with self._lock:
            mapping = self._mapping()
            mapping[start:start + len(data)] = data
            self._sync(mapping)

    def zero(self, start: int, size: int) -> None:
        """Fill ``size`` bytes starting at ``start`` with zeros."""
        self._check(start, size)
        with self._lock:
            mapping = self._mapping()
            mapping[start:start + size] = bytes(size)
            self._sync(mapping)

    def flush(self) -> None:
        """Sync the whole mapping to disk."""
        with self._lock:
            self._sync(self._mapping())

    def _sync(self, mapping: mmap.mmap) -> None:
        try:
            mapping.flush()
        except OSError as exc:
            raise BlockStoreError(f"cannot sync {self.path}: {exc}") from exc

    def close(self) -> None:
        """Sync and unmap the file; closing twice is harmless."""
        with self._lock:
            if self._map is None:
                return
            try:
                self._map.flush()
            finally:
                self._map.close()
                self._map = None