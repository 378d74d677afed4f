"""DialFS: a contiguous-allocation file system kept in ``bitmap.dat`` and ``bloques.dat``."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from .bitmap import BlockBitmap
from .blockstore import BlockStore, BlockStoreError
from .config import ConfigError, load_properties

logger = logging.getLogger(__name__)

BITMAP_FILE = "bitmap.dat"
BLOCKS_FILE = "bloques.dat"
METADATA_SUFFIX = ".txt"


class DialFSError(Exception):
    """Raised when a file system operation cannot be carried out."""


@dataclass
class FileControlBlock:
    """Where a file lives on the disk and how many bytes it holds."""

    name: str
    first_block: int
    size: int = 0


class DialFS:
    """Files stored in contiguous runs of blocks, one metadata file per file."""

    def __init__(
        self,
        path,
        block_size: int,
        block_count: int,
        compaction_delay_ms: int = 0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if block_size <= 0 or block_count <= 0:
            raise DialFSError(f"invalid disk geometry: {block_count} blocks of {block_size} bytes")
        self.path = Path(path)
        self.block_size = block_size
        self.block_count = block_count
        self.compaction_delay_ms = compaction_delay_ms
        self._sleep = sleep
        self._lock = threading.RLock()
        self._files: dict[str, FileControlBlock] = {}

        bitmap_size = -(-block_count // 8)
        try:
            self._bitmap_store = BlockStore.open(self.path / BITMAP_FILE, bitmap_size)
        except BlockStoreError as exc:
            raise DialFSError(str(exc)) from exc
        try:
            self.blocks = BlockStore.open(self.path / BLOCKS_FILE, block_size * block_count)
        except BlockStoreError as exc:
            self._bitmap_store.close()
            raise DialFSError(str(exc)) from exc
        self.bitmap = BlockBitmap.from_bytes(self._bitmap_store.read(0, bitmap_size), block_count)
        self._load_directory()

    def __enter__(self) -> "DialFS":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """Sync and close the bitmap and block files."""
        with self._lock:
            try:
                self.blocks.close()
            finally:
                self._bitmap_store.close()

    # ----------------------------------------------------------- metadata

    def _metadata_path(self, name: str) -> Path:
        return self.path / name

    def _load_directory(self) -> None:
        for entry in sorted(self.path.iterdir()):
            if not entry.is_file() or not entry.name.endswith(METADATA_SUFFIX):
                continue
            try:
                props = load_properties(entry)
                fcb = FileControlBlock(
                    entry.name,
                    int(props["BLOQUE_INICIAL"]),
                    int(props["TAMANIO_ARCHIVO"]),
                )
            except (ConfigError, KeyError, ValueError) as exc:
                raise DialFSError(f"bad metadata file {entry}: {exc}") from exc
            self._files[fcb.name] = fcb

    def _write_metadata(self, fcb: FileControlBlock) -> None:
        text = f"BLOQUE_INICIAL={fcb.first_block}\nTAMANIO_ARCHIVO={fcb.size}\n"
        try:
            self._metadata_path(fcb.name).write_text(text, encoding="utf-8")
        except OSError as exc:
            raise DialFSError(f"cannot write metadata of {fcb.name}: {exc}") from exc

    def _get(self, name: str) -> FileControlBlock:
        try:
            return self._files[name]
        except KeyError:
            raise DialFSError(f"file {name} not found") from None

    # ------------------------------------------------------------- blocks

    def blocks_for(self, size: int) -> int:
        """Return how many blocks a file of ``size`` bytes occupies; never fewer than one."""
        return max(-(-size // self.block_size), 1)

    def _save_bitmap(self) -> None:
        self._bitmap_store.write(0, self.bitmap.to_bytes())

    def _allocate(self, start: int, count: int) -> None:
        if self.bitmap.free_count() == 0:
            raise DialFSError("no free blocks on the disk")
        try:
            for index in range(start, start + count):
                self.bitmap.set(index)
        except IndexError as exc:
            raise DialFSError(str(exc)) from exc
        finally:
            self._save_bitmap()

    def _release(self, start: int, count: int) -> None:
        try:
            for index in range(start, start + count):
                self.bitmap.clear(index)
        except IndexError as exc:
            raise DialFSError(str(exc)) from exc
        finally:
            self._save_bitmap()
        self.blocks.zero(start * self.block_size, count * self.block_size)

    def _find_run(self, length: int) -> Optional[int]:
        run = 0
        for index in range(self.block_count):
            if self.bitmap.test(index):
                run = 0
                continue
            run += 1
            if run >= length:
                return index - length + 1
        return None

    # --------------------------------------------------------- operations

    def exists(self, name: str) -> bool:
        """Return whether ``name`` is a file of this file system."""
        with self._lock:
            return name in self._files

    def create(self, name: str) -> FileControlBlock:
        """Create an empty file in the first free block."""
        with self._lock:
            if name in self._files:
                raise DialFSError(f"file {name} already exists")
            first = self.bitmap.first_free()
            if first is None:
                raise DialFSError(f"no free block to create {name}")
            self._allocate(first, 1)
            fcb = FileControlBlock(name, first, 0)
            self._write_metadata(fcb)
            self._files[name] = fcb
            logger.info("File %s created at block %d", name, first)
            return fcb

    def delete(self, name: str) -> None:
        """Free the blocks of ``name`` and remove its metadata file."""
        with self._lock:
            fcb = self._get(name)
            del self._files[name]
            self._release(fcb.first_block, self.blocks_for(fcb.size))
            try:
                self._metadata_path(name).unlink()
            except OSError as exc:
                raise DialFSError(f"cannot delete {name}: {exc}") from exc
            logger.info("File %s deleted", name)

    def truncate(self, name: str, size: int, pid: int = 0) -> FileControlBlock:
        """Change the size of ``name``, moving or compacting files to grow it."""
        with self._lock:
            fcb = self._get(name)
            if size < 0:
                raise DialFSError(f"cannot truncate {name} to a negative size: {size}")
            current = self.blocks_for(fcb.size)
            wanted = self.blocks_for(size)
            if wanted > self.block_count:
                raise DialFSError(f"out of disk: {name} would need {wanted} blocks")
            if wanted > current:
                self._grow(fcb, current, wanted - current, pid)
            elif wanted < current:
                self._release(fcb.first_block + wanted, current - wanted)
            if fcb.size != size or wanted != current:
                fcb.size = size
                self._write_metadata(fcb)
            return fcb

    def _grow(self, fcb: FileControlBlock, current: int, extra: int, pid: int) -> None:
        free = self.bitmap.free_count()
        if free <= extra:
            raise DialFSError(
                f"file {fcb.name}: {extra} more blocks needed, only {free} free"
            )
        end = fcb.first_block + current
        if end + extra <= self.block_count and not any(
            self.bitmap.test(index) for index in range(end, end + extra)
        ):
            self._allocate(end, extra)
            return

        logger.warning("Not enough adjacent free blocks after %s", fcb.name)
        self._sleep(self.compaction_delay_ms / 1000)
        base = self._find_run(current + extra)
        if base is not None:
            self._relocate(fcb, current, base)
        else:
            logger.info("PID: %d - Inicio Compactación.", pid)
            self.compact(fcb.name)
            logger.info("PID: %d - Fin Compactación.", pid)
        self._allocate(fcb.first_block + current, extra)

    def _relocate(self, fcb: FileControlBlock, current: int, base: int) -> None:
        self._allocate(base, current)
        data = self.blocks.read(fcb.first_block * self.block_size, current * self.block_size)
        self._release(fcb.first_block, current)
        self.blocks.write(base * self.block_size, data)
        fcb.first_block = base
        self._write_metadata(fcb)

    def compact(self, name: str) -> int:
        """Pack every file at the start of the disk with ``name`` last; return its first block."""
        with self._lock:
            target = self._get(name)
            others = [fcb for fcb in self._files.values() if fcb is not target]
            contents = [
                (fcb, self.blocks.read(fcb.first_block * self.block_size, fcb.size))
                for fcb in others
            ]
            target_data = self.blocks.read(target.first_block * self.block_size, target.size)

            self._release(0, self.block_count)
            offset = 0
            for fcb, data in contents:
                fcb.first_block = offset
                self.blocks.write(offset * self.block_size, data)
                self._write_metadata(fcb)
                offset += self.blocks_for(fcb.size)

            self._allocate(0, offset + self.blocks_for(target.size))
            self.blocks.write(offset * self.block_size, target_data)
            target.first_block = offset
            self._write_metadata(target)
            return offset

    def _check_range(self, fcb: FileControlBlock, size: int, pointer: int) -> None:
        if pointer < 0 or size < 0 or pointer + size > fcb.size:
            raise DialFSError(
                f"access of {size} bytes at {pointer} outside {fcb.name} of {fcb.size} bytes"
            )

    def read(self, name: str, size: int, pointer: int) -> bytes:
        """Return ``size`` bytes of ``name`` starting at byte ``pointer``."""
        with self._lock:
            fcb = self._get(name)
            self._check_range(fcb, size, pointer)
            return self.blocks.read(fcb.first_block * self.block_size + pointer, size)

    def write(self, name: str, data: bytes, pointer: int) -> None:
        """Write ``data`` into ``name`` starting at byte ``pointer``."""
        with self._lock:
            fcb = self._get(name)
            data = bytes(data)
            self._check_range(fcb, len(data), pointer)
            self.blocks.write(fcb.first_block * self.block_size + pointer, data)