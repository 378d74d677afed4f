"""Address translation: the translation lookaside buffer and the MMU."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Union

logger = logging.getLogger(__name__)

NO_FRAME = 0xFFFFFFFF
"""Value the memory answers with when a page has no frame."""

FrameLookup = Callable[[int, int], Optional[int]]


class TranslationError(Exception):
    """Raised when a logical page cannot be mapped to a frame."""


class TlbAlgorithm(enum.Enum):
    """Replacement policy of the TLB."""

    FIFO = "FIFO"
    LRU = "LRU"

    @classmethod
    def parse(cls, name: Union[str, "TlbAlgorithm"]) -> "TlbAlgorithm":
        """Return the algorithm named ``name``."""
        if isinstance(name, cls):
            return name
        try:
            return cls(name)
        except ValueError:
            raise ValueError(f"invalid TLB replacement algorithm: {name!r}") from None


@dataclass
class _TlbEntry:
    pid: int = 0
    page: Optional[int] = None
    frame: int = 0
    last_used: int = 0


class Tlb:
    """A fixed size cache of (pid, page) to frame translations."""

    def __init__(self, entries: int, algorithm: Union[str, TlbAlgorithm] = TlbAlgorithm.FIFO):
        if entries < 0:
            raise ValueError(f"TLB size cannot be negative: {entries}")
        self.size = entries
        self.algorithm: Optional[TlbAlgorithm] = None
        if entries:
            self.algorithm = TlbAlgorithm.parse(algorithm)
        else:
            logger.warning("TLB disabled")
        self._entries = [_TlbEntry() for _ in range(entries)]
        self._next_fifo = 0
        self._clock = 0

    @property
    def enabled(self) -> bool:
        """Whether the TLB holds any entries at all."""
        return self.size > 0

    def _tick(self) -> int:
        now = self._clock
        self._clock += 1
        return now

    def lookup(self, pid: int, page: int) -> Optional[int]:
        """Return the cached frame of ``page`` for ``pid``, or None on a miss."""
        for entry in self._entries:
            if entry.pid == pid and entry.page == page:
                if self.algorithm is TlbAlgorithm.LRU:
                    entry.last_used = self._tick()
                return entry.frame
        return None

    def insert(self, pid: int, page: int, frame: int) -> None:
        """Cache a translation, evicting an entry by the configured policy."""
        if not self.enabled:
            return
        if self.algorithm is TlbAlgorithm.FIFO:
            entry = self._entries[self._next_fifo]
            entry.pid, entry.page, entry.frame = pid, page, frame
            self._next_fifo = (self._next_fifo + 1) % self.size
            return

        victim = 0
        for index, entry in enumerate(self._entries[1:], start=1):
            if entry.pid == 0:
                victim = index
                break
            if entry.last_used < self._entries[victim].last_used:
                victim = index
        entry = self._entries[victim]
        entry.pid, entry.page, entry.frame = pid, page, frame
        entry.last_used = self._tick()


class Mmu:
    """Translates logical pages into physical addresses, asking memory on a TLB miss."""

    def __init__(self, page_size: int, frame_lookup: FrameLookup, tlb: Optional[Tlb] = None):
        if page_size <= 0:
            raise ValueError(f"page size must be positive: {page_size}")
        self.page_size = page_size
        self.frame_lookup = frame_lookup
        self.tlb = tlb if tlb is not None else Tlb(0)

    def translate(self, pid: int, page: int, offset: int) -> int:
        """Return the physical address of ``offset`` within ``page`` of ``pid``."""
        frame = self.tlb.lookup(pid, page) if self.tlb.enabled else None
        if frame is None:
            logger.info("PID: %d - TLB MISS - Pagina: %d", pid, page)
            frame = self.frame_lookup(pid, page)
            if frame is None or frame == NO_FRAME:
                raise TranslationError(f"no frame for page {page} of process {pid}")
            logger.info("PID: %d - OBTENER MARCO - Pagina: %d - Marco: %d", pid, page, frame)
            self.tlb.insert(pid, page, frame)
        else:
            logger.info("PID: %d - TLB HIT - Pagina: %d", pid, page)
            logger.info("PID: %d - OBTENER MARCO - Pagina: %d - Marco: %d", pid, page, frame)
        return frame * self.page_size + offset

    def physical_addresses(self, pid: int, logical_address: int, size: int, offset: int) -> list[int]:
        """Return the physical address of every page touched by an access.

        Only the first address carries ``offset``; the following ones point at
        the start of their frame.
        """
        first_page = logical_address // self.page_size
        span = size + offset
        pages = -(-span // self.page_size) if span > 0 else 0
        return [
            self.translate(pid, first_page + index, offset if index == 0 else 0)
            for index in range(pages)
        ]