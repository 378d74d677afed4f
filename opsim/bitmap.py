"""Free-block bitmap of the DialFS disk."""

from __future__ import annotations

import threading


class BlockBitmap:
    """One bit per disk block, set when the block is in use.

    Bits are packed least significant bit first. Block ``i`` lives in byte
    ``i // 8`` under the mask ``1 << (i % 8)``.
    """

    def __init__(self, block_count: int) -> None:
        if block_count < 0:
            raise ValueError(f"block count cannot be negative: {block_count}")
        self.block_count = block_count
        self._bits = bytearray(-(-block_count // 8))
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return self.block_count

    def _check(self, index: int) -> None:
        if not 0 <= index < self.block_count:
            raise IndexError(f"block {index} outside 0..{self.block_count - 1}")

    def test(self, index: int) -> bool:
        """Return whether block ``index`` is in use; blocks outside the disk read as free."""
        if not 0 <= index < self.block_count:
            return False
        with self._lock:
            return bool(self._bits[index // 8] & (1 << (index % 8)))

    def set(self, index: int) -> None:
        """Mark block ``index`` as in use."""
        self._check(index)
        with self._lock:
            self._bits[index // 8] |= 1 << (index % 8)

    def clear(self, index: int) -> None:
        """Mark block ``index`` as free."""
        self._check(index)
        with self._lock:
            self._bits[index // 8] &= ~(1 << (index % 8)) & 0xFF

    def first_free(self) -> int | None:
        """Return the lowest free block, or None when the disk is full."""
        return next((index for index in range(self.block_count) if not self.test(index)), None)

    def free_count(self) -> int:
        """Return how many blocks are free."""
        return sum(1 for index in range(self.block_count) if not self.test(index))

    def to_bytes(self) -> bytes:
        """Return the packed bitmap as stored in ``bitmap.dat``."""
        with self._lock:
            return bytes(self._bits)

    @classmethod
    def from_bytes(cls, data: bytes, block_count: int) -> "BlockBitmap":
        """Rebuild a bitmap of ``block_count`` blocks from its packed bytes."""
        bitmap = cls(block_count)
        needed = len(bitmap._bits)
        if len(data) < needed:
            raise ValueError(f"bitmap of {block_count} blocks needs {needed} bytes, got {len(data)}")
        bitmap._bits[:] = data[:needed]
        spare = needed * 8 - block_count
        if spare:
            bitmap._bits[-1] &= 0xFF >> spare
        return bitmap