"""Process control block and its CPU registers."""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_WIDTHS = {
    "AX": 1,
    "BX": 1,
    "CX": 1,
    "DX": 1,
    "EAX": 4,
    "EBX": 4,
    "ECX": 4,
    "EDX": 4,
    "PC": 4,
    "SI": 4,
    "DI": 4,
}


class RegisterError(Exception):
    """Raised for a register name the CPU does not know."""


def register_width(name: str) -> int:
    """Return the width of a register in bytes."""
    try:
        return _WIDTHS[name]
    except KeyError:
        raise RegisterError(f"unknown register: {name!r}") from None


def _mask(name: str) -> int:
    return (1 << (8 * register_width(name))) - 1


@dataclass
class Pcb:
    """Execution context of a process: its id, program counter and registers."""

    pid: int = 0
    pc: int = 0
    ax: int = 0
    bx: int = 0
    cx: int = 0
    dx: int = 0
    eax: int = 0
    ebx: int = 0
    ecx: int = 0
    edx: int = 0
    si: int = 0
    di: int = 0

    def get(self, name: str) -> int:
        """Return the value of the named register."""
        register_width(name)
        return getattr(self, name.lower())

    def set(self, name: str, value: int) -> int:
        """Store ``value`` truncated to the register's width and return it."""
        stored = value & _mask(name)
        setattr(self, name.lower(), stored)
        logger.debug("PID %d: %s set to %d", self.pid, name, stored)
        return stored

    def _arithmetic(self, destination: str, source: str, sign: int) -> int:
        mask = _mask(destination)
        operand = self.get(source)
        result = (self.get(destination) + sign * operand) & mask
        setattr(self, destination.lower(), result)
        logger.debug("PID %d: %s = %d", self.pid, destination, result)
        return result

    def add(self, destination: str, source: str) -> int:
        """Add ``source`` into ``destination``, wrapping at its width."""
        return self._arithmetic(destination, source, 1)

    def sub(self, destination: str, source: str) -> int:
        """Subtract ``source`` from ``destination``, wrapping at its width."""
        return self._arithmetic(destination, source, -1)

    def jump_if_not_zero(self, name: str, target: int) -> bool:
        """Set the program counter to ``target`` if the register is non-zero."""
        if self.get(name) != 0:
            self.pc = target & _mask("PC")
            return True
        logger.debug("PID %d: %s is zero, no jump", self.pid, name)
        return False