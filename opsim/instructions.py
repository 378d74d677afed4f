"""Instruction text as fetched from memory, and its parsed form."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class InstructionError(Exception):
    """Raised for an instruction the CPU cannot decode."""


class Opcode(enum.Enum):
    """Instructions understood by the CPU, valued by their mnemonic."""

    SET = "SET"
    SUM = "SUM"
    SUB = "SUB"
    JNZ = "JNZ"
    MOV_IN = "MOV_IN"
    MOV_OUT = "MOV_OUT"
    RESIZE = "RESIZE"
    COPY_STRING = "COPY_STRING"
    WAIT = "WAIT"
    SIGNAL = "SIGNAL"
    EXIT = "EXIT"
    IO_GEN_SLEEP = "IO_GEN_SLEEP"
    IO_STDIN_READ = "IO_STDIN_READ"
    IO_STDOUT_WRITE = "IO_STDOUT_WRITE"
    IO_FS_CREATE = "IO_FS_CREATE"
    IO_FS_DELETE = "IO_FS_DELETE"
    IO_FS_TRUNCATE = "IO_FS_TRUNCATE"
    IO_FS_WRITE = "IO_FS_WRITE"
    IO_FS_READ = "IO_FS_READ"

    @property
    def arity(self) -> int:
        """Number of arguments the instruction needs."""
        return _ARITY[self]


_ARITY = {
    Opcode.SET: 2,
    Opcode.SUM: 2,
    Opcode.SUB: 2,
    Opcode.JNZ: 2,
    Opcode.MOV_IN: 2,
    Opcode.MOV_OUT: 2,
    Opcode.RESIZE: 1,
    Opcode.COPY_STRING: 1,
    Opcode.WAIT: 1,
    Opcode.SIGNAL: 1,
    Opcode.EXIT: 0,
    Opcode.IO_GEN_SLEEP: 2,
    Opcode.IO_STDIN_READ: 3,
    Opcode.IO_STDOUT_WRITE: 3,
    Opcode.IO_FS_CREATE: 2,
    Opcode.IO_FS_DELETE: 2,
    Opcode.IO_FS_TRUNCATE: 3,
    Opcode.IO_FS_WRITE: 5,
    Opcode.IO_FS_READ: 5,
}


@dataclass(frozen=True)
class Instruction:
    """A decoded instruction: its opcode and its textual arguments."""

    opcode: Opcode
    arguments: tuple[str, ...] = ()

    def __str__(self) -> str:
        return " ".join((self.opcode.value, *self.arguments))


def count_spaces(line: str) -> int:
    """Return how many space characters ``line`` contains."""
    return line.count(" ")


def parse_instruction(line: str) -> Instruction:
    """Decode a line such as ``"SET AX 1"``; each space separates one argument."""
    text = line.rstrip("\r\n")
    name, *arguments = text.split(" ")
    try:
        opcode = Opcode(name)
    except ValueError:
        raise InstructionError(f"unknown instruction: {name!r}") from None
    if len(arguments) < opcode.arity:
        raise InstructionError(
            f"{opcode.value} needs {opcode.arity} arguments, got {len(arguments)}: {text!r}"
        )
    return Instruction(opcode, tuple(arguments))