"""Configuration files for the CPU and the I/O interface processes."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional


class ConfigError(Exception):
    """Raised when a configuration file is missing, unreadable or incomplete."""


def load_properties(path) -> dict[str, str]:
    """Read a ``KEY=VALUE`` file; blank lines and ``#`` comments are ignored."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read configuration {path}: {exc}") from exc

    props: dict[str, str] = {}
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        key, sep, value = stripped.partition("=")
        if not sep:
            continue
        props[key.strip()] = value.strip()
    return props


def _require_str(props: Mapping[str, str], key: str) -> str:
    try:
        return props[key]
    except KeyError:
        raise ConfigError(f"missing configuration key {key}") from None


def _require_int(props: Mapping[str, str], key: str) -> int:
    raw = _require_str(props, key)
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"configuration key {key} is not an integer: {raw!r}") from None


class InterfaceType(enum.Enum):
    """Kinds of I/O interface, named as they appear in ``TIPO_INTERFAZ``."""

    GENERIC = "IO_GEN"
    STDIN = "IO_STDIN"
    STDOUT = "IO_STDOUT"
    DIALFS = "IO_DIALFS"

    @classmethod
    def parse(cls, name: str) -> "InterfaceType":
        """Return the interface type whose configuration name is ``name``."""
        try:
            return cls(name)
        except ValueError:
            raise ConfigError(f"unknown interface type: {name!r}") from None


@dataclass(frozen=True)
class CpuConfig:
    """Settings of the CPU process."""

    cpu_ip: str
    memory_ip: str
    memory_port: str
    dispatch_port: str
    interrupt_port: str
    tlb_entries: int
    tlb_algorithm: str

    @classmethod
    def from_properties(cls, props: Mapping[str, str]) -> "CpuConfig":
        """Build the settings from already parsed properties."""
        return cls(
            cpu_ip=_require_str(props, "IP_CPU"),
            memory_ip=_require_str(props, "IP_MEMORIA"),
            memory_port=_require_str(props, "PUERTO_MEMORIA"),
            dispatch_port=_require_str(props, "PUERTO_ESCUCHA_DISPATCH"),
            interrupt_port=_require_str(props, "PUERTO_ESCUCHA_INTERRUPT"),
            tlb_entries=_require_int(props, "CANTIDAD_ENTRADAS_TLB"),
            tlb_algorithm=_require_str(props, "ALGORITMO_TLB"),
        )

    @classmethod
    def load(cls, path) -> "CpuConfig":
        """Read the settings from a configuration file."""
        return cls.from_properties(load_properties(path))


@dataclass(frozen=True)
class IoConfig:
    """Settings of an I/O interface process."""

    interface_type: InterfaceType
    kernel_ip: str
    kernel_port: str
    memory_ip: str
    memory_port: str
    dialfs_path: str
    block_size: int
    block_count: int
    compaction_delay_ms: int
    work_unit_time_ms: Optional[int] = None

    @property
    def compaction_delay_us(self) -> int:
        """Compaction delay in microseconds."""
        return self.compaction_delay_ms * 1000

    @classmethod
    def from_properties(cls, props: Mapping[str, str]) -> "IoConfig":
        """Build the settings from already parsed properties."""
        interface_type = InterfaceType.parse(_require_str(props, "TIPO_INTERFAZ"))
        work_unit = None
        if interface_type in (InterfaceType.GENERIC, InterfaceType.DIALFS):
            work_unit = _require_int(props, "TIEMPO_UNIDAD_TRABAJO")
        return cls(
            interface_type=interface_type,
            kernel_ip=_require_str(props, "IP_KERNEL"),
            kernel_port=_require_str(props, "PUERTO_KERNEL"),
            memory_ip=_require_str(props, "IP_MEMORIA"),
            memory_port=_require_str(props, "PUERTO_MEMORIA"),
            dialfs_path=_require_str(props, "PATH_BASE_DIALFS"),
            block_size=_require_int(props, "BLOCK_SIZE"),
            block_count=_require_int(props, "BLOCK_COUNT"),
            compaction_delay_ms=_require_int(props, "RETRASO_COMPACTACION"),
            work_unit_time_ms=work_unit,
        )

    @classmethod
    def load(cls, path) -> "IoConfig":
        """Read the settings from a configuration file."""
        return cls.from_properties(load_properties(path))