"""Registers, TLB/MMU translation, instruction decoding and the DialFS block file system."""

__version__ = "0.1.0"