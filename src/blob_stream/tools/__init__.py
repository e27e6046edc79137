"""Operational tools for blob streaming.

Provides memory sampling used by the CLI to report how much resident memory a
scan needed.
"""

from .memory import MemoryProbe, MemorySnapshot

__all__ = [
    "MemoryProbe",
    "MemorySnapshot",
]
