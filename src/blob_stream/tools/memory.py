"""Resident memory sampling for long-running scans.

Blob streaming is meant to keep memory bounded by the largest blob rather
than the size of the input. ``MemoryProbe`` samples the process's resident
set size through psutil so a caller can check that claim on real data.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

import psutil

from blob_stream.shared.logging import get_logger

BYTES_PER_MB = 1024 * 1024


@dataclass
class MemorySnapshot:
    """Resident memory observed by a probe."""

    baseline_rss_bytes: int = 0
    current_rss_bytes: int = 0
    peak_rss_bytes: int = 0
    samples: int = 0

    @property
    def peak_growth_bytes(self) -> int:
        """Peak resident memory above the baseline taken at start."""
        return max(0, self.peak_rss_bytes - self.baseline_rss_bytes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "baseline_rss_mb": self.baseline_rss_bytes / BYTES_PER_MB,
            "peak_rss_mb": self.peak_rss_bytes / BYTES_PER_MB,
            "peak_growth_mb": self.peak_growth_bytes / BYTES_PER_MB,
            "samples": self.samples,
        }


class MemoryProbe:
    """Track peak resident memory of the current process.

    Call ``sample`` periodically (for instance every N blobs); sampling is a
    system call, so doing it per unit would dominate the scan.
    """

    def __init__(self, sample_every: int = 1000, pid: Optional[int] = None) -> None:
        """Initialize memory probe.

        Args:
            sample_every: Number of ``tick`` calls between samples
            pid: Process to observe; the current process when omitted
        """
        if sample_every <= 0:
            raise ValueError("sample_every must be > 0")
        self.sample_every = sample_every
        self._process = psutil.Process(pid)
        self._ticks = 0
        self.logger = get_logger(__name__, component="memory_probe")

        rss = self._rss()
        self.snapshot = MemorySnapshot(
            baseline_rss_bytes=rss,
            current_rss_bytes=rss,
            peak_rss_bytes=rss,
            samples=1,
        )

    def _rss(self) -> int:
        return int(self._process.memory_info().rss)

    def sample(self) -> MemorySnapshot:
        """Take a sample now and update the peak."""
        rss = self._rss()
        snapshot = self.snapshot
        snapshot.current_rss_bytes = rss
        snapshot.samples += 1
        if rss > snapshot.peak_rss_bytes:
            snapshot.peak_rss_bytes = rss
            self.logger.debug("New resident memory peak", extra={"peak_rss_bytes": rss})
        return snapshot

    def tick(self) -> None:
        """Count one unit of work, sampling every ``sample_every`` ticks."""
        self._ticks += 1
        if self._ticks % self.sample_every == 0:
            self.sample()
