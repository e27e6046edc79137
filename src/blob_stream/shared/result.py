"""Result objects and diagnostic types for blob streaming.

Scan statistics are updated live by the tokenizer; diagnostics record notable
outcomes that are not errors, such as a partial blob dropped at end of stream.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()      # Debug-level information
    INFO = auto()       # Informational messages
    WARNING = auto()    # Data was dropped or looks suspicious
    ERROR = auto()      # The scan was terminated by a fault


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry with context information."""

    severity: DiagnosticSeverity
    message: str
    component: str
    position: Optional[int] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")


@dataclass
class ScanStatistics:
    """Counters describing one pass over a stream."""

    units_read: int = 0
    blobs_emitted: int = 0
    false_starts: int = 0
    dropped_partial: bool = False
    largest_blob_length: int = 0
    total_blob_length: int = 0
    processing_time_ms: float = 0.0

    def record_blob(self, length: int) -> None:
        """Account for one emitted blob of ``length`` units."""
        self.blobs_emitted += 1
        self.total_blob_length += length
        if length > self.largest_blob_length:
            self.largest_blob_length = length

    @property
    def average_blob_length(self) -> float:
        """Mean blob length in units."""
        if self.blobs_emitted == 0:
            return 0.0
        return self.total_blob_length / self.blobs_emitted

    @property
    def units_per_second(self) -> float:
        """Calculate units read per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.units_read * 1000.0) / self.processing_time_ms

    def to_dict(self) -> Dict[str, Any]:
        return {
            "units_read": self.units_read,
            "blobs_emitted": self.blobs_emitted,
            "false_starts": self.false_starts,
            "dropped_partial": self.dropped_partial,
            "largest_blob_length": self.largest_blob_length,
            "average_blob_length": self.average_blob_length,
            "processing_time_ms": self.processing_time_ms,
            "units_per_second": self.units_per_second,
        }


@dataclass
class ScanResult:
    """Outcome of draining a stream with ``scan``."""

    blob_count: int = 0
    statistics: ScanStatistics = field(default_factory=ScanStatistics)
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    correlation_id: Optional[str] = None

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        position: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Add a diagnostic entry."""
        self.diagnostics.append(DiagnosticEntry(
            severity=severity,
            message=message,
            component=component,
            position=position,
            details=details,
            correlation_id=self.correlation_id,
        ))

    def get_diagnostics_by_severity(
        self,
        severity: DiagnosticSeverity
    ) -> List[DiagnosticEntry]:
        """Get diagnostics of a specific severity level."""
        return [diag for diag in self.diagnostics if diag.severity == severity]

    def summary(self) -> Dict[str, Any]:
        """Get summary statistics for the scan."""
        summary = {"blob_count": self.blob_count}
        summary.update(self.statistics.to_dict())
        summary["diagnostics_count"] = len(self.diagnostics)
        return summary
