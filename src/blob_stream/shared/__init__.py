"""Shared utilities for blob streaming.

This module provides the configuration objects, result types, and logging
helpers used across the source, tokenization, and CLI layers.
"""

from .result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    ScanResult,
    ScanStatistics,
)
from .config import (
    BlobStreamConfig,
    ConfigError,
    ConfigValidationError,
    MarkerPair,
    StreamingConfig,
)
from .logging import (
    CorrelationLogger,
    get_logger,
)

__all__ = [
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "ScanResult",
    "ScanStatistics",
    "BlobStreamConfig",
    "ConfigError",
    "ConfigValidationError",
    "MarkerPair",
    "StreamingConfig",
    "CorrelationLogger",
    "get_logger",
]
