"""Blob stream.

Extracts marker-delimited segments ("blobs") from arbitrarily large character
or byte streams one at a time, so each record can be parsed on its own while
memory stays bounded by the largest record.

Progressive API Disclosure:
- Level 1: Simple functions - iter_blobs(), iter_blobs_from_file(), scan()
- Level 2: Explicit tokenizer - BlobTokenizer over a CharacterSource
- Level 3: Configuration objects - BlobStreamConfig presets and overrides
"""

__version__ = "0.1.0"
__author__ = "Blob Stream Team"

# Progressive API disclosure - Level 1: Simple functions
from .tokenization import iter_blobs, iter_blobs_from_file, scan

# Progressive API disclosure - Level 2: Explicit tokenizer
from .character import CharacterSource, open_source
from .tokenization import (
    BlobStreamError,
    BlobTokenizer,
    BlobsExhaustedError,
    SourceReadError,
    TokenizerState,
)

# Configuration and result classes for advanced usage
from .shared import (
    BlobStreamConfig,
    ConfigValidationError,
    MarkerPair,
    ScanResult,
    ScanStatistics,
    StreamingConfig,
)

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple functions (progressive disclosure entry point)
    "iter_blobs",
    "iter_blobs_from_file",
    "scan",

    # Level 2: Explicit tokenizer and source
    "BlobTokenizer",
    "CharacterSource",
    "TokenizerState",
    "open_source",

    # Faults
    "BlobStreamError",
    "BlobsExhaustedError",
    "SourceReadError",

    # Configuration and result objects
    "BlobStreamConfig",
    "ConfigValidationError",
    "MarkerPair",
    "ScanResult",
    "ScanStatistics",
    "StreamingConfig",
]
