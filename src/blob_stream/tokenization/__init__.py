"""Blob tokenization for large delimited streams.

This module provides the streaming tokenizer that cuts a character or byte
stream into blobs bounded by literal open and close markers, plus the
level-1 functions built on it.

Key Components:
    BlobTokenizer: Lazy, forward-only iterator over the blobs of one stream
    TokenizerState: State machine states used while scanning
    iter_blobs / iter_blobs_from_file / scan: Convenience entry points
    SourceReadError / BlobsExhaustedError: The two faults a scan can raise
"""

from .errors import (
    BlobStreamError,
    BlobsExhaustedError,
    SourceReadError,
)
from .tokenizer import (
    Blob,
    BlobTokenizer,
    TokenizerState,
    fast_ends_with,
)
from .api import (
    create_tokenizer,
    iter_blobs,
    iter_blobs_from_file,
    scan,
)

__all__ = [
    "Blob",
    "BlobStreamError",
    "BlobTokenizer",
    "BlobsExhaustedError",
    "SourceReadError",
    "TokenizerState",
    "create_tokenizer",
    "fast_ends_with",
    "iter_blobs",
    "iter_blobs_from_file",
    "scan",
]
