"""Command-line interface module for blob-stream.

This module provides the ``extract`` and ``count`` commands for streaming
marker-delimited records out of large files.
"""

from .main import main

__all__ = ["main"]
