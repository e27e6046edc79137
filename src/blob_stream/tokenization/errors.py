"""Exceptions raised while iterating over blobs.

Running out of data is not an error and has no exception here: it ends
iteration normally. The two faults below are kept apart because they mean
different things to the caller: the stream broke, or the caller kept pulling
after the end.
"""

from typing import Optional, Type


class BlobStreamError(Exception):
    """Base exception for blob streaming faults."""


class SourceReadError(BlobStreamError):
    """The source failed while being read; the scan cannot continue.

    The original exception is chained as ``__cause__`` and its class is kept
    in ``source_error_type``.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.source_error_type: Optional[Type[BaseException]] = (
            type(cause) if cause is not None else None
        )


class BlobsExhaustedError(BlobStreamError, LookupError):
    """A blob was requested after the sequence had ended."""
