"""High-level blob streaming API.

Level 1 of the API: plain functions that build a tokenizer for the caller.

- ``iter_blobs`` streams blobs from any supported input.
- ``iter_blobs_from_file`` opens a file, streams its blobs and closes it.
- ``scan`` drains a stream, optionally handing each blob to a consumer, and
  reports statistics and diagnostics.

Markers are given either directly or through a :class:`BlobStreamConfig`.
"""

from pathlib import Path
from typing import Callable, Iterator, Optional, Union

from blob_stream.character.source import InputType, open_source
from blob_stream.shared.config import BlobStreamConfig, ConfigValidationError, Marker
from blob_stream.shared.logging import get_logger
from blob_stream.shared.result import DiagnosticSeverity, ScanResult

from .tokenizer import Blob, BlobTokenizer

BlobConsumer = Callable[[Blob], None]

logger = get_logger(__name__, component="blob_api")


def _resolve_config(
    open_marker: Optional[Marker],
    close_marker: Optional[Marker],
    config: Optional[BlobStreamConfig],
) -> BlobStreamConfig:
    """Combine explicit markers and an optional configuration."""
    if open_marker is None and close_marker is None:
        if config is None:
            raise ConfigValidationError(
                "Markers are required",
                field_name="markers",
                suggestions=["Pass open_marker and close_marker", "Pass config"],
            )
        return config
    if open_marker is None or close_marker is None:
        raise ConfigValidationError(
            "open_marker and close_marker must be given together",
            field_name="markers",
        )
    if config is None:
        return BlobStreamConfig.create(open_marker, close_marker)
    return config.override(markers__open=open_marker, markers__close=close_marker)


def create_tokenizer(
    input_data: InputType,
    open_marker: Optional[Marker] = None,
    close_marker: Optional[Marker] = None,
    config: Optional[BlobStreamConfig] = None,
    correlation_id: Optional[str] = None,
) -> BlobTokenizer:
    """Build a tokenizer over ``input_data`` from markers and/or configuration."""
    resolved = _resolve_config(open_marker, close_marker, config)
    return BlobTokenizer(
        input_data,
        resolved.markers.open,
        resolved.markers.close,
        config=resolved.streaming,
        correlation_id=correlation_id,
    )


def iter_blobs(
    input_data: InputType,
    open_marker: Optional[Marker] = None,
    close_marker: Optional[Marker] = None,
    config: Optional[BlobStreamConfig] = None,
    correlation_id: Optional[str] = None,
) -> Iterator[Blob]:
    """Stream the blobs of ``input_data``.

    The input is never closed. Markers are validated before the first blob is
    requested.

    Example:
        >>> list(iter_blobs("<i>1</i><i>2</i>", "<i>", "</i>"))
        ['<i>1</i>', '<i>2</i>']
    """
    return create_tokenizer(input_data, open_marker, close_marker, config, correlation_id)


def iter_blobs_from_file(
    path: Union[str, Path],
    open_marker: Optional[Marker] = None,
    close_marker: Optional[Marker] = None,
    config: Optional[BlobStreamConfig] = None,
    correlation_id: Optional[str] = None,
) -> Iterator[Blob]:
    """Stream the blobs of a file, closing it when iteration ends.

    Text or binary mode follows the marker type. Text files are decoded with
    the configured encoding.
    """
    resolved = _resolve_config(open_marker, close_marker, config)

    def _generate() -> Iterator[Blob]:
        with open_source(
            path,
            binary=resolved.binary,
            encoding=resolved.encoding,
            errors=resolved.encoding_errors,
            chunk_size=resolved.streaming.chunk_size,
        ) as source:
            tokenizer = create_tokenizer(source, config=resolved, correlation_id=correlation_id)
            yield from tokenizer

    return _generate()


def scan(
    input_data: InputType,
    open_marker: Optional[Marker] = None,
    close_marker: Optional[Marker] = None,
    config: Optional[BlobStreamConfig] = None,
    consumer: Optional[BlobConsumer] = None,
    correlation_id: Optional[str] = None,
) -> ScanResult:
    """Drain ``input_data``, passing each blob to ``consumer`` if given.

    Args:
        input_data: Any input accepted by CharacterSource
        open_marker: Literal that starts a blob
        close_marker: Literal that ends a blob
        config: Configuration used when markers are omitted, or as a base
        consumer: Called with each blob in stream order
        correlation_id: Optional correlation ID for log records

    Returns:
        ScanResult with the blob count, statistics and diagnostics

    Raises:
        SourceReadError: If the source fails mid-scan
    """
    tokenizer = create_tokenizer(
        input_data, open_marker, close_marker, config, correlation_id
    )
    result = ScanResult(statistics=tokenizer.statistics, correlation_id=correlation_id)

    for blob in tokenizer:
        result.blob_count += 1
        if consumer is not None:
            consumer(blob)

    statistics = tokenizer.statistics
    if statistics.dropped_partial:
        logger.warning(
            "Unterminated blob dropped at end of stream",
            extra={"units_read": statistics.units_read},
        )
        result.add_diagnostic(
            DiagnosticSeverity.WARNING,
            "Stream ended inside a blob; the unterminated blob was dropped",
            "blob_tokenizer",
            position=statistics.units_read,
        )
    if result.blob_count == 0:
        result.add_diagnostic(
            DiagnosticSeverity.INFO,
            "No blobs found in stream",
            "blob_tokenizer",
            details={"units_read": statistics.units_read,
                     "false_starts": statistics.false_starts},
        )

    logger.debug("Scan complete", extra={"blob_count": result.blob_count})
    return result
