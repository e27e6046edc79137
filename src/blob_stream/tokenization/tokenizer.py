"""Streaming blob tokenizer built on a small marker-matching state machine.

The tokenizer pulls units from a :class:`CharacterSource` and yields every
blob, that is the literal text from an occurrence of the open marker up to
and including the next occurrence of the close marker. It knows nothing
about XML: markers are matched literally, nesting is ignored, and nothing is
validated.

Matching never backtracks. When the units read after a candidate first
character do not spell the open marker, they are discarded and scanning
resumes after them, even if an open marker started inside them. Likewise the
first close marker seen after an open marker ends the blob. For example with
``[[``/``]]`` the input ``"[[[]] "`` produces ``"[[[]]"``, and with
``<i>``/``</i>`` the input ``"<<i>1</i>"`` produces nothing because the
failed attempt ``"<<i"`` consumed the second ``<``.

Memory use is bounded by the longest blob: only the blob being accumulated is
held, and the close marker is detected by comparing the buffer's tail as each
unit is appended.
"""

import logging
import time
from enum import Enum, auto
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union, cast

from blob_stream.character.source import CharacterSource, InputType
from blob_stream.shared.config import Marker, MarkerPair, StreamingConfig
from blob_stream.shared.logging import get_logger
from blob_stream.shared.result import ScanStatistics

from .errors import BlobsExhaustedError, SourceReadError

Blob = Union[str, bytes]


class TokenizerState(Enum):
    """State machine states for blob scanning."""

    SEEKING_OPEN = auto()    # Discarding units until the open marker's first unit
    MATCHING_OPEN = auto()   # Reading the rest of a candidate open marker
    ACCUMULATING = auto()    # Inside a blob, waiting for the close marker
    EXHAUSTED = auto()       # Source ended or failed; no more blobs


def _split_units(marker: Marker) -> List[Blob]:
    """Split a marker into the units a source of the same type yields."""
    return [marker[i:i + 1] for i in range(len(marker))]


def fast_ends_with(buffer: Sequence[Blob], suffix: Sequence[Blob]) -> bool:
    """Check whether ``buffer`` ends with ``suffix``, comparing from the end.

    Runs in time proportional to ``len(suffix)`` regardless of buffer size.
    """
    suffix_length = len(suffix)
    if len(buffer) < suffix_length:
        return False
    for i in range(1, suffix_length + 1):
        if buffer[-i] != suffix[-i]:
            return False
    return True


class BlobTokenizer:
    """Lazy, forward-only iterator over the blobs of one stream.

    Use it as a Python iterator (``for blob in tokenizer``), or through the
    explicit ``has_next``/``next_blob`` pair. ``next_blob`` raises
    :class:`BlobsExhaustedError` once the sequence has ended, whereas the
    iterator protocol ends with ``StopIteration`` as usual.

    A tokenizer is consumed once and cannot be reset. It reads from its
    source but never closes it. Instances are not thread-safe; give each
    thread its own tokenizer and source.
    """

    def __init__(
        self,
        source: Union[CharacterSource, InputType],
        open_marker: Marker,
        close_marker: Marker,
        config: Optional[StreamingConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Initialize the tokenizer.

        Args:
            source: A CharacterSource, or any input CharacterSource accepts
            open_marker: Non-empty literal that starts a blob
            close_marker: Non-empty literal that ends a blob
            config: Source read tuning, used when ``source`` is wrapped here
            correlation_id: Optional correlation ID for log records

        Raises:
            ValueError: If either marker is empty
            TypeError: If markers and source disagree on text versus bytes
        """
        self.markers = MarkerPair(open_marker, close_marker)
        self.config = config or StreamingConfig()
        binary = self.markers.binary

        if isinstance(source, CharacterSource):
            source.pin_binary(binary)
            self._source = source
        else:
            self._source = CharacterSource(
                source, binary=binary, chunk_size=self.config.chunk_size
            )

        self.logger = get_logger(__name__, correlation_id, "blob_tokenizer")
        self.statistics = ScanStatistics()

        self._empty: Blob = b"" if binary else ""
        self._open_units = _split_units(self.markers.open)
        self._close_units = _split_units(self.markers.close)
        self._open_first = self._open_units[0]
        self._close_last = self._close_units[-1]
        self._open_length = len(self._open_units)

        self._state = TokenizerState.SEEKING_OPEN
        self._buffer: List[Blob] = []
        self._pending: Optional[Blob] = None
        self._prefetched = False
        self._started = False

    @property
    def state(self) -> TokenizerState:
        """Current state of the scanning state machine."""
        return self._state

    @property
    def source(self) -> CharacterSource:
        return self._source

    def __iter__(self) -> Iterator[Blob]:
        return self

    def __next__(self) -> Blob:
        if not self.has_next():
            raise StopIteration
        return self._take()

    def has_next(self) -> bool:
        """Check whether another blob is available, reading ahead if needed.

        Raises:
            SourceReadError: If the source fails while reading ahead
        """
        if not self._prefetched:
            self._pending = self._advance()
            self._prefetched = True
        return self._pending is not None

    def next_blob(self) -> Blob:
        """Consume and return the next blob.

        Raises:
            BlobsExhaustedError: If the sequence has already ended
            SourceReadError: If the source fails while reading
        """
        if not self.has_next():
            raise BlobsExhaustedError("No more blobs in stream")
        return self._take()

    def _take(self) -> Blob:
        """Hand out the blob found by ``has_next``; callers check it first."""
        blob = cast(Blob, self._pending)
        self._pending = None
        self._prefetched = False
        return blob

    def _read_unit(self) -> Blob:
        """Read one unit, turning source failures into a fatal read fault."""
        try:
            return self._source.read_unit()
        except (OSError, ValueError) as e:
            self._state = TokenizerState.EXHAUSTED
            self._buffer.clear()
            self._sync_statistics()
            self.logger.error(
                "Cannot read from source",
                extra={"units_read": self._source.units_read, "error_type": type(e).__name__},
            )
            raise SourceReadError("Cannot read from source", e) from e

    def _advance(self) -> Optional[Blob]:
        """Run the state machine until a blob completes or the source ends."""
        if self._state is TokenizerState.EXHAUSTED:
            return None
        if not self._started:
            self._started = True
            self.logger.info(
                "Starting blob scan",
                extra={"open_marker": repr(self.markers.open),
                       "close_marker": repr(self.markers.close)},
            )

        start_time = time.time()
        try:
            return self._scan()
        finally:
            self.statistics.processing_time_ms += (time.time() - start_time) * 1000

    def _scan(self) -> Optional[Blob]:
        buffer = self._buffer
        read = self._read_unit

        while True:
            state = self._state

            if state is TokenizerState.SEEKING_OPEN:
                unit = read()
                if not unit:
                    self._finish()
                    return None
                if unit == self._open_first:
                    buffer.clear()
                    buffer.append(unit)
                    self._state = TokenizerState.MATCHING_OPEN

            elif state is TokenizerState.MATCHING_OPEN:
                while len(buffer) < self._open_length:
                    unit = read()
                    if not unit:
                        buffer.clear()
                        self._finish()
                        return None
                    buffer.append(unit)
                if buffer == self._open_units:
                    self._state = TokenizerState.ACCUMULATING
                else:
                    # Units of the failed attempt are not scanned again
                    self.statistics.false_starts += 1
                    buffer.clear()
                    self._state = TokenizerState.SEEKING_OPEN

            elif state is TokenizerState.ACCUMULATING:
                unit = read()
                if not unit:
                    self._drop_partial()
                    return None
                buffer.append(unit)
                if unit == self._close_last and fast_ends_with(buffer, self._close_units):
                    return self._emit()

            else:
                return None

    def _emit(self) -> Blob:
        blob = self._empty.join(self._buffer)
        self._buffer.clear()
        self._state = TokenizerState.SEEKING_OPEN
        self.statistics.record_blob(len(blob))
        self._sync_statistics()
        if self.logger.is_enabled_for(logging.DEBUG):
            self.logger.debug(
                "Blob emitted",
                extra={"blob_length": len(blob), "units_read": self._source.units_read},
            )
        return blob

    def _drop_partial(self) -> None:
        """Discard an unterminated blob at end of stream."""
        self.statistics.dropped_partial = True
        self.logger.debug(
            "Dropping unterminated blob at end of stream",
            extra={"partial_length": len(self._buffer)},
        )
        self._buffer.clear()
        self._finish()

    def _finish(self) -> None:
        self._state = TokenizerState.EXHAUSTED
        self._sync_statistics()
        self.logger.info("Blob scan finished", extra=self._stats_extra())

    def _sync_statistics(self) -> None:
        self.statistics.units_read = self._source.units_read

    def _stats_extra(self) -> Dict[str, Any]:
        return {
            "blobs_emitted": self.statistics.blobs_emitted,
            "units_read": self.statistics.units_read,
            "false_starts": self.statistics.false_starts,
            "dropped_partial": self.statistics.dropped_partial,
        }
