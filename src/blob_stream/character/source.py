"""Forward-only character sources for blob tokenization.

This module adapts the inputs callers actually have (strings, bytes, open
files, chunk generators) to the one operation the tokenizer needs: read the
next unit, or learn that the stream has ended. Units are one-character
``str`` values for text sources and one-byte ``bytes`` values for binary
sources; the end of the stream is signalled with an empty unit, mirroring
``read(1)`` on a file object.

Sources never seek, never peek, and never close what they wrap.
"""

import io
from contextlib import contextmanager
from pathlib import Path
from typing import (
    Any,
    BinaryIO,
    Iterable,
    Iterator,
    Optional,
    TextIO,
    Union,
)

from blob_stream.shared.config import DEFAULT_CHUNK_SIZE
from blob_stream.shared.logging import get_logger

# Type definitions for input data
Chunk = Union[str, bytes]
InputType = Union[str, bytes, bytearray, BinaryIO, TextIO, Iterable[Chunk]]
PathLike = Union[str, Path]

logger = get_logger(__name__, component="character_source")


def _infer_binary(input_data: Any) -> Optional[bool]:
    """Decide from the input object alone whether it yields bytes.

    Returns None when only the first chunk can tell.
    """
    if isinstance(input_data, str):
        return False
    if isinstance(input_data, (bytes, bytearray, memoryview)):
        return True
    if isinstance(input_data, io.TextIOBase):
        return False
    if isinstance(input_data, (io.RawIOBase, io.BufferedIOBase)):
        return True
    mode = getattr(input_data, "mode", None)
    if isinstance(mode, str):
        return "b" in mode
    return None


def _read_chunks(reader: Any, chunk_size: int) -> Iterator[Chunk]:
    """Yield successive ``read(chunk_size)`` results until an empty read."""
    while True:
        chunk = reader.read(chunk_size)
        if not chunk:
            return
        yield chunk


class CharacterSource:
    """Sequential supplier of single characters or bytes.

    The wrapped input is read ``chunk_size`` units at a time and handed out
    one unit per ``read_unit`` call, so the caller pays for one underlying
    read per chunk rather than per unit.

    Exceptions raised by the wrapped input while reading propagate unchanged;
    the tokenizer decides how to surface them.
    """

    def __init__(
        self,
        input_data: InputType,
        binary: Optional[bool] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        """Initialize the source.

        Args:
            input_data: String, bytes, file-like object with ``read(n)``, or
                an iterable of ``str``/``bytes`` chunks
            binary: Whether units are bytes; inferred from the input (or its
                first chunk) when omitted
            chunk_size: Number of units requested per underlying read

        Raises:
            TypeError: If the input kind is not supported or contradicts ``binary``
            ValueError: If chunk_size is not positive
        """
        if chunk_size <= 0:
            raise ValueError("chunk_size must be > 0")

        inferred = _infer_binary(input_data)
        if binary is not None and inferred is not None and binary != inferred:
            kind = "bytes" if inferred else "text"
            raise TypeError(
                f"Source yields {kind} but binary={binary} was requested"
            )
        self._binary = binary if binary is not None else inferred
        self.chunk_size = chunk_size

        self._chunks = self._open_chunks(input_data)
        self._chunk: Chunk = self.empty_unit
        self._index = 0
        self.units_read = 0
        self.exhausted = False

    def _open_chunks(self, input_data: Any) -> Iterator[Chunk]:
        """Normalize input data into an iterator of chunks."""
        if isinstance(input_data, (bytearray, memoryview)):
            return iter((bytes(input_data),))
        if isinstance(input_data, (str, bytes)):
            return iter((input_data,))
        if hasattr(input_data, "read"):
            return _read_chunks(input_data, self.chunk_size)
        if isinstance(input_data, Iterable):
            return iter(input_data)
        raise TypeError(
            f"Unsupported source type: {type(input_data).__name__}"
        )

    @property
    def binary(self) -> Optional[bool]:
        """Whether units are bytes; None until known."""
        return self._binary

    def pin_binary(self, binary: bool) -> None:
        """Fix the unit type before reading; later chunks of the other type raise TypeError.

        Raises:
            TypeError: If the source already yields the other unit type
        """
        if self._binary is None:
            self._binary = binary
            if not self._chunk:
                self._chunk = self.empty_unit
        elif self._binary != binary:
            raise TypeError(
                f"Source unit type does not match marker type "
                f"(source binary={self._binary}, markers binary={binary})"
            )

    @property
    def empty_unit(self) -> Chunk:
        """The end-of-stream value for this source's unit type."""
        return b"" if self._binary else ""

    def _fill(self) -> bool:
        """Load the next non-empty chunk. Returns False at end of stream."""
        for chunk in self._chunks:
            if isinstance(chunk, (bytearray, memoryview)):
                chunk = bytes(chunk)
            if not isinstance(chunk, (str, bytes)):
                raise TypeError(
                    f"Source produced {type(chunk).__name__}, expected str or bytes"
                )
            is_bytes = isinstance(chunk, bytes)
            if self._binary is None:
                self._binary = is_bytes
            elif is_bytes != self._binary:
                expected = "bytes" if self._binary else "str"
                raise TypeError(
                    f"Source produced {type(chunk).__name__} chunk, expected {expected}"
                )
            if chunk:
                self._chunk = chunk
                self._index = 0
                return True

        self.exhausted = True
        self._chunk = self.empty_unit
        self._index = 0
        logger.debug("Source exhausted", extra={"units_read": self.units_read})
        return False

    def read_unit(self) -> Chunk:
        """Read the next unit, or return an empty unit at end of stream."""
        if self._index >= len(self._chunk):
            if self.exhausted or not self._fill():
                return self.empty_unit
        unit = self._chunk[self._index:self._index + 1]
        self._index += 1
        self.units_read += 1
        return unit

    def __iter__(self) -> Iterator[Chunk]:
        """Iterate over the remaining units."""
        while True:
            unit = self.read_unit()
            if not unit:
                return
            yield unit


@contextmanager
def open_source(
    path: PathLike,
    binary: bool = False,
    encoding: str = "utf-8",
    errors: str = "strict",
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Iterator[CharacterSource]:
    """Open a file and wrap it as a source, closing the file on exit.

    Text files are opened with ``newline=""`` so line endings reach the
    tokenizer exactly as stored.

    Args:
        path: File to read
        binary: Read raw bytes instead of decoded text
        encoding: Text encoding (ignored for binary)
        errors: Decoding error handling (ignored for binary)
        chunk_size: Number of units requested per underlying read

    Yields:
        CharacterSource bound to the open file
    """
    file_path = Path(path)
    if binary:
        stream = file_path.open("rb")
    else:
        stream = file_path.open("r", encoding=encoding, errors=errors, newline="")

    logger.debug(
        "Opened file source",
        extra={"path": str(file_path), "binary": binary, "encoding": encoding},
    )
    try:
        yield CharacterSource(stream, binary=binary, chunk_size=chunk_size)
    finally:
        stream.close()
