"""Configuration classes for blob streaming.

This module provides configuration objects for the tokenizer and the source
adapter. Marker pairs are validated when constructed so that a bad
configuration fails fast instead of silently producing no blobs.
"""

import codecs
import json
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Union

Marker = Union[str, bytes]

DEFAULT_CHUNK_SIZE = 8192


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass(frozen=True)
class MarkerPair:
    """The literal open and close markers delimiting a blob.

    Both markers must be non-empty and of the same type: ``str`` for text
    streams, ``bytes`` for binary streams.
    """

    open: Marker
    close: Marker

    def __post_init__(self) -> None:
        """Validate marker pair."""
        for name in ("open", "close"):
            value = getattr(self, name)
            if isinstance(value, bytearray):
                object.__setattr__(self, name, bytes(value))
            elif not isinstance(value, (str, bytes)):
                raise TypeError(
                    f"{name} marker must be str or bytes, got {type(value).__name__}"
                )
            if not getattr(self, name):
                raise ValueError(f"{name} marker cannot be empty")
        if type(self.open) is not type(self.close):
            raise TypeError("open and close markers must both be str or both be bytes")

    @property
    def binary(self) -> bool:
        """Whether the markers match byte units rather than characters."""
        return isinstance(self.open, bytes)

    @classmethod
    def for_element(cls, tag: str) -> "MarkerPair":
        """Markers for an attribute-less XML element, e.g. ``<page>``/``</page>``."""
        if not tag:
            raise ValueError("tag cannot be empty")
        return cls(f"<{tag}>", f"</{tag}>")


@dataclass
class StreamingConfig:
    """Performance tuning for reading the source; no effect on produced blobs."""

    chunk_size: int = DEFAULT_CHUNK_SIZE

    def __post_init__(self) -> None:
        """Validate streaming configuration."""
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be > 0")


@dataclass(frozen=True)
class BlobStreamConfig:
    """Complete configuration for extracting blobs from a stream.

    Thread-safe due to frozen dataclass implementation; ``streaming`` is a
    plain dataclass and should be replaced through ``override`` rather than
    mutated in place.
    """

    markers: MarkerPair
    streaming: StreamingConfig = field(default_factory=StreamingConfig)
    encoding: str = "utf-8"
    encoding_errors: str = "strict"
    name: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the complete configuration."""
        if not isinstance(self.markers, MarkerPair):
            raise ConfigValidationError(
                "markers must be a MarkerPair",
                field_name="markers",
                suggestions=["Use MarkerPair(open, close)"],
            )
        if not self.encoding:
            raise ConfigValidationError("encoding cannot be empty", field_name="encoding")
        try:
            codecs.lookup(self.encoding)
        except LookupError as e:
            raise ConfigValidationError(
                f"Unknown encoding: {self.encoding}",
                field_name="encoding",
                suggestions=["utf-8", "latin-1", "utf-16"],
            ) from e
        if self.encoding_errors not in ("strict", "ignore", "replace"):
            raise ConfigValidationError(
                f"Unsupported encoding_errors mode: {self.encoding_errors}",
                field_name="encoding_errors",
                suggestions=["strict", "ignore", "replace"],
            )

    @property
    def binary(self) -> bool:
        return self.markers.binary

    @classmethod
    def create(
        cls,
        open_marker: Marker,
        close_marker: Marker,
        **kwargs: Any
    ) -> "BlobStreamConfig":
        """Build a configuration, turning marker errors into ConfigValidationError."""
        try:
            markers = MarkerPair(open_marker, close_marker)
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(str(e), field_name="markers") from e
        return cls(markers=markers, **kwargs)

    def override(self, **kwargs: Any) -> "BlobStreamConfig":
        """Create a new configuration with specific overrides.

        Args:
            **kwargs: Fields to override; ``streaming__<field>`` and
                ``markers__<field>`` address nested fields

        Returns:
            New BlobStreamConfig instance with overrides applied

        Example:
            >>> config = BlobStreamConfig.wikipedia_pages()
            >>> bigger = config.override(streaming__chunk_size=262144)
        """
        nested: Dict[str, Dict[str, Any]] = {}
        top_level: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if "__" in key:
                component, field_name = key.split("__", 1)
                nested.setdefault(component, {})[field_name] = value
            else:
                top_level[key] = value

        for component in nested:
            if component not in ("markers", "streaming"):
                raise ConfigValidationError(
                    f"Unknown configuration section: {component}",
                    field_name=component,
                )

        try:
            for component, values in nested.items():
                top_level[component] = replace(getattr(self, component), **values)
            return replace(self, **top_level)
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(str(e)) from e

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format.

        Byte markers are stored as latin-1 text with ``binary`` set so the
        dictionary stays JSON-serializable.
        """
        binary = self.binary
        return {
            "markers": {
                "open": self.markers.open.decode("latin-1") if binary else self.markers.open,
                "close": self.markers.close.decode("latin-1") if binary else self.markers.close,
                "binary": binary,
            },
            "streaming": {
                "chunk_size": self.streaming.chunk_size,
            },
            "encoding": self.encoding,
            "encoding_errors": self.encoding_errors,
            "name": self.name,
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BlobStreamConfig":
        """Create configuration from dictionary.

        Args:
            data: Dictionary in the layout produced by ``to_dict``

        Returns:
            BlobStreamConfig instance created from dictionary
        """
        markers_data = data.get("markers")
        if not isinstance(markers_data, dict):
            raise ConfigValidationError(
                "Configuration requires a 'markers' section",
                field_name="markers",
                suggestions=['{"markers": {"open": "<page>", "close": "</page>"}}'],
            )
        open_marker = markers_data.get("open", "")
        close_marker = markers_data.get("close", "")
        if markers_data.get("binary"):
            open_marker = open_marker.encode("latin-1")
            close_marker = close_marker.encode("latin-1")

        try:
            streaming = StreamingConfig(**data.get("streaming", {}))
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(str(e), field_name="streaming") from e

        kwargs = {
            key: data[key]
            for key in ("encoding", "encoding_errors", "name")
            if data.get(key) is not None
        }
        return cls.create(open_marker, close_marker, streaming=streaming, **kwargs)

    @classmethod
    def from_json(cls, json_str: str) -> "BlobStreamConfig":
        """Create configuration from JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid configuration JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration JSON must be an object")
        return cls.from_dict(data)

    # Preset factory methods
    @classmethod
    def xml_element(cls, tag: str, **kwargs: Any) -> "BlobStreamConfig":
        """Preset extracting every ``<tag>...</tag>`` record."""
        try:
            markers = MarkerPair.for_element(tag)
        except ValueError as e:
            raise ConfigValidationError(str(e), field_name="tag") from e
        return cls(markers=markers, name=kwargs.pop("name", f"xml_element:{tag}"), **kwargs)

    @classmethod
    def wikipedia_pages(cls) -> "BlobStreamConfig":
        """Preset for MediaWiki XML dumps, one blob per ``<page>``."""
        return cls.xml_element(
            "page",
            name="wikipedia_pages",
            streaming=StreamingConfig(chunk_size=65536),
        )


PRESETS = {
    "wikipedia_pages": BlobStreamConfig.wikipedia_pages,
}
