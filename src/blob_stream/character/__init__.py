"""Character source layer for blob streaming.

Adapts strings, bytes, file objects and chunk iterators into the forward-only,
one-unit-at-a-time reader consumed by the tokenizer.
"""

from .source import (
    CharacterSource,
    InputType,
    open_source,
)

__all__ = [
    "CharacterSource",
    "InputType",
    "open_source",
]
