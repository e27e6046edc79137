"""Comprehensive tests for the streaming blob tokenizer."""

import io
import logging

import pytest

from blob_stream.character import CharacterSource
from blob_stream.shared.config import StreamingConfig
from blob_stream.tokenization import (
    BlobTokenizer,
    BlobsExhaustedError,
    SourceReadError,
    TokenizerState,
    fast_ends_with,
)


def failing_chunks(chunks, error):
    """Yield the given chunks, then raise ``error``."""
    for chunk in chunks:
        yield chunk
    raise error


class TestFastEndsWith:
    """Tests for the tail comparison helper."""

    def test_matching_suffix(self):
        """Test suffix present at the end of the buffer."""
        assert fast_ends_with(list("<i>1</i>"), list("</i>"))

    def test_non_matching_suffix(self):
        """Test suffix differing in one unit."""
        assert not fast_ends_with(list("<i>1</b>"), list("</i>"))

    def test_buffer_shorter_than_suffix(self):
        """Test buffer too short to hold the suffix."""
        assert not fast_ends_with(list("]"), list("]]"))

    def test_suffix_equal_to_buffer(self):
        """Test buffer consisting exactly of the suffix."""
        assert fast_ends_with(list("]]"), list("]]"))


class TestTokenizerScenarios:
    """End-to-end blob extraction scenarios."""

    def test_consecutive_elements(self):
        """Test three adjacent element records."""
        tokenizer = BlobTokenizer("<i>1</i><i>2</i><i>3</i>", "<i>", "</i>")
        assert list(tokenizer) == ["<i>1</i>", "<i>2</i>", "<i>3</i>"]

    def test_bracket_markers_do_not_backtrack(self):
        """Test that the first close marker wins and consumed units are not rescanned."""
        tokenizer = BlobTokenizer('[[]]]    [[    ]]] [[[]] ', "[[", "]]")
        assert list(tokenizer) == ["[[]]", "[[    ]]", "[[[]]"]

    @pytest.mark.parametrize("text", [
        "<list> <i>\n\t1</i>\n<i>2</i><i>3</i><list>",
        "<i>\n\t1</i>\n<i>2</i><i>3</i><list>",
    ])
    def test_records_with_filler_and_false_starts(self, text):
        """Test that filler and unrelated tags around the records are skipped."""
        blobs = list(BlobTokenizer(text, "<i>", "</i>"))

        assert len(blobs) == 3
        for blob in blobs:
            assert blob.startswith("<i>")
            assert blob.endswith("</i>")
        assert blobs[0] == "<i>\n\t1</i>"

    def test_failed_open_match_consumes_units(self):
        """Test that an open marker starting inside a failed attempt is missed."""
        tokenizer = BlobTokenizer("<<i>1</i>", "<i>", "</i>")
        assert list(tokenizer) == []
        assert tokenizer.statistics.false_starts == 2

    def test_single_character_markers(self):
        """Test degenerate one-character markers."""
        tokenizer = BlobTokenizer("xxaYYbzzab a b", "a", "b")
        assert list(tokenizer) == ["aYYb", "ab", "a b"]

    def test_close_marker_sharing_open_characters(self):
        """Test a close marker that could overlap the open marker."""
        tokenizer = BlobTokenizer("<a>x<a>", "<a", "a>")
        assert list(tokenizer) == ["<a>", "<a>"]

    def test_open_marker_ending_with_close_marker(self):
        """Test the close marker is only looked for in units read after the open marker."""
        tokenizer = BlobTokenizer("<a>x>", "<a>", ">")
        assert list(tokenizer) == ["<a>x>"]

    def test_nested_markers_are_not_balanced(self):
        """Test that nesting is ignored and the first close marker ends the blob."""
        tokenizer = BlobTokenizer("<i><i>x</i></i>", "<i>", "</i>")
        assert list(tokenizer) == ["<i><i>x</i>"]

    def test_wikipedia_like_pages(self):
        """Test page records with nested markup inside."""
        page = "<page><title>T{n}</title><text>body {n}</text></page>"
        text = "<mediawiki>\n" + "\n".join(page.format(n=n) for n in range(50)) + "\n</mediawiki>"
        blobs = list(BlobTokenizer(text, "<page>", "</page>"))

        assert len(blobs) == 50
        assert blobs[7] == page.format(n=7)


class TestTokenizerEdgeCases:
    """Stream boundary behaviour."""

    def test_empty_input(self):
        """Test that empty input yields no blobs."""
        tokenizer = BlobTokenizer("", "<i>", "</i>")
        assert list(tokenizer) == []
        assert tokenizer.state is TokenizerState.EXHAUSTED

    def test_markers_never_found(self):
        """Test input without any open marker."""
        assert list(BlobTokenizer("plain text only", "<i>", "</i>")) == []

    def test_unterminated_blob_is_dropped(self):
        """Test that a blob cut off by end of stream is dropped silently."""
        tokenizer = BlobTokenizer("<i>1</i><i>2</i><i>3", "<i>", "</i>")

        assert list(tokenizer) == ["<i>1</i>", "<i>2</i>"]
        assert tokenizer.statistics.dropped_partial is True

    def test_truncated_open_marker(self):
        """Test end of stream in the middle of an open marker."""
        tokenizer = BlobTokenizer("<i>1</i><i", "<i>", "</i>")

        assert list(tokenizer) == ["<i>1</i>"]
        assert tokenizer.statistics.dropped_partial is False

    def test_blob_at_very_end_of_stream(self):
        """Test that a close marker ending the stream still completes the blob."""
        assert list(BlobTokenizer("junk<i>z</i>", "<i>", "</i>")) == ["<i>z</i>"]

    def test_open_marker_followed_by_close_marker(self):
        """Test blob with empty middle content."""
        assert list(BlobTokenizer("<i></i>", "<i>", "</i>")) == ["<i></i>"]

    def test_markers_split_across_chunks(self):
        """Test markers straddling the boundaries of source chunks."""
        chunks = ["<", "i", ">a<", "/i", "><i>b</", "i>"]
        assert list(BlobTokenizer(chunks, "<i>", "</i>")) == ["<i>a</i>", "<i>b</i>"]

    def test_tiny_read_chunks(self):
        """Test that chunk size has no effect on the output."""
        text = "[[a]] [[b]] [[c"
        expected = list(BlobTokenizer(text, "[[", "]]"))
        tiny = list(BlobTokenizer(io.StringIO(text), "[[", "]]", config=StreamingConfig(chunk_size=1)))

        assert tiny == expected == ["[[a]]", "[[b]]"]


class TestTokenizerContract:
    """Iteration protocol and fault separation."""

    def test_has_next_and_next_blob(self):
        """Test explicit pull interface."""
        tokenizer = BlobTokenizer("<i>1</i><i>2</i>", "<i>", "</i>")

        assert tokenizer.has_next() is True
        assert tokenizer.has_next() is True
        assert tokenizer.next_blob() == "<i>1</i>"
        assert tokenizer.next_blob() == "<i>2</i>"
        assert tokenizer.has_next() is False

    def test_next_blob_after_end_raises(self):
        """Test that pulling past the end is a fault, not a sentinel."""
        tokenizer = BlobTokenizer("<i>1</i>", "<i>", "</i>")
        tokenizer.next_blob()

        with pytest.raises(BlobsExhaustedError):
            tokenizer.next_blob()
        with pytest.raises(BlobsExhaustedError):
            tokenizer.next_blob()

    def test_exhausted_error_is_lookup_error(self):
        """Test that exhaustion can be caught like other missing-element faults."""
        tokenizer = BlobTokenizer("", "<i>", "</i>")
        with pytest.raises(LookupError):
            tokenizer.next_blob()

    def test_iterator_protocol_ends_normally(self):
        """Test that the iterator protocol ends with StopIteration."""
        tokenizer = BlobTokenizer("<i>1</i>", "<i>", "</i>")

        assert iter(tokenizer) is tokenizer
        assert next(tokenizer) == "<i>1</i>"
        with pytest.raises(StopIteration):
            next(tokenizer)

    def test_not_restartable(self):
        """Test that a consumed tokenizer stays empty."""
        tokenizer = BlobTokenizer("<i>1</i>", "<i>", "</i>")

        assert list(tokenizer) == ["<i>1</i>"]
        assert list(tokenizer) == []

    def test_lazy_reading(self):
        """Test that only the units needed for the next blob are read."""
        source = CharacterSource("<i>1</i>" + "x" * 100, chunk_size=1)
        tokenizer = BlobTokenizer(source, "<i>", "</i>")

        assert source.units_read == 0
        assert tokenizer.next_blob() == "<i>1</i>"
        assert source.units_read == len("<i>1</i>")

    def test_unbounded_source(self):
        """Test pulling blobs from an endless generator."""
        def endless():
            n = 0
            while True:
                yield f"<r>{n}</r>"
                n += 1

        tokenizer = BlobTokenizer(endless(), "<r>", "</r>")
        assert [tokenizer.next_blob() for _ in range(5)] == [f"<r>{n}</r>" for n in range(5)]

    def test_deterministic_across_instances(self):
        """Test identical content gives identical blob sequences."""
        text = "a[[1]]b[[[2]]c[[3"
        first = list(BlobTokenizer(io.StringIO(text), "[[", "]]"))
        second = list(BlobTokenizer(iter([text[:4], text[4:]]), "[[", "]]"))
        assert first == second

    def test_source_is_not_closed(self):
        """Test that the tokenizer leaves the stream open."""
        stream = io.StringIO("<i>1</i>")
        list(BlobTokenizer(stream, "<i>", "</i>"))
        assert stream.closed is False


class TestTokenizerFaults:
    """Source failures and configuration errors."""

    def test_read_failure_is_wrapped(self):
        """Test that an I/O failure surfaces as SourceReadError."""
        chunks = failing_chunks(["<i>1</i><i>2"], OSError("disk gone"))
        tokenizer = BlobTokenizer(chunks, "<i>", "</i>")

        assert tokenizer.next_blob() == "<i>1</i>"
        with pytest.raises(SourceReadError, match="disk gone") as excinfo:
            tokenizer.next_blob()

        assert isinstance(excinfo.value.__cause__, OSError)
        assert excinfo.value.source_error_type is OSError
        assert tokenizer.state is TokenizerState.EXHAUSTED

    def test_read_failure_terminates_sequence(self):
        """Test that the sequence is over after a read fault."""
        tokenizer = BlobTokenizer(failing_chunks([], OSError("boom")), "<i>", "</i>")

        with pytest.raises(SourceReadError):
            tokenizer.has_next()
        assert tokenizer.has_next() is False
        with pytest.raises(BlobsExhaustedError):
            tokenizer.next_blob()

    def test_interruption_from_source(self):
        """Test that a source cancelling itself surfaces as a read fault."""
        chunks = failing_chunks(["<i>partial"], InterruptedError("cancelled"))
        with pytest.raises(SourceReadError) as excinfo:
            list(BlobTokenizer(chunks, "<i>", "</i>"))
        assert excinfo.value.source_error_type is InterruptedError

    def test_decoding_failure_is_read_fault(self):
        """Test that undecodable input from a text stream is a read fault."""
        raw = io.BytesIO(b"<i>\xff\xfe</i>")
        stream = io.TextIOWrapper(raw, encoding="utf-8")

        with pytest.raises(SourceReadError) as excinfo:
            list(BlobTokenizer(stream, "<i>", "</i>"))
        assert excinfo.value.source_error_type is UnicodeDecodeError

    def test_read_failure_is_logged(self, caplog):
        """Test that read faults are logged at error level."""
        chunks = failing_chunks(["<i>"], OSError("boom"))
        with caplog.at_level(logging.ERROR, logger="blob_stream.tokenization.tokenizer"):
            with pytest.raises(SourceReadError):
                list(BlobTokenizer(chunks, "<i>", "</i>"))

        assert any(record.getMessage() == "Cannot read from source" for record in caplog.records)

    @pytest.mark.parametrize("open_marker,close_marker", [("", "</i>"), ("<i>", "")])
    def test_empty_marker_fails_fast(self, open_marker, close_marker):
        """Test that empty markers are rejected at construction."""
        with pytest.raises(ValueError, match="marker cannot be empty"):
            BlobTokenizer("<i>1</i>", open_marker, close_marker)

    def test_mixed_marker_types_rejected(self):
        """Test that str and bytes markers cannot be combined."""
        with pytest.raises(TypeError):
            BlobTokenizer("<i>1</i>", "<i>", b"</i>")

    def test_source_type_mismatch_rejected(self):
        """Test that a text source cannot be scanned with byte markers."""
        with pytest.raises(TypeError):
            BlobTokenizer(CharacterSource("<i>1</i>"), b"<i>", b"</i>")

    def test_chunk_iterable_type_mismatch_rejected(self):
        """Test that text chunks from an iterable are rejected with byte markers."""
        tokenizer = BlobTokenizer(CharacterSource(iter(["<i>1</i>"])), b"<i>", b"</i>")
        with pytest.raises(TypeError, match="expected bytes"):
            list(tokenizer)

    def test_chunk_iterable_pinned_to_marker_type(self):
        """Test that a source of unknown unit type takes the markers' type."""
        source = CharacterSource(iter([b"<i>1</i>"]))
        assert source.binary is None

        tokenizer = BlobTokenizer(source, b"<i>", b"</i>")
        assert source.binary is True
        assert list(tokenizer) == [b"<i>1</i>"]


class TestBinaryTokenization:
    """Byte streams with byte markers."""

    def test_bytes_input(self):
        """Test extraction from bytes."""
        tokenizer = BlobTokenizer(b"<i>1</i>\x00<i>2</i>", b"<i>", b"</i>")
        assert list(tokenizer) == [b"<i>1</i>", b"<i>2</i>"]

    def test_binary_stream(self):
        """Test extraction from a binary file object with multi-byte content."""
        data = "<p>café</p><p>über</p>".encode("utf-8")
        blobs = list(BlobTokenizer(io.BytesIO(data), b"<p>", b"</p>"))

        assert [blob.decode("utf-8") for blob in blobs] == ["<p>café</p>", "<p>über</p>"]

    def test_bytearray_markers(self):
        """Test that bytearray markers are accepted."""
        tokenizer = BlobTokenizer(b"[[x]]", bytearray(b"[["), bytearray(b"]]"))
        assert list(tokenizer) == [b"[[x]]"]


class TestTokenizerStatistics:
    """Live statistics gathered while scanning."""

    def test_statistics_after_scan(self):
        """Test counters after a complete scan."""
        tokenizer = BlobTokenizer("<x--<i>1</i><i>22</i>", "<i>", "</i>")
        list(tokenizer)
        stats = tokenizer.statistics

        assert stats.blobs_emitted == 2
        assert stats.units_read == len("<x--<i>1</i><i>22</i>")
        assert stats.largest_blob_length == len("<i>22</i>")
        assert stats.false_starts == 1
        assert stats.average_blob_length == pytest.approx(8.5)
        assert stats.processing_time_ms >= 0.0

    def test_scan_logs_start_and_finish(self, caplog):
        """Test info records at start and end of a scan."""
        with caplog.at_level(logging.INFO, logger="blob_stream.tokenization.tokenizer"):
            list(BlobTokenizer("<i>1</i>", "<i>", "</i>", correlation_id="scan-1"))

        messages = [record.getMessage() for record in caplog.records]
        assert "Starting blob scan" in messages
        assert "Blob scan finished" in messages
        assert all(record.correlation_id == "scan-1" for record in caplog.records)
