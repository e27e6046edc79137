#!/usr/bin/env python3
"""
Quick Start Guide for blob-stream.

Shows the three levels of the API: iterating blobs of an in-memory string,
scanning a file with statistics, and driving the tokenizer explicitly.
"""

import io
import tempfile
from pathlib import Path

from blob_stream import (
    BlobStreamConfig,
    BlobTokenizer,
    BlobsExhaustedError,
    iter_blobs,
    iter_blobs_from_file,
    scan,
)

DUMP = """<mediawiki>
  <page><title>Alpha</title><text>first</text></page>
  <page><title>Beta</title><text>second</text></page>
  <page><title>Gamma</title><text>never closed
"""


def simple_iteration():
    """Level 1: iterate blobs of a string."""
    print("🚀 Step 1: Simple iteration")
    print("-" * 30)

    for blob in iter_blobs("x<i>1</i>y<i>22</i>z", "<i>", "</i>"):
        print(f"  blob: {blob}")


def file_scan():
    """Level 1: stream a file and collect statistics."""
    print("\n📄 Step 2: Scanning a file")
    print("-" * 30)

    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "dump.xml"
        path.write_text(DUMP, encoding="utf-8")

        config = BlobStreamConfig.wikipedia_pages()
        for blob in iter_blobs_from_file(path, config=config):
            print(f"  {len(blob):4d} chars: {blob[:40]}...")

        with path.open(encoding="utf-8") as handle:
            result = scan(handle, config=config)

    stats = result.statistics
    print(f"✅ Blobs: {result.blob_count}")
    print(f"📏 Largest blob: {stats.largest_blob_length} units")
    print(f"⚠️  Unterminated blob dropped: {stats.dropped_partial}")
    for diagnostic in result.diagnostics:
        print(f"  - {diagnostic.severity.name}: {diagnostic.message}")


def explicit_tokenizer():
    """Level 2: pull blobs on demand from a byte stream."""
    print("\n🔧 Step 3: Explicit tokenizer over bytes")
    print("-" * 30)

    tokenizer = BlobTokenizer(io.BytesIO(b"[[one]] [[two]]"), b"[[", b"]]")
    while tokenizer.has_next():
        print(f"  blob: {tokenizer.next_blob()!r}")

    try:
        tokenizer.next_blob()
    except BlobsExhaustedError:
        print(f"✅ Exhausted, state={tokenizer.state.name}")


if __name__ == "__main__":
    simple_iteration()
    file_scan()
    explicit_tokenizer()
