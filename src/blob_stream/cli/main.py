"""Main CLI entry point for the blob-stream command-line tool.

Provides commands to extract the blobs of large delimited files one at a time
and to count them with scan statistics and memory usage.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import IO, Any, Dict, List, Optional

from blob_stream import __version__
from blob_stream.shared.config import PRESETS, BlobStreamConfig, ConfigValidationError
from blob_stream.shared.logging import get_logger
from blob_stream.tokenization import Blob, SourceReadError, iter_blobs_from_file, scan
from blob_stream.character import open_source
from blob_stream.tools.memory import MemoryProbe

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


class CLIConfig:
    """Configuration management for CLI operations."""

    def __init__(self) -> None:
        self.stream_config: Optional[BlobStreamConfig] = None
        self.output_format = "jsonl"
        self.separator = "\n"
        self.limit: Optional[int] = None

    @classmethod
    def from_file(cls, config_path: Path) -> "CLIConfig":
        """Load CLI configuration from a JSON file.

        The file may name a ``preset`` or carry a full ``stream`` section in
        the layout of ``BlobStreamConfig.to_dict``.

        Raises:
            ConfigValidationError: If the file cannot be read or is invalid
        """
        config = cls()
        try:
            data = json.loads(config_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigValidationError(f"Could not load config file {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigValidationError("Config file must contain a JSON object")

        if "preset" in data:
            config.stream_config = resolve_preset(data["preset"])
        if "stream" in data:
            config.stream_config = BlobStreamConfig.from_dict(data["stream"])

        config.output_format = data.get("output_format", config.output_format)
        config.separator = data.get("separator", config.separator)
        config.limit = data.get("limit", config.limit)
        return config


def resolve_preset(name: str) -> BlobStreamConfig:
    """Look up a named configuration preset."""
    factory = PRESETS.get(name)
    if factory is None:
        raise ConfigValidationError(
            f"Unknown preset: {name}",
            field_name="preset",
            suggestions=sorted(PRESETS),
        )
    return factory()


def resolve_stream_config(args: argparse.Namespace) -> BlobStreamConfig:
    """Pick markers from the command line, falling back to preset and config file.

    Explicit ``--open``/``--close`` win over ``--tag``, which wins over
    ``--preset``, which wins over the config file.
    """
    base: Optional[BlobStreamConfig] = None
    if getattr(args, "config", None):
        base = CLIConfig.from_file(args.config).stream_config
    if getattr(args, "preset", None):
        base = resolve_preset(args.preset)
    if getattr(args, "tag", None):
        base = BlobStreamConfig.xml_element(args.tag)

    open_marker = getattr(args, "open", None)
    close_marker = getattr(args, "close", None)
    if open_marker is not None or close_marker is not None:
        if open_marker is None or close_marker is None:
            raise ConfigValidationError("--open and --close must be given together")
        if base is None:
            base = BlobStreamConfig.create(open_marker, close_marker)
        else:
            base = base.override(markers__open=open_marker, markers__close=close_marker)

    if base is None:
        raise ConfigValidationError(
            "No markers configured",
            suggestions=["--open/--close", "--tag", "--preset", "--config"],
        )

    if getattr(args, "encoding", None):
        base = base.override(encoding=args.encoding)

    overrides: Dict[str, Any] = {}
    if getattr(args, "binary", False) and not base.binary:
        try:
            overrides["markers__open"] = base.markers.open.encode(base.encoding)
            overrides["markers__close"] = base.markers.close.encode(base.encoding)
        except UnicodeEncodeError as e:
            raise ConfigValidationError(
                f"Markers cannot be encoded as {base.encoding}: {e}", field_name="markers"
            ) from e
    if getattr(args, "chunk_size", None):
        overrides["streaming__chunk_size"] = args.chunk_size
    return base.override(**overrides) if overrides else base


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="blob-stream",
        description="Stream marker-delimited records out of arbitrarily large files"
    )

    parser.add_argument("--version", action="version", version=__version__)

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    marker_options = argparse.ArgumentParser(add_help=False)
    marker_options.add_argument("--open", help="Literal open marker")
    marker_options.add_argument("--close", help="Literal close marker")
    marker_options.add_argument(
        "--tag",
        help="Use <TAG> and </TAG> as markers"
    )
    marker_options.add_argument(
        "--preset",
        choices=sorted(PRESETS),
        help="Named configuration preset"
    )
    marker_options.add_argument(
        "--config", "-c",
        type=Path,
        help="Configuration file path"
    )
    marker_options.add_argument(
        "--encoding", "-e",
        help="Text encoding of the input (default: utf-8)"
    )
    marker_options.add_argument(
        "--binary", "-b",
        action="store_true",
        help="Match markers against raw bytes instead of decoded text"
    )
    marker_options.add_argument(
        "--chunk-size",
        type=int,
        help="Units read from the file per underlying read"
    )

    # Extract command
    extract_parser = subparsers.add_parser(
        "extract", parents=[marker_options], help="Write each blob of a file"
    )
    extract_parser.add_argument("path", type=Path, help="File to read")
    extract_parser.add_argument(
        "--format", "-f",
        choices=["jsonl", "text"],
        default=None,
        help="Output format (default: jsonl)"
    )
    extract_parser.add_argument(
        "--separator",
        default=None,
        help="Text written after each blob in text format (default: newline)"
    )
    extract_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (default: stdout)"
    )
    extract_parser.add_argument(
        "--limit", "-n",
        type=int,
        help="Stop after this many blobs"
    )

    # Count command
    count_parser = subparsers.add_parser(
        "count", parents=[marker_options], help="Count blobs in files"
    )
    count_parser.add_argument("paths", nargs="+", type=Path, help="Files to scan")
    count_parser.add_argument(
        "--format", "-f",
        choices=["json", "text"],
        default="text",
        help="Output format (default: text)"
    )

    # Global options
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Quiet output"
    )

    return parser


def _blob_text(blob: Blob, encoding: str) -> str:
    if isinstance(blob, bytes):
        return blob.decode(encoding, errors="replace")
    return blob


def write_blobs(
    blobs: Any,
    out: IO[Any],
    output_format: str,
    separator: str,
    encoding: str,
    limit: Optional[int] = None,
) -> int:
    """Write blobs to ``out`` and return how many were written.

    ``out`` is a binary stream when blobs are bytes in text format, and a
    text stream otherwise.
    """
    written = 0
    for blob in blobs:
        if limit is not None and written >= limit:
            break
        if output_format == "jsonl":
            out.write(json.dumps({"index": written, "blob": _blob_text(blob, encoding)}))
            out.write("\n")
        elif isinstance(blob, bytes):
            out.write(blob)
            out.write(separator.encode(encoding))
        else:
            out.write(blob)
            out.write(separator)
        written += 1
    return written


def cmd_extract(args: argparse.Namespace) -> int:
    """Handle extract command."""
    logger = get_logger(__name__, None, "cli_extract")
    try:
        stream_config = resolve_stream_config(args)
        cli_config = CLIConfig.from_file(args.config) if args.config else CLIConfig()
    except ConfigValidationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    output_format = args.format or cli_config.output_format
    separator = args.separator if args.separator is not None else cli_config.separator
    limit = args.limit if args.limit is not None else cli_config.limit
    binary_out = stream_config.binary and output_format == "text"

    if not args.path.is_file():
        print(f"File not found: {args.path}", file=sys.stderr)
        return EXIT_FAILURE

    blobs = iter_blobs_from_file(args.path, config=stream_config)
    try:
        if args.output:
            mode = "wb" if binary_out else "w"
            kwargs = {} if binary_out else {"encoding": stream_config.encoding, "newline": ""}
            with args.output.open(mode, **kwargs) as out:
                written = write_blobs(
                    blobs, out, output_format, separator, stream_config.encoding, limit
                )
            print(f"Wrote {written} blobs to {args.output}", file=sys.stderr)
        else:
            out = sys.stdout.buffer if binary_out else sys.stdout
            written = write_blobs(
                blobs, out, output_format, separator, stream_config.encoding, limit
            )
    except SourceReadError as e:
        logger.error("Extraction failed", extra={"file": str(args.path)})
        print(f"Read error in {args.path}: {e}", file=sys.stderr)
        return EXIT_FAILURE
    except OSError as e:
        logger.error("Extraction failed", extra={"file": str(args.path)})
        print(f"Cannot open {e.filename or args.path}: {e.strerror or e}", file=sys.stderr)
        return EXIT_FAILURE
    finally:
        blobs.close()

    logger.info("Extraction complete", extra={"file": str(args.path), "blobs": written})
    return EXIT_OK


def count_file(path: Path, stream_config: BlobStreamConfig) -> Dict[str, Any]:
    """Count the blobs of one file, returning a JSON-ready result record."""
    logger = get_logger(__name__, None, "cli_count")
    if not path.is_file():
        return {"file": str(path), "success": False, "error": "File not found"}

    probe = MemoryProbe(sample_every=100)
    try:
        with open_source(
            path,
            binary=stream_config.binary,
            encoding=stream_config.encoding,
            errors=stream_config.encoding_errors,
            chunk_size=stream_config.streaming.chunk_size,
        ) as source:
            result = scan(source, config=stream_config, consumer=lambda blob: probe.tick())
    except Exception as e:
        logger.error("Failed to count blobs", extra={"file": str(path)})
        return {"file": str(path), "success": False, "error": str(e)}
    probe.sample()

    return {
        "file": str(path),
        "success": True,
        "blob_count": result.blob_count,
        "statistics": result.statistics.to_dict(),
        "memory": probe.snapshot.to_dict(),
        "diagnostics": [
            {"severity": diag.severity.name, "message": diag.message}
            for diag in result.diagnostics
        ],
    }


def format_results(results: List[Dict[str, Any]], format_type: str) -> str:
    """Format count results for output."""
    if format_type == "json":
        return json.dumps(results, indent=2)

    if not results:
        return "No results to display."

    lines = []
    successful = sum(1 for r in results if r.get("success", False))
    lines.append(f"Scanned {len(results)} files, {successful} successful")
    lines.append("-" * 60)

    for result in results:
        status = "✓" if result.get("success", False) else "✗"
        lines.append(f"{status} {result['file']}")
        if not result.get("success", False):
            lines.append(f"   Error: {result.get('error', 'unknown error')}")
        else:
            stats = result["statistics"]
            memory = result["memory"]
            lines.append(
                f"   Blobs: {result['blob_count']}, Largest: {stats['largest_blob_length']}, "
                f"Units: {stats['units_read']}, Time: {stats['processing_time_ms']:.1f}ms"
            )
            lines.append(f"   Peak RSS: {memory['peak_rss_mb']:.1f}MB")
            for diag in result.get("diagnostics", []):
                lines.append(f"   {diag['severity'].title()}: {diag['message']}")
        lines.append("")

    return "\n".join(lines)


def cmd_count(args: argparse.Namespace) -> int:
    """Handle count command."""
    try:
        stream_config = resolve_stream_config(args)
    except ConfigValidationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    results = [count_file(path, stream_config) for path in args.paths]
    print(format_results(results, args.format))

    successful = sum(1 for r in results if r.get("success", False))
    return EXIT_OK if successful == len(results) else EXIT_FAILURE


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_FAILURE

    # Set up logging verbosity
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    elif args.quiet:
        logging.basicConfig(level=logging.ERROR)

    try:
        if args.command == "extract":
            return cmd_extract(args)
        if args.command == "count":
            return cmd_count(args)
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return EXIT_FAILURE

    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
