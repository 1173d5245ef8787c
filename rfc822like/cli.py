"""
rfc822like CLI - Command-line interface for Debian-control-style files.

Commands:
  rfc822like inspect   - List the records and fields of a file
  rfc822like get       - Print one field of one record
  rfc822like validate  - Check that a file decodes
  rfc822like fmt       - Re-fold a file (optionally word wrapped)
  rfc822like convert   - Convert to/from JSON, CSV
  rfc822like view      - Browse a file in the terminal (TUI)

Environment:
  RFC822LIKE_WRAP       - "1"/"true"/"yes" turns wrapping on for fmt and convert from
  RFC822LIKE_LOG_LEVEL  - logging level name (default WARNING)
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from rfc822like.errors import RFC822Error

logger = logging.getLogger(__name__)

TRUTHY = {"1", "true", "yes", "on"}


def _env_wrap() -> bool:
    return os.environ.get("RFC822LIKE_WRAP", "").strip().lower() in TRUTHY


def _setup_logging() -> None:
    level_name = os.environ.get("RFC822LIKE_LOG_LEVEL", "WARNING").upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _check_output_path(output: str) -> None:
    if ".." in Path(output).parts:
        print("Error: Output path must not contain '..' (path traversal)", file=sys.stderr)
        sys.exit(1)


def _writer_config(args: argparse.Namespace):
    from rfc822like.writer import DEFAULT_CONFIG, WriterConfig

    wrap = getattr(args, "wrap", False) or _env_wrap()
    if not wrap:
        return DEFAULT_CONFIG
    return WriterConfig(wrap=True, width=getattr(args, "width", None) or DEFAULT_CONFIG.width)


def cmd_inspect(args: argparse.Namespace) -> None:
    """Inspect a file - list records and their fields."""
    from rfc822like.reader import RFC822Reader

    records = RFC822Reader.read(args.path)
    print(f"RECORDS: {len(records)}")
    for i, record in enumerate(records):
        print()
        print(f"[{i}] line {record.line}")
        for f in record:
            value = f.value.replace("\n", "\\n")
            # Truncate long values
            display = value if len(value) <= 60 else value[:57] + "..."
            print(f"  {f.key:20s}  {display}")


def cmd_get(args: argparse.Namespace) -> None:
    """Print the value of one field."""
    from rfc822like.reader import RFC822Reader

    records = RFC822Reader.read(args.path)
    if not 0 <= args.record < len(records):
        print(f"Record {args.record} not found ({len(records)} records).", file=sys.stderr)
        sys.exit(1)
    record = records[args.record]
    if args.key not in record:
        print(f"Key '{args.key}' not found.", file=sys.stderr)
        print(f"Available: {', '.join(record.keys())}", file=sys.stderr)
        sys.exit(1)
    if args.list:
        for item in record.get_list(args.key):
            print(item)
    else:
        print(record.get(args.key))


def cmd_validate(args: argparse.Namespace) -> None:
    """Validate a file."""
    from rfc822like.reader import RFC822Reader

    path = args.path
    try:
        records = RFC822Reader.read(path)
    except RFC822Error as e:
        cause = f": {e.__cause__}" if e.__cause__ else ""
        print(f"FAIL: {e}{cause}")
        sys.exit(1)
    fields = sum(len(r) for r in records)
    print(f"OK: {path} ({len(records)} records, {fields} fields)")


def cmd_fmt(args: argparse.Namespace) -> None:
    """Re-fold a file the way the writer folds."""
    from rfc822like.reader import RFC822Reader
    from rfc822like.writer import RFC822Writer

    records = RFC822Reader.read(args.path)
    config = _writer_config(args)
    if args.output:
        _check_output_path(args.output)
        nbytes = RFC822Writer.write(records, args.output, config)
        print(f"Formatted {args.path} -> {args.output} ({nbytes} bytes)")
    else:
        print(RFC822Writer.serialize(records, config), end="")


def cmd_convert(args: argparse.Namespace) -> None:
    """Convert to/from JSON or CSV."""
    from rfc822like.converters import convert_from, convert_to
    from rfc822like.reader import RFC822Reader
    from rfc822like.spec import MAX_FILE_SIZE
    from rfc822like.writer import RFC822Writer

    if args.direction == "from":
        input_path = Path(args.input)
        if not input_path.is_file():
            print(f"Error: File not found: {args.input}", file=sys.stderr)
            sys.exit(1)
        file_size = input_path.stat().st_size
        if file_size > MAX_FILE_SIZE:
            print(f"Error: File size {file_size} exceeds maximum {MAX_FILE_SIZE} bytes", file=sys.stderr)
            sys.exit(1)
        records = convert_from(input_path.read_text(encoding="utf-8"), args.format)
        config = _writer_config(args)
        if args.output:
            _check_output_path(args.output)
            nbytes = RFC822Writer.write(records, args.output, config)
            print(f"Converted {args.input} -> {args.output} ({nbytes} bytes)")
        else:
            print(RFC822Writer.serialize(records, config), end="")
    else:
        records = RFC822Reader.read(args.input)
        result = convert_to(records, args.format)
        if args.output:
            _check_output_path(args.output)
            Path(args.output).write_text(result, encoding="utf-8")
            print(f"Converted {args.input} -> {args.output}")
        else:
            print(result, end="" if result.endswith("\n") else "\n")


def cmd_view(args: argparse.Namespace) -> None:
    """View a file in the TUI."""
    try:
        from rfc822like.tui.viewer import run_viewer
    except ImportError:
        print(
            "TUI viewer requires the 'textual' package.\n"
            "Install it with: pip install \"rfc822like[tui]\"",
            file=sys.stderr,
        )
        sys.exit(1)
    run_viewer(args.path)


def build_parser() -> argparse.ArgumentParser:
    from rfc822like import __version__

    parser = argparse.ArgumentParser(
        prog="rfc822like",
        description="Read, write and convert Debian-control-style (RFC822-like) files.",
    )
    parser.add_argument("--version", action="version", version=f"rfc822like {__version__}")
    sub = parser.add_subparsers(dest="command")

    # inspect
    p_inspect = sub.add_parser("inspect", help="List records and fields")
    p_inspect.add_argument("path", help="Path to file")

    # get
    p_get = sub.add_parser("get", help="Print one field of one record")
    p_get.add_argument("path", help="Path to file")
    p_get.add_argument("key", help="Field name")
    p_get.add_argument("-r", "--record", type=int, default=0, help="Record index (default: 0)")
    p_get.add_argument("--list", action="store_true", help="Print the value as a comma separated list, one item per line")

    # validate
    p_validate = sub.add_parser("validate", help="Check that a file decodes")
    p_validate.add_argument("path", help="Path to file")

    # fmt
    p_fmt = sub.add_parser("fmt", help="Re-fold a file")
    p_fmt.add_argument("path", help="Path to file")
    p_fmt.add_argument("--wrap", action="store_true", help="Word wrap continuation lines (or set RFC822LIKE_WRAP)")
    p_fmt.add_argument("--width", type=int, help="Wrap width (default: 80)")
    p_fmt.add_argument("-o", "--output", help="Output file path (default: stdout)")

    # convert
    p_convert = sub.add_parser("convert", help="Convert to/from JSON or CSV")
    p_convert.add_argument("direction", choices=["to", "from"], help="Conversion direction")
    p_convert.add_argument("format", choices=["json", "csv"], help="Other format")
    p_convert.add_argument("input", help="Input file path")
    p_convert.add_argument("--wrap", action="store_true", help="Word wrap when writing (from only)")
    p_convert.add_argument("-o", "--output", help="Output file path (default: stdout)")

    # view
    p_view = sub.add_parser("view", help="Browse a file in the terminal")
    p_view.add_argument("path", help="Path to file")

    return parser


def main(argv: list[str] | None = None) -> None:
    _setup_logging()
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        print("rfc822like - Debian-control-style files\n")
        print("Usage:")
        print("  rfc822like inspect debian/control")
        print("  rfc822like get debian/control Package --record 1")
        print("  rfc822like get debian/control Depends --list")
        print("  rfc822like validate Packages")
        print("  rfc822like fmt debian/control --wrap -o control.new")
        print("  rfc822like convert to json debian/control -o control.json")
        print("  rfc822like convert from csv packages.csv -o Packages")
        print("  rfc822like view Packages")
        print()
        print("Run 'rfc822like <command> --help' for details on any command.")
        sys.exit(0)

    commands = {
        "inspect": cmd_inspect,
        "get": cmd_get,
        "validate": cmd_validate,
        "fmt": cmd_fmt,
        "convert": cmd_convert,
        "view": cmd_view,
    }

    try:
        commands[args.command](args)
    except ValueError as e:   # includes RFC822Error
        logger.debug("%s failed", args.command, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
