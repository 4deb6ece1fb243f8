"""llsdwire command-line interface.

Usage:
    python -m llsdwire convert --from xml --to notation --input doc.xml
    cat doc.llsd | python -m llsdwire convert --to xml --pretty
    python -m llsdwire inspect --input doc.bin
    python -m llsdwire version
"""

import argparse
import logging
import sys

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from . import __version__
from .codecs import get_codec
from .constants import BINARY_HEADER, MIME_TYPES, SIZE_UNLIMITED, Format, Kind
from .errors import LLSDParseError
from .options import FormatterOptions, ParserOptions
from .serialize import detect_format
from .value import Value, format_date

_FORMATS = {"binary": Format.BINARY, "notation": Format.NOTATION, "xml": Format.XML}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="llsdwire",
        description="Convert and inspect LLSD documents (binary, notation, XML)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log parser diagnostics to stderr")
    sub = parser.add_subparsers(dest="command")

    # -- convert --
    convert_p = sub.add_parser("convert", help="Re-encode a document in another format")
    convert_p.add_argument("--from", dest="source_format", choices=[*_FORMATS, "auto"], default="auto")
    convert_p.add_argument("--to", dest="target_format", choices=list(_FORMATS), required=True)
    convert_p.add_argument("--input", "-i", metavar="FILE", help="Read from FILE instead of stdin")
    convert_p.add_argument("--output", "-o", metavar="FILE", help="Write to FILE instead of stdout")
    convert_p.add_argument("--pretty", action="store_true", help="Indent notation/XML output")
    convert_p.add_argument("--bool-alpha", action="store_true", help="Write booleans as true/false")
    convert_p.add_argument("--max-bytes", type=int, default=SIZE_UNLIMITED, help="Parse byte budget")

    # -- inspect --
    inspect_p = sub.add_parser("inspect", help="Summarize a document")
    inspect_p.add_argument("--from", dest="source_format", choices=[*_FORMATS, "auto"], default="auto")
    inspect_p.add_argument("--input", "-i", metavar="FILE", help="Read from FILE instead of stdin")
    inspect_p.add_argument("--max-bytes", type=int, default=SIZE_UNLIMITED, help="Parse byte budget")

    # -- version --
    sub.add_parser("version", help="Print version and exit")

    return parser


def _read_input(filepath: str | None) -> bytes:
    """Read document bytes from a file or stdin."""
    if filepath:
        with open(filepath, "rb") as f:
            return f.read()
    if sys.stdin.isatty():
        print("llsdwire: reading from stdin (Ctrl-D to end)...", file=sys.stderr)
    return sys.stdin.buffer.read()


def _parse(data: bytes, source_format: str, max_bytes: int) -> tuple[Format, Value, int]:
    fmt = detect_format(data) if source_format == "auto" else _FORMATS[source_format]
    if fmt is Format.BINARY and data.lstrip().startswith(BINARY_HEADER):
        data = data.lstrip()[len(BINARY_HEADER) :]
    parser = get_codec(fmt, parser_options=ParserOptions(max_bytes=max_bytes)).parser()
    value, count = parser.parse_strict(data)
    return fmt, value, count


def _label(value: Value) -> str:
    kind = value.kind
    data = value.data
    if kind is Kind.MAP:
        return f"[bold]map[/] ({len(data)} entries)"
    if kind is Kind.ARRAY:
        return f"[bold]array[/] ({len(data)} items)"
    if kind is Kind.UNDEFINED:
        return "[dim]undef[/]"
    if kind is Kind.BINARY:
        return f"[cyan]binary[/] {len(data)} bytes"
    if kind is Kind.DATE:
        return f"[cyan]date[/] {format_date(data)}"
    return f"[cyan]{kind.name.lower()}[/] {escape(repr(data))}"


def _build_tree(value: Value, tree: Tree) -> None:
    if value.is_map():
        for key, item in value.items():
            branch = tree.add(f"[green]{escape(key)}[/]: {_label(item)}")
            _build_tree(item, branch)
    elif value.is_array():
        for i, item in enumerate(value.data):
            branch = tree.add(f"[green]{i}[/]: {_label(item)}")
            _build_tree(item, branch)


def _cmd_convert(args: argparse.Namespace) -> None:
    raw = _read_input(args.input)
    _, value, _ = _parse(raw, args.source_format, args.max_bytes)
    options = FormatterOptions(pretty=args.pretty, bool_alpha=args.bool_alpha)
    out = get_codec(_FORMATS[args.target_format], options).encode(value)
    if args.output:
        with open(args.output, "wb") as f:
            f.write(out)
    else:
        sys.stdout.buffer.write(out)
        sys.stdout.buffer.flush()


def _cmd_inspect(args: argparse.Namespace) -> None:
    raw = _read_input(args.input)
    fmt, value, count = _parse(raw, args.source_format, args.max_bytes)

    console = Console()
    table = Table(title="LLSD document", box=box.SIMPLE_HEAVY)
    table.add_column("Field", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Format", fmt.name.lower())
    table.add_row("MIME type", MIME_TYPES[fmt])
    table.add_row("Bytes", str(len(raw)))
    table.add_row("Nodes", str(count))
    table.add_row("Root kind", value.kind.name.lower())
    console.print(table)

    tree = Tree(_label(value))
    _build_tree(value, tree)
    console.print(tree)


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(message)s")

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "version":
        print(f"llsdwire {__version__}")
        return

    try:
        if args.command == "convert":
            _cmd_convert(args)
        elif args.command == "inspect":
            _cmd_inspect(args)
    except LLSDParseError as e:
        print(f"llsdwire: parse error [{e.code.name}]: {e}", file=sys.stderr)
        sys.exit(2)
    except OSError as e:
        print(f"llsdwire: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
