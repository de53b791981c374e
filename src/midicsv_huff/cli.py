"""midicsv-huff CLI.

This is the stable CLI entrypoint (console-script: ``midicsv-huff``).

UX policy:
  - encode is the default mode: midicsv text in, compressed bytes out.
  - ``-d`` decodes, ``--verify`` only checks a compressed stream.
  - stdin/stdout unless --input/--output are given.
  - Output is produced in memory first: on error nothing is written.
"""

from __future__ import annotations

import argparse
import io
import sys
from pathlib import Path

from midicsv_huff.engine.pipeline import decode_records_with_stats, encode_records
from midicsv_huff.errors import EXIT_GENERIC, EXIT_USAGE, MidCsvError, UsageError
from midicsv_huff.layers.midicsv_text import read_text, write_text

PROG = "midicsv-huff"


def _note(msg: str) -> None:
    print(f"[{PROG}] {msg}", file=sys.stderr)


def _read_input_bytes(path: Path | None) -> bytes:
    if path is None:
        return sys.stdin.buffer.read()
    try:
        return path.read_bytes()
    except OSError as e:
        raise UsageError(f"input non leggibile: {path}: {e}") from e


def _write_output_bytes(path: Path | None, data: bytes) -> None:
    if path is None:
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()
        return
    try:
        path.write_bytes(data)
    except OSError as e:
        raise UsageError(f"output non scrivibile: {path}: {e}") from e


def _encode(input_path: Path | None, output_path: Path | None, *, verbose: bool) -> int:
    raw = _read_input_bytes(input_path)
    try:
        text = raw.decode("ascii")
    except UnicodeDecodeError as e:
        # the wire format stores literals as 7-bit characters
        raise UsageError(f"input non ASCII (byte {e.start})") from e

    records = read_text(io.StringIO(text, newline=None))
    buf = io.BytesIO()
    stats = encode_records(records, buf)
    _write_output_bytes(output_path, buf.getvalue())

    if verbose:
        _note(f"time table: {stats.time_entries} entries, {stats.time_table_bits // 8} bytes")
        _note(f"param table: {stats.param_entries} entries, {stats.param_table_bits // 8} bytes")
        _note(f"records: {stats.n_records}")
        _note(f"bits written: {stats.bits_written}")
    return 0


def _decode(input_path: Path | None, output_path: Path | None, *, verbose: bool) -> int:
    blob = _read_input_bytes(input_path)
    records, stats = decode_records_with_stats(io.BytesIO(blob))
    out = io.StringIO()
    write_text(records, out)
    _write_output_bytes(output_path, out.getvalue().encode("ascii"))

    if verbose:
        _note(f"time table: {stats.time_entries} entries")
        _note(f"param table: {stats.param_entries} entries")
        _note(f"records: {stats.n_records}")
    return 0


def _verify(input_path: Path | None, *, verbose: bool) -> int:
    from midicsv_huff.verify import verify_file, verify_stream

    if input_path is None:
        report = verify_stream(sys.stdin.buffer)
    else:
        if not input_path.is_file():
            raise UsageError(f"input non trovato: {input_path}")
        report = verify_file(input_path)
    print(f"OK {report.n_records} records")

    if verbose:
        _note(f"time table: {report.time_entries} entries")
        _note(f"param table: {report.param_entries} entries")
        _note(f"payload bits: {report.payload_bits} in {report.total_bytes} bytes")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog=PROG,
        description="Huffman bit-packing compressor for midicsv event logs",
    )
    mode = p.add_mutually_exclusive_group()
    mode.add_argument(
        "-d", "--decode", action="store_true", help="Decode compressed input to midicsv text"
    )
    mode.add_argument(
        "--verify", action="store_true", help="Check that compressed input decodes cleanly"
    )
    p.add_argument("-i", "--input", type=Path, default=None, help="Input file (default: stdin)")
    p.add_argument(
        "-o", "--output", type=Path, default=None, help="Output file (default: stdout)"
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Print diagnostics on stderr")
    p.add_argument("--debug", action="store_true", help="Show stack traces on errors")
    return p


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    p = build_parser()
    ns = p.parse_args(argv)

    try:
        if ns.verify:
            return _verify(ns.input, verbose=bool(ns.verbose))
        if ns.decode:
            return _decode(ns.input, ns.output, verbose=bool(ns.verbose))
        return _encode(ns.input, ns.output, verbose=bool(ns.verbose))

    except SystemExit:
        raise
    except MidCsvError as e:
        if ns.debug:
            raise
        _note(str(e))
        return int(getattr(e, "exit_code", EXIT_GENERIC) or EXIT_GENERIC)
    except OSError as e:
        if ns.debug:
            raise
        _note(f"I/O error: {e}")
        return EXIT_USAGE
    except Exception as e:
        if ns.debug:
            raise
        _note(f"error: {e}")
        return EXIT_GENERIC


if __name__ == "__main__":
    raise SystemExit(main())
