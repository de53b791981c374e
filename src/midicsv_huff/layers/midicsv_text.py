"""midicsv text <-> Record.

Line shape (as written by midicsv):

    track, time, Command_name[, field, ...]

Parameterized commands (Control_c, Note_on_c, Note_off_c) carry exactly three
integers 0..255. Every other known command keeps its tail verbatim, starting
at the command name (e.g. ``Header, 1, 1, 480`` or ``Title_t, "Piano"``).
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import TextIO

from midicsv_huff.core.records import CommandKind, Literal, Record, Triple
from midicsv_huff.errors import ParseError

SEP = ", "


def _where(lineno: int | None) -> str:
    return f"riga {lineno}: " if lineno is not None else ""


def _parse_int(s: str, what: str, lineno: int | None) -> int:
    try:
        n = int(s.strip())
    except ValueError as err:
        raise ParseError(f"{_where(lineno)}{what} non intero: {s.strip()!r}") from err
    if n < 0:
        raise ParseError(f"{_where(lineno)}{what} negativo: {n}")
    return n


def parse_line(line: str, lineno: int | None = None) -> Record:
    line = line.rstrip("\r\n")
    parts = line.split(",", 2)
    if len(parts) < 3:
        raise ParseError(f"{_where(lineno)}attesi almeno 3 campi: {line!r}")

    track = _parse_int(parts[0], "track", lineno)
    time = _parse_int(parts[1], "time", lineno)
    tail = parts[2].lstrip(" ")

    name = tail.split(",", 1)[0].strip()
    cmd = CommandKind.from_name(name)
    if cmd is None:
        raise ParseError(f"{_where(lineno)}comando sconosciuto: {name!r}")

    if not cmd.has_params:
        return Record(track, time, cmd, Literal(tail))

    fields = tail.split(",")[1:]
    if len(fields) != 3:
        raise ParseError(f"{_where(lineno)}{cmd.text}: attesi 3 parametri, trovati {len(fields)}")
    a, b, c = (_parse_int(f, "parametro", lineno) for f in fields)
    try:
        return Record(track, time, cmd, Triple(a, b, c))
    except ParseError as err:
        raise ParseError(f"{_where(lineno)}{err}") from err


def parse_lines(lines: Iterable[str]) -> list[Record]:
    """Parse every non-blank line; the first bad line aborts the whole run."""
    out: list[Record] = []
    for lineno, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        out.append(parse_line(line, lineno))
    return out


def format_line(record: Record) -> str:
    head = f"{record.track}{SEP}{record.time}{SEP}"
    p = record.payload
    if isinstance(p, Literal):
        return head + p.text
    return head + SEP.join((record.command.text, str(p.a), str(p.b), str(p.c)))


def format_lines(records: Iterable[Record]) -> Iterator[str]:
    for r in records:
        yield format_line(r)


def read_text(stream: TextIO) -> list[Record]:
    return parse_lines(stream)


def write_text(records: Iterable[Record], stream: TextIO) -> None:
    for line in format_lines(records):
        stream.write(line)
        stream.write("\n")
