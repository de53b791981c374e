"""Record stream codec.

Layout (MSB-first, zero padding at the end):

    TimeModel ParamModel n:12 Record{n}
    Record := track:2 delta_code class:2 (len:6 char:7{len} | param_code)

Both models are HuffmanModel tables (see core.codec_huffman). Time deltas are
taken over the whole sequence, ignoring track boundaries; on decode the
running time restarts at 0 whenever the track changes and after End_of_file.
"""

from __future__ import annotations

import io
from collections.abc import Sequence
from dataclasses import dataclass
from typing import BinaryIO

from midicsv_huff.core.bitio import BitReader, BitWriter
from midicsv_huff.core.codec_huffman import HuffmanModel
from midicsv_huff.core.records import CommandClass, CommandKind, Literal, Record, Triple
from midicsv_huff.errors import DecodingError, EncodingError

TRACK_BITS = 2
CLASS_BITS = 2
COUNT_BITS = 12
LITERAL_LEN_BITS = 6
CHAR_BITS = 7


@dataclass(frozen=True)
class EncodeStats:
    n_records: int
    time_entries: int
    param_entries: int
    time_table_bits: int
    param_table_bits: int
    bits_written: int


@dataclass(frozen=True)
class DecodeStats:
    n_records: int
    time_entries: int
    param_entries: int
    bits_read: int


def time_deltas(records: Sequence[Record]) -> list[int]:
    deltas = [0] if records else []
    for prev, cur in zip(records, records[1:]):
        deltas.append(cur.time - prev.time)
    return deltas


def _write_literal(bw: BitWriter, text: str) -> None:
    if len(text) >= (1 << LITERAL_LEN_BITS):
        raise EncodingError(f"literal troppo lungo ({len(text)} caratteri, max 63): {text!r}")
    bw.write_bits(len(text), LITERAL_LEN_BITS)
    for ch in text:
        bw.write_bits(ord(ch), CHAR_BITS)


def _read_literal(br: BitReader) -> str:
    n = br.read_bits(LITERAL_LEN_BITS)
    return "".join(chr(br.read_bits(CHAR_BITS)) for _ in range(n))


def encode_records(records: Sequence[Record], sink: BinaryIO) -> EncodeStats:
    """Compress `records` into `sink`. The sink is flushed, not closed."""
    deltas = time_deltas(records)
    times = HuffmanModel.train(deltas)
    params = HuffmanModel.train(r.packed_params for r in records)

    with BitWriter(sink) as bw:
        time_table_bits = times.write(bw)
        param_table_bits = params.write(bw)
        bw.write_bits(len(records), COUNT_BITS)

        for record, delta in zip(records, deltas):
            bw.write_bits(record.track, TRACK_BITS)
            bw.write_code(times.encode(delta))
            bw.write_bits(int(record.command.command_class), CLASS_BITS)
            payload = record.payload
            if isinstance(payload, Triple):
                bw.write_code(params.encode(payload.packed))
            else:
                _write_literal(bw, payload.text)

    return EncodeStats(
        n_records=len(records),
        time_entries=len(times),
        param_entries=len(params),
        time_table_bits=time_table_bits,
        param_table_bits=param_table_bits,
        bits_written=bw.bits_written,
    )


def _resolve_literal(text: str) -> CommandKind:
    name = text.split(",", 1)[0].strip()
    cmd = CommandKind.from_name(name)
    if cmd is None or cmd.has_params:
        raise DecodingError(f"literal con comando sconosciuto: {text!r}")
    return cmd


def decode_records_with_stats(source: BinaryIO) -> tuple[list[Record], DecodeStats]:
    br = BitReader(source)
    times = HuffmanModel.read(br)
    params = HuffmanModel.read(br)
    n_records = br.read_bits(COUNT_BITS)

    out: list[Record] = []
    track = 0
    time = 0
    for _ in range(n_records):
        tt = br.read_bits(TRACK_BITS)
        if tt != track:
            # nuova traccia: il tempo riparte da 0
            track = tt
            time = 0
        time += times.read_symbol(br)

        cls = br.read_bits(CLASS_BITS)
        if cls == CommandClass.LITERAL:
            text = _read_literal(br)
            record = Record(track, time, _resolve_literal(text), Literal(text))
        else:
            cmd = CommandKind.from_class(cls)
            if cmd is None:
                raise DecodingError(f"prefisso di classe sconosciuto: {cls:02b}")
            packed = params.read_symbol(br)
            record = Record(track, time, cmd, Triple.from_packed(packed))
        out.append(record)

        if record.command is CommandKind.END_OF_FILE:
            track = 0
            time = 0

    stats = DecodeStats(
        n_records=n_records,
        time_entries=len(times),
        param_entries=len(params),
        bits_read=br.bits_read,
    )
    return out, stats


def decode_records(source: BinaryIO) -> list[Record]:
    records, _ = decode_records_with_stats(source)
    return records


def encode_bytes(records: Sequence[Record]) -> bytes:
    buf = io.BytesIO()
    encode_records(records, buf)
    return buf.getvalue()


def decode_bytes(blob: bytes) -> list[Record]:
    return decode_records(io.BytesIO(blob))
