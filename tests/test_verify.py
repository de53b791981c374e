from __future__ import annotations

import io
from pathlib import Path

import pytest

from midicsv_huff.core.records import CommandKind, Record, Triple
from midicsv_huff.engine.pipeline import encode_records
from midicsv_huff.errors import DecodingError
from midicsv_huff.layers.midicsv_text import parse_lines
from midicsv_huff.verify import verify_file, verify_stream


def _blob_and_bits() -> tuple[bytes, int, int]:
    recs = parse_lines(["0, 0, Header, 1, 1, 480", "1, 0, Start_track"])
    recs += [Record(1, i * 120, CommandKind.NOTE_ON_C, Triple(0, 60 + i % 3, 90)) for i in range(9)]
    buf = io.BytesIO()
    stats = encode_records(recs, buf)
    return buf.getvalue(), stats.bits_written, len(recs)


def test_verify_report_counts_bits_and_bytes() -> None:
    blob, bits, n = _blob_and_bits()
    report = verify_stream(io.BytesIO(blob))
    assert report.n_records == n
    assert report.param_entries == 3
    assert report.payload_bits == bits
    assert report.total_bytes == len(blob) == (bits + 7) // 8


def test_verify_file(tmp_path: Path) -> None:
    blob, _, n = _blob_and_bits()
    p = tmp_path / "x.mch"
    p.write_bytes(blob)
    assert verify_file(p).n_records == n


def test_verify_rejects_trailing_bytes() -> None:
    blob, _, _ = _blob_and_bits()
    with pytest.raises(DecodingError, match="eccesso"):
        verify_stream(io.BytesIO(blob + b"\x00"))


def test_verify_rejects_nonzero_padding() -> None:
    blob, bits, _ = _blob_and_bits()
    if bits % 8 == 0:
        pytest.skip("stream already byte aligned")
    with pytest.raises(DecodingError, match="padding"):
        verify_stream(io.BytesIO(blob[:-1] + bytes([blob[-1] | 1])))
