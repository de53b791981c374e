"""Verification helpers.

A compressed stream carries no checksum, so verification is structural:
decode every record, then check that nothing but zero padding is left.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from midicsv_huff.engine.pipeline import DecodeStats, decode_records_with_stats
from midicsv_huff.errors import DecodingError


@dataclass(frozen=True)
class VerifyReport:
    n_records: int
    time_entries: int
    param_entries: int
    payload_bits: int
    total_bytes: int


def verify_stream(source: BinaryIO) -> VerifyReport:
    blob = source.read()
    _, stats = decode_records_with_stats(io.BytesIO(blob))
    _check_tail(blob, stats)
    return VerifyReport(
        n_records=stats.n_records,
        time_entries=stats.time_entries,
        param_entries=stats.param_entries,
        payload_bits=stats.bits_read,
        total_bytes=len(blob),
    )


def verify_file(path: Path) -> VerifyReport:
    with path.open("rb") as f:
        return verify_stream(f)


def _check_tail(blob: bytes, stats: DecodeStats) -> None:
    used_bytes = (stats.bits_read + 7) // 8
    if len(blob) != used_bytes:
        raise DecodingError(
            f"dati in eccesso: {len(blob) - used_bytes} byte dopo l'ultimo record"
        )
    pad = used_bytes * 8 - stats.bits_read
    if pad and blob[-1] & ((1 << pad) - 1):
        raise DecodingError("padding finale non nullo")
