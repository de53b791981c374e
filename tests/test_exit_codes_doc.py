from __future__ import annotations

from pathlib import Path

from midicsv_huff.errors import (
    EXIT_CODES,
    DecodingError,
    EncodingError,
    MidCsvError,
    ParseError,
    UsageError,
    exit_code_info,
    render_exit_codes_markdown,
)


def test_exit_codes_unique() -> None:
    codes = [e.code for e in EXIT_CODES]
    assert len(codes) == len(set(codes))
    for cls in (UsageError, ParseError, EncodingError, DecodingError):
        assert issubclass(cls, MidCsvError)
        assert exit_code_info(cls.exit_code) is not None


def test_exit_codes_doc_is_up_to_date() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    doc = repo_root / "docs" / "exit_codes.md"
    assert doc.read_text(encoding="utf-8") == render_exit_codes_markdown()
