"""Typed errors for midicsv-huff.

Single source of truth for exit codes lives here.

Policy:
- Errors are small and boring.
- The CLI maps errors to stable exit codes (see EXIT_* constants).
- docs/exit_codes.md is generated from this module (scripts/gen_exit_codes_md.py).
"""

from __future__ import annotations

from dataclasses import dataclass

# -------------------------
# Exit codes (single source)
# -------------------------

EXIT_OK = 0
EXIT_USAGE = 2
EXIT_GENERIC = 10
EXIT_PARSE = 11
EXIT_ENCODING = 12
EXIT_DECODING = 13


@dataclass(frozen=True, slots=True)
class ExitCodeInfo:
    code: int
    name: str
    description: str


EXIT_CODES: tuple[ExitCodeInfo, ...] = (
    ExitCodeInfo(EXIT_OK, "OK", "Success"),
    ExitCodeInfo(EXIT_USAGE, "USAGE", "Usage error (invalid args, unreadable input file, etc.)"),
    ExitCodeInfo(EXIT_GENERIC, "GENERIC", "Generic failure (unexpected error)"),
    ExitCodeInfo(EXIT_PARSE, "PARSE", "Malformed midicsv line or unknown command"),
    ExitCodeInfo(EXIT_ENCODING, "ENCODING", "A value does not fit its wire field (format limits)"),
    ExitCodeInfo(EXIT_DECODING, "DECODING", "Truncated or corrupt compressed stream"),
)

_EXIT_CODE_BY_CODE: dict[int, ExitCodeInfo] = {e.code: e for e in EXIT_CODES}


def exit_code_info(code: int) -> ExitCodeInfo | None:
    return _EXIT_CODE_BY_CODE.get(int(code))


def render_exit_codes_markdown() -> str:
    """Render docs/exit_codes.md content."""
    lines: list[str] = []
    lines.append("# Exit codes\n")
    lines.append("> GENERATED FILE - do not edit manually.\n")
    lines.append("> Source of truth: `src/midicsv_huff/errors.py` (EXIT_CODES).\n")
    lines.append("> Regenerate: `python scripts/gen_exit_codes_md.py`.\n\n")
    lines.append("These are the CLI exit codes you can rely on.\n\n")
    lines.append("| Code | Name | Meaning |\n")
    lines.append("|---:|---|---|\n")
    for e in sorted(EXIT_CODES, key=lambda x: x.code):
        lines.append(f"| {e.code} | `{e.name}` | {e.description} |\n")
    lines.append("\n## Notes\n")
    lines.append("- Every codec error extends `MidCsvError` and carries an `exit_code`.\n")
    lines.append("- `--debug` re-raises errors to show full stack traces.\n")
    lines.append("- On error nothing is written to the output: there is no partial success.\n")
    return "".join(lines)


# ---------------
# Typed exceptions
# ---------------


class MidCsvError(Exception):
    """Base error for midicsv-huff."""

    exit_code: int = EXIT_GENERIC


class UsageError(MidCsvError):
    exit_code = EXIT_USAGE


class ParseError(MidCsvError):
    """Input line does not have the record shape, or names an unknown command."""

    exit_code = EXIT_PARSE


class EncodingError(MidCsvError):
    """A value exceeds the bit width of its wire field."""

    exit_code = EXIT_ENCODING


class DecodingError(MidCsvError):
    """Stream ended early, or no Huffman code matched within the bit budget."""

    exit_code = EXIT_DECODING
