from __future__ import annotations

import ast
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

# High-level orchestrator modules (Layer 3).
# LOW-level code (core/engine/layers/errors) must NEVER import these.
ORCH_PREFIXES: tuple[str, ...] = (
    "midicsv_huff.cli",
    "midicsv_huff.verify",
)

# core/ is the bottom layer: bit channel, Huffman model, record model.
CORE_PREFIX = "midicsv_huff.core"
ABOVE_CORE_PREFIXES: tuple[str, ...] = (
    "midicsv_huff.engine",
    "midicsv_huff.layers",
)

PACKAGE_ROOT = "midicsv_huff"


@dataclass(frozen=True)
class ImportEdge:
    src: str
    dst: str
    file: Path
    lineno: int


def _has_prefix(mod: str, prefixes: tuple[str, ...]) -> bool:
    return any(mod == p or mod.startswith(p + ".") for p in prefixes)


def _module_name_from_path(src_dir: Path, py_file: Path) -> str | None:
    try:
        rel = py_file.relative_to(src_dir)
    except ValueError:
        return None

    parts = list(rel.parts)
    if not parts or parts[0] != PACKAGE_ROOT:
        return None

    if py_file.name == "__init__.py":
        parts = parts[:-1]
    else:
        parts[-1] = py_file.stem

    if not parts:
        return None
    return ".".join(parts)


def _resolve_relative(current_mod: str, level: int, module: str | None) -> str | None:
    if level <= 0:
        return module

    base = current_mod.split(".")
    if base:
        base = base[:-1]  # package of current module

    if level > len(base):
        return None

    base = base[: len(base) - level + 1]

    if module:
        return ".".join(base + module.split("."))
    return ".".join(base)


def _iter_import_edges(src_dir: Path) -> Iterable[ImportEdge]:
    for py in src_dir.rglob("*.py"):
        mod = _module_name_from_path(src_dir, py)
        if not mod:
            continue

        tree = ast.parse(py.read_text(encoding="utf-8"), filename=str(py))

        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    name = alias.name
                    if name.startswith(PACKAGE_ROOT + ".") or name == PACKAGE_ROOT:
                        yield ImportEdge(
                            src=mod, dst=name, file=py, lineno=getattr(node, "lineno", 0)
                        )

            elif isinstance(node, ast.ImportFrom):
                if node.module is None and node.level == 0:
                    continue
                abs_mod = _resolve_relative(mod, node.level, node.module)
                if not abs_mod:
                    continue
                if abs_mod.startswith(PACKAGE_ROOT + ".") or abs_mod == PACKAGE_ROOT:
                    yield ImportEdge(
                        src=mod, dst=abs_mod, file=py, lineno=getattr(node, "lineno", 0)
                    )


def _src_dir() -> Path:
    repo_root = Path(__file__).resolve().parents[1]
    src_dir = repo_root / "src"
    if not src_dir.is_dir():
        raise AssertionError(f"Expected src/ directory at: {src_dir}")
    return src_dir


def _report(title: str, violations: list[ImportEdge], fix: str) -> None:
    if not violations:
        return
    lines = [title]
    for v in sorted(violations, key=lambda e: (str(e.file), e.lineno, e.src, e.dst)):
        lines.append(f"  {v.file}:{v.lineno}  {v.src}  ->  {v.dst}")
    lines.append("")
    lines.append(fix)
    raise AssertionError("\n".join(lines))


def test_no_low_level_imports_orchestrator() -> None:
    """
    Hard dependency direction:
      ORCH (cli, verify) -> may depend on LOW
      LOW                -> must NOT depend on ORCH
    """
    violations = [
        e
        for e in _iter_import_edges(_src_dir())
        if e.src != e.dst
        and not _has_prefix(e.src, ORCH_PREFIXES)
        and _has_prefix(e.dst, ORCH_PREFIXES)
    ]
    _report(
        "Forbidden imports detected (LOW -> ORCH):",
        violations,
        "Fix: move high-level logic out of LOW modules, or invert the dependency.",
    )


def test_core_does_not_import_upper_layers() -> None:
    violations = [
        e
        for e in _iter_import_edges(_src_dir())
        if _has_prefix(e.src, (CORE_PREFIX,)) and _has_prefix(e.dst, ABOVE_CORE_PREFIXES)
    ]
    _report(
        "Forbidden imports detected (core -> engine/layers):",
        violations,
        "Fix: core/ only knows bits, codes and records.",
    )
