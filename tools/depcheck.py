from __future__ import annotations

import argparse
import ast
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

SRC_ROOT = Path(__file__).resolve().parents[1] / "src" / "tabletab"

_FRAMEWORKS = {
    "fastapi",
    "starlette",
    "sqlalchemy",
    "alembic",
    "psycopg",
    "redis",
    "jwt",
    "httpx",
    "requests",
}

LAYER_RULES: dict[str, set[str]] = {
    "domain": _FRAMEWORKS
    | {
        "pydantic",
        "opentelemetry",
        "prometheus_client",
        "tabletab.application",
        "tabletab.api",
        "tabletab.infrastructure",
    },
    "application": _FRAMEWORKS | {"tabletab.api", "tabletab.infrastructure"},
}


@dataclass(frozen=True)
class Violation:
    file_path: Path
    line: int
    module: str
    layer: str


def _python_files(root: Path) -> Iterable[Path]:
    if root.is_file() and root.suffix == ".py":
        yield root
        return
    if root.is_dir():
        yield from sorted(root.rglob("*.py"))


def _is_forbidden(module: str, forbidden_modules: set[str]) -> bool:
    return any(
        module == forbidden or module.startswith(f"{forbidden}.") for forbidden in forbidden_modules
    )


def _imported_modules(tree: ast.AST) -> Iterable[tuple[int, str]]:
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                yield node.lineno, alias.name
        elif isinstance(node, ast.ImportFrom) and node.module and node.level == 0:
            yield node.lineno, node.module


def _scan_file(file_path: Path, layer: str) -> list[Violation]:
    tree = ast.parse(file_path.read_text(encoding="utf-8"), filename=str(file_path))
    forbidden_modules = LAYER_RULES[layer]
    return [
        Violation(file_path=file_path, line=line, module=module, layer=layer)
        for line, module in _imported_modules(tree)
        if _is_forbidden(module, forbidden_modules)
    ]


def find_violations(paths: Sequence[Path], layer: str) -> list[Violation]:
    violations: list[Violation] = []
    for path in paths:
        for file_path in _python_files(path):
            violations.extend(_scan_file(file_path, layer))
    return violations


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Import policy check for the domain and application layers."
    )
    parser.add_argument(
        "--layer",
        choices=sorted(LAYER_RULES),
        action="append",
        default=[],
        help="Layer rules to apply (repeatable). Defaults to every layer.",
    )
    parser.add_argument(
        "--path",
        action="append",
        default=[],
        help="Path to scan instead of the layer's source directory (repeatable).",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    layers = args.layer or sorted(LAYER_RULES)

    violations: list[Violation] = []
    for layer in layers:
        scan_paths = [Path(item) for item in args.path] if args.path else [SRC_ROOT / layer]
        violations.extend(find_violations(scan_paths, layer))

    if not violations:
        print("depcheck passed")
        return 0

    print("depcheck failed: forbidden imports detected")
    for violation in violations:
        print(f"[{violation.layer}] {violation.file_path}:{violation.line} -> {violation.module}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
