"""
Determinism guard (static check).

Keeps nondeterministic calls out of the simulation so a seed fully reproduces a run
(replays, bug reports, the test suite).

What we flag (in simulation code):
- Wall-clock time: pygame.time.get_ticks(), time.time(), time.monotonic(), datetime.now()
- Global RNG: random.random/randint/choice/... and `from random import <fn>`
- Unseeded streams: random.Random() with no seed argument
- Python's hash() (process-randomized by default)

time.perf_counter() is allowed: it only feeds perf_stats, never sim state.

Not scanned:
- scrapline/sim/** (home of the seeded wrappers and the sim clock)
"""

from __future__ import annotations

import argparse
import ast
import json
from pathlib import Path
from typing import Iterable


PROJECT_ROOT = Path(__file__).resolve().parents[1]
PACKAGE_ROOT = PROJECT_ROOT / "scrapline"

DEFAULT_SCAN_PATHS = [PACKAGE_ROOT]
DEFAULT_EXCLUDE_DIRS = [PACKAGE_ROOT / "sim"]

_RANDOM_FUNCS = {
    "random",
    "randint",
    "uniform",
    "choice",
    "choices",
    "sample",
    "shuffle",
    "seed",
    "randrange",
    "gauss",
}

_TIME_FUNCS = {"time", "monotonic", "time_ns"}
_DATETIME_FUNCS = {"now", "utcnow", "today"}


def _is_under(path: Path, parent: Path) -> bool:
    try:
        path.resolve().relative_to(parent.resolve())
        return True
    except ValueError:
        return False


def iter_py_files(roots: Iterable[Path], exclude_dirs: list[Path]) -> list[Path]:
    out: set[Path] = set()
    for root in roots:
        if not root.exists():
            continue
        candidates = [root] if root.is_file() else root.rglob("*.py")
        for p in candidates:
            if p.suffix != ".py" or any(_is_under(p, ex) for ex in exclude_dirs):
                continue
            out.add(p)
    return sorted(out)


def _attr_chain(node: ast.AST) -> list[str] | None:
    """Dotted name of a call target, e.g. ["pygame", "time", "get_ticks"]."""
    if isinstance(node, ast.Name):
        return [node.id]
    if isinstance(node, ast.Attribute):
        base = _attr_chain(node.value)
        return None if base is None else [*base, node.attr]
    return None


def _rel(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(PROJECT_ROOT))
    except ValueError:
        return str(path)


def _finding(kind: str, path: Path, node: ast.AST, detail: str) -> dict:
    return {
        "kind": kind,
        "file": _rel(path),
        "line": int(getattr(node, "lineno", 0) or 0),
        "col": int(getattr(node, "col_offset", 0) or 0),
        "detail": detail,
    }


def _check_call(path: Path, node: ast.Call) -> dict | None:
    chain = _attr_chain(node.func)
    if not chain:
        return None

    if chain == ["pygame", "time", "get_ticks"]:
        return _finding("wall_clock_time", path, node, "use scrapline.sim.timebase.now_ms() instead of pygame ticks")
    if len(chain) == 2 and chain[0] == "time" and chain[1] in _TIME_FUNCS:
        return _finding("wall_clock_time", path, node, f"time.{chain[1]}() in sim code; accumulate dt or use now_ms()")
    if "datetime" in chain and chain[-1] in _DATETIME_FUNCS:
        return _finding("wall_clock_time", path, node, f"datetime {chain[-1]}() in sim code")
    if len(chain) == 2 and chain[0] == "random" and chain[1] in _RANDOM_FUNCS:
        return _finding("global_rng", path, node, f"random.{chain[1]}() uses the global RNG; inject a get_rng(tag) stream")
    if chain == ["random", "Random"] and not node.args and not node.keywords:
        return _finding("unseeded_rng", path, node, "random.Random() without a seed")
    if chain == ["hash"]:
        return _finding("unstable_hash", path, node, "hash() is randomized per process; use zlib.crc32 or explicit ids")
    return None


def scan_file(path: Path) -> list[dict]:
    src = path.read_text(encoding="utf-8", errors="replace")
    try:
        tree = ast.parse(src, filename=str(path))
    except SyntaxError as e:
        return [{
            "kind": "parse_error",
            "file": _rel(path),
            "line": int(e.lineno or 0),
            "col": int(e.offset or 0),
            "detail": f"SyntaxError: {e.msg}",
        }]

    findings: list[dict] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.ImportFrom) and node.module == "random":
            bad = sorted(a.name for a in node.names if a.name in _RANDOM_FUNCS)
            if bad:
                findings.append(_finding("global_rng", path, node, f"from random import {', '.join(bad)}"))
        elif isinstance(node, ast.Call):
            finding = _check_call(path, node)
            if finding is not None:
                findings.append(finding)
    return findings


def scan(paths: Iterable[Path] = DEFAULT_SCAN_PATHS, exclude_dirs: list[Path] = DEFAULT_EXCLUDE_DIRS) -> list[dict]:
    findings: list[dict] = []
    for f in iter_py_files(paths, exclude_dirs):
        findings.extend(scan_file(f))
    return findings


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Static determinism guard (simulation code)")
    ap.add_argument("--paths", nargs="*", default=[], help="Files or dirs to scan (default: scrapline/, minus sim/)")
    ap.add_argument("--json", action="store_true", help="Emit machine-readable JSON")
    ns = ap.parse_args(argv)

    roots = [Path(p) for p in ns.paths] if ns.paths else DEFAULT_SCAN_PATHS
    findings = scan(roots)

    if ns.json:
        print(json.dumps({"findings": findings}, indent=2))
    elif not findings:
        print("[determinism_guard] PASS: no violations found")
    else:
        print(f"[determinism_guard] FAIL: {len(findings)} violation(s)")
        for v in findings:
            print(f"- {v['file']}:{v['line']}:{v['col']} [{v['kind']}] {v['detail']}")

    return 0 if not findings else 1


if __name__ == "__main__":
    raise SystemExit(main())
