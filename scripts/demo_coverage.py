#!/usr/bin/env python3
"""
Sweep the demo rule tree over a parameter grid and report branch coverage.

Usage:
  uv run python scripts/demo_coverage.py
  uv run python scripts/demo_coverage.py path/to/rules.json --step 50
"""

from __future__ import annotations

import argparse
from pathlib import Path

from condval.engine.builder import load_rule_tree_file
from condval.engine.coverage import sweep

ROOT = Path(__file__).resolve().parents[1]


def demo_grid(step: int = 100):
    """Parameter sets for demo/demo.json with va_lower <= va_upper."""
    for va in range(0, 2000, step):
        for va_lower in range(0, 2000, step):
            for va_upper in range(va_lower, 2300, step):
                yield {"va": va, "va_upper": va_upper, "va_lower": va_lower}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("config", nargs="?", default=str(ROOT / "demo" / "demo.json"))
    parser.add_argument("--step", type=int, default=100, help="Grid step for every axis")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    tree = load_rule_tree_file(args.config)
    report = sweep(tree, demo_grid(args.step))

    print(f"Evaluations: {report.evaluations}")
    print("Traces:")
    for trace, count in sorted(report.traces.items()):
        print(f"   {'-'.join(str(i) for i in trace):10} {count}")
    print(f"Distinct results: {len(report.results)}")
    for kind, count in report.errors.items():
        print(f"[ERROR] {kind.value}: {count}")

    unreached = report.unreached_paths(tree)
    if unreached:
        for path_taken in unreached:
            print(f"[WARN] unreached: {'-'.join(str(i) for i in path_taken)}")
        return 1
    print("[OK] every branch reached")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
