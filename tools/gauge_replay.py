#!/usr/bin/env python3
"""
Replay a YAML gauge scenario and print the outcome as canonical JSON.

Usage:
  python tools/gauge_replay.py tools/scenarios/weekly_funding.yaml
  python tools/gauge_replay.py tools/scenarios/weekly_funding.yaml --state-only -v
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import yaml

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from stakegauge.integration.replay import ScenarioError, run_scenario
from stakegauge.state.canonical import canonical_json_bytes


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Replay a timed list of gauge calls and print the final state.")
    p.add_argument("scenario", type=Path, help="Path to scenario YAML")
    p.add_argument("--state-only", action="store_true", help="Print only the kernel state")
    p.add_argument("-v", "--verbose", action="store_true", help="Log every accepted call and rejection to stderr")
    args = p.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        scenario = yaml.safe_load(args.scenario.read_text(encoding="utf-8"))
        report = run_scenario(scenario)
    except (OSError, yaml.YAMLError, ScenarioError) as exc:
        print(f"gauge_replay error: {exc}", file=sys.stderr)
        return 2

    out = report.state if args.state_only else report.to_dict()
    print(canonical_json_bytes(out).decode("utf-8"))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
