#!/usr/bin/env python3
"""Command line runner for the laboratory scheduler.

Reads a school timetable (JSON, or an HTML export plus a JSON list of
labs given with --labs) and a rules document, assigns laboratory
sessions, prints the per-lab timetables and the diagnostics, and
optionally writes the placements to CSV and a printable HTML page.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Make project root importable
PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(PROJECT_ROOT))

from lab_scheduler.export import describe, lab_timetables, write_csv, write_html
from lab_scheduler.rules import load_rules, resolve_rules
from lab_scheduler.solver import solve_labs
from lab_scheduler.sources import load_html_school, load_school

logger = logging.getLogger("run_solver")


# ---------- Runner ----------

def run(
    school_path: Path,
    rules_path: Path,
    output: Path | None,
    respect_forbidden_times: bool,
    labs_path: Path | None = None,
    html_output: Path | None = None,
) -> int:
    if labs_path is not None:
        school = load_html_school(school_path, labs_path)
    else:
        school = load_school(school_path)
    rules = load_rules(rules_path)

    resolved, diagnostics = resolve_rules(rules, school)
    logger.info("Resolved %d rules (%d skipped)", len(resolved), len(diagnostics))

    solution = solve_labs(school, resolved, respect_forbidden_times=respect_forbidden_times)

    for lab_name, grid in lab_timetables(school, solution).items():
        print(f"Timetable {lab_name}")
        for day, cells in grid.items():
            print(f"  {day:<10} " + " | ".join(cells))

    for line in describe(school, solution):
        print(line)

    if output is not None:
        write_csv(output, school, solution)
        print(f"Wrote placements to {output}")

    if html_output is not None:
        write_html(html_output, school, solution)
        print(f"Wrote timetables to {html_output}")

    # non-zero exit when a class was left without a lab session
    return 1 if solution.errors else 0


# ---------- CLI ----------

def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser()
    parser.add_argument("--school", type=Path, required=True, help="timetable JSON document, or HTML export with --labs")
    parser.add_argument("--labs", type=Path, default=None, help="JSON list of laboratory names for an HTML timetable")
    parser.add_argument("--rules", type=Path, required=True, help="laboratory rules JSON document")
    parser.add_argument("--output", type=Path, default=None, help="CSV file for the placements")
    parser.add_argument("--html-output", type=Path, default=None, help="printable HTML page of the lab timetables")
    parser.add_argument("--respect-forbidden-times", action="store_true")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    sys.exit(run(
        school_path=args.school,
        rules_path=args.rules,
        output=args.output,
        respect_forbidden_times=args.respect_forbidden_times,
        labs_path=args.labs,
        html_output=args.html_output,
    ))


if __name__ == "__main__":
    main()
