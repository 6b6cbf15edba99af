#!/usr/bin/env python3
"""
generate_report.py

Turns the raw GitHub activity of one or more time windows (prs.json,
issues.json, commits.json under data/<period>/) into ranked contributor
artifacts: combined.json, scored.json, contributors.json, plus dated history
snapshots for the daily window and data/contributors.json for the site build.

Scoring weights can be overridden through the environment or a .env file
(e.g. PR_POINTS_BASE=9).

Usage:
    python generate_report.py daily
    python generate_report.py all --site-command "npm run build-site"
    python generate_report.py weekly --start-at score
"""

from __future__ import annotations

import argparse
import logging
import shlex
import subprocess
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

from activity_report import config
from activity_report.artifacts import StageGateError
from activity_report.config import ScoringWeights
from activity_report.pipeline import STAGES, run_periods
from activity_report.scoring import ScoringEngine

log = logging.getLogger("generate_report")


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build ranked contributor activity reports.")
    parser.add_argument("period", choices=[*config.PERIODS, "all"])
    parser.add_argument("--data-dir", default=config.DATA_DIR,
                        help="Root of the per-period artifact directories (default: %(default)s)")
    parser.add_argument("--start-at", choices=STAGES, default="fetch",
                        help="Resume from this stage using artifacts already on disk")
    parser.add_argument("--stop-after", choices=STAGES, default="build",
                        help="Last stage to run (default: %(default)s)")
    parser.add_argument("--workers", type=int, default=1,
                        help="Concurrent summarizer calls (default: %(default)s)")
    parser.add_argument("--site-command",
                        help="Shell command run after data/contributors.json is published")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


def command_site_builder(command: str):
    def build(contributors_path: Path) -> None:
        log.info(f"Running site command: {command}")
        subprocess.run(shlex.split(command), check=True)
    return build


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    periods = list(config.PERIODS) if args.period == "all" else [args.period]
    log.info(f"Processing periods: {', '.join(periods)}")

    try:
        engine = ScoringEngine(ScoringWeights.from_env())
        run_periods(
            periods,
            data_dir=args.data_dir,
            start_at=args.start_at,
            stop_after=args.stop_after,
            engine=engine,
            site_builder=command_site_builder(args.site_command) if args.site_command else None,
            workers=args.workers,
        )
    except StageGateError as exc:
        log.error(f"Pipeline aborted at stage '{exc.stage}': {exc}")
        return 1
    except ValueError as exc:
        log.error(f"Invalid configuration: {exc}")
        return 1
    except subprocess.CalledProcessError as exc:
        log.error(f"Site command failed with exit code {exc.returncode}")
        return 1

    log.info("✓ All operations completed successfully")
    return 0


if __name__ == "__main__":
    sys.exit(main())
