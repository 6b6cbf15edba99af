"""
Pipeline orchestration: fetch → merge → score → summarize → snapshot → build.

Stages hand over exclusively through JSON artifacts in the period directory
(``<data_dir>/<period>/``). Each stage verifies its inputs before running and
re-verifies its output after writing, so any completed stage is a resume
point for the next invocation.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timezone
from functools import partial
from pathlib import Path
from typing import Callable, Optional

from activity_report import config
from activity_report.artifacts import (
    copy_artifact,
    date_token,
    read_artifact,
    snapshot,
    verify_artifact,
    write_json,
)
from activity_report.merge import merge_activity
from activity_report.ranking import log_leaderboard, rank
from activity_report.scoring import ScoringEngine
from activity_report.summaries import Summarizer, daily_summary, digest_summary, summarize_all

log = logging.getLogger(__name__)

STAGES = ("fetch", "merge", "score", "summarize", "snapshot", "build")

Fetcher = Callable[[str, int], tuple[list, list, list]]
SiteBuilder = Callable[[Path], None]


class Pipeline:
    """One period's run over its own artifact subtree."""

    def __init__(
        self,
        period: str,
        data_dir: Path | str = config.DATA_DIR,
        engine: Optional[ScoringEngine] = None,
        fetcher: Optional[Fetcher] = None,
        summarizer: Optional[Summarizer] = None,
        site_builder: Optional[SiteBuilder] = None,
        workers: int = 1,
        today: Optional[date] = None,
    ) -> None:
        if period not in config.PERIODS:
            raise ValueError(f"Unknown period {period!r}; expected one of {', '.join(config.PERIODS)}")
        self.period       = period
        self.days         = config.PERIODS[period]
        self.data_dir     = Path(data_dir)
        self.base_dir     = self.data_dir / period
        self.history_dir  = self.base_dir / config.HISTORY_DIR
        self.engine       = engine or ScoringEngine()
        self.fetcher      = fetcher
        self.site_builder = site_builder
        self.workers      = workers
        self.today        = today
        if summarizer is None and today is not None:
            # digest window ends with the run date, not the wall clock
            summarizer = partial(
                digest_summary, now=datetime.combine(today, time.max, tzinfo=timezone.utc)
            )
        self.summarizer   = summarizer or digest_summary

    def path(self, filename: str) -> Path:
        return self.base_dir / filename

    # ── Driver ───────────────────────────────────────────────────────────────

    def run(self, start_at: str = "fetch", stop_after: str = "build") -> None:
        for name in (start_at, stop_after):
            if name not in STAGES:
                raise ValueError(f"Unknown stage {name!r}; expected one of {', '.join(STAGES)}")
        first, last = STAGES.index(start_at), STAGES.index(stop_after)
        if first > last:
            raise ValueError(f"Stage {start_at!r} comes after {stop_after!r}")

        self.base_dir.mkdir(parents=True, exist_ok=True)
        for name in STAGES[first:last + 1]:
            log.info(f"[{self.period}] stage: {name}")
            getattr(self, f"stage_{name}")()

    # ── Stages ───────────────────────────────────────────────────────────────

    def stage_fetch(self) -> None:
        if self.fetcher is not None:
            prs, issues, commits = self.fetcher(self.period, self.days)
            for filename, data in zip(config.RAW_FILES, (prs, issues, commits)):
                write_json(self.path(filename), data)
                log.info(f"Saved {len(data)} records to {self.path(filename)}")
        else:
            log.info(f"No fetcher configured; expecting raw artifacts in {self.base_dir}")
        for filename in config.RAW_FILES:
            verify_artifact(self.path(filename), "fetch")

    def stage_merge(self) -> None:
        prs     = read_artifact(self.path(config.PRS_FILE), "merge")
        issues  = read_artifact(self.path(config.ISSUES_FILE), "merge")
        commits = read_artifact(self.path(config.COMMITS_FILE), "merge")
        log.info(f"Loaded {len(prs)} PRs, {len(issues)} issues, {len(commits)} commits")

        contributors = merge_activity(prs, issues, commits)
        out = write_json(self.path(config.COMBINED_FILE), contributors)
        verify_artifact(out, "merge")
        log.info(f"Processed {len(contributors)} contributors")

    def stage_score(self) -> None:
        contributors = read_artifact(self.path(config.COMBINED_FILE), "score")

        rank(contributors, self.engine)
        out = write_json(self.path(config.SCORED_FILE), contributors)
        verify_artifact(out, "score")
        log.info(f"Scores calculated for {len(contributors)} contributors")
        log_leaderboard(contributors)

    def stage_summarize(self) -> None:
        contributors = read_artifact(self.path(config.SCORED_FILE), "summarize")

        summarize_all(contributors, self.summarizer, workers=self.workers)
        out = write_json(self.path(config.CONTRIBUTORS_FILE), contributors)
        verify_artifact(out, "summarize")

        if self.period == "daily":
            title = f"{config.REPO_OWNER} {config.REPO_NAME} ({(self.today or date.today()).isoformat()})"
            out = write_json(self.path(config.SUMMARY_FILE), daily_summary(contributors, title))
            verify_artifact(out, "summarize")

    def stage_snapshot(self) -> None:
        if self.period != "daily":
            log.info(f"[{self.period}] snapshots are only kept for the daily window")
            return
        token = date_token(self.today)
        for filename in config.SNAPSHOT_FILES:
            verify_artifact(self.path(filename), "snapshot")
        for filename in config.SNAPSHOT_FILES:
            dest = snapshot(self.path(filename), self.history_dir, token)
            verify_artifact(dest, "snapshot")

    def stage_build(self) -> None:
        src = self.path(config.CONTRIBUTORS_FILE)
        verify_artifact(src, "build")
        dest = self.data_dir / config.CONTRIBUTORS_FILE
        copy_artifact(src, dest)
        verify_artifact(dest, "build")
        log.info(f"Copied {src} to {dest}")

        if self.site_builder is None:
            log.info("No site builder configured; skipping site generation")
            return
        self.site_builder(dest)


def run_periods(
    periods: list[str],
    data_dir: Path | str = config.DATA_DIR,
    start_at: str = "fetch",
    stop_after: str = "build",
    **kwargs,
) -> None:
    """Run every period through snapshot, then build once from the last one."""
    if not periods:
        raise ValueError("No periods to run")
    if start_at == "build" and stop_after != "build":
        raise ValueError(f"Stage 'build' comes after {stop_after!r}")
    pipelines = [Pipeline(p, data_dir, **kwargs) for p in periods]
    if start_at != "build":
        last = "snapshot" if stop_after == "build" else stop_after
        for pipeline in pipelines:
            pipeline.run(start_at=start_at, stop_after=last)
    if stop_after == "build":
        pipelines[-1].run(start_at="build")

