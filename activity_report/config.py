"""Shared constants: scoring weights, period windows, artifact names."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, fields, replace
from typing import Mapping, Optional


# ── Scoring weights ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ScoringWeights:
    """
    Every weight, multiplier and threshold the scoring engine uses.

    Override by constructing a new instance (or ``from_env``); the engine
    never reads process-wide state. Every field must be finite and non-negative.
    """

    # Merged PRs
    pr_points_base:              float = 7
    pr_points_review:            float = 3
    pr_points_approved:          float = 2
    pr_points_description:       float = 3      # ceiling of the body bonus
    pr_description_divisor:      float = 500
    pr_points_comments:          float = 0.5
    pr_min_comment_length:       int   = 50

    # PR size multipliers (changed lines = additions + deletions)
    pr_size_small:               float = 0.8    # < pr_small_max_lines
    pr_size_medium:              float = 1.2
    pr_size_large:               float = 0.9    # > pr_large_min_lines
    pr_small_max_lines:          int   = 50
    pr_large_min_lines:          int   = 300

    # PR quality bonuses (compounding)
    pr_bonus_squashed:           float = 2
    pr_squash_min_lines:         int   = 200
    pr_bonus_code_deletion:      float = 1.5
    pr_deletion_margin:          int   = 50
    pr_bonus_documentation:      float = 1.2
    pr_documentation_min_length: int   = 500

    # Issues
    issue_points_base:            float = 5
    issue_points_comments:        float = 0.5
    issue_multiplier_bug:         float = 1.3
    issue_multiplier_enhancement: float = 1.1
    issue_multiplier_feature:     float = 1.0
    issue_multiplier_docs:        float = 0.8
    issue_complexity_high:        float = 1.5
    issue_complexity_medium:      float = 1.2
    issue_complexity_low:         float = 1.0

    # Commits
    commit_points:               float = 1

    # Collaboration
    collab_points_merge:         float = 2
    collab_points_review:        float = 1
    collab_review_min_length:    int   = 20
    collab_points_coordination:  float = 1.5
    collab_min_mentions:         int   = 2
    review_points:               float = 5

    # Volume floor
    total_commits_base:          float = 1
    total_prs_base:              float = 2
    total_issues:                float = 1
    total_comments:              float = 0.5

    def __post_init__(self) -> None:
        bad = [
            f.name for f in fields(self)
            if not math.isfinite(getattr(self, f.name)) or getattr(self, f.name) < 0
        ]
        if bad:
            raise ValueError(f"Scoring weights must be finite and non-negative: {', '.join(bad)}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ScoringWeights":
        """Defaults, overridden by any upper-cased field name set in the environment."""
        environ = os.environ if environ is None else environ
        overrides: dict[str, float] = {}
        for f in fields(cls):
            raw = environ.get(f.name.upper())
            if raw is None or not raw.strip():
                continue
            try:
                value = float(raw)
            except ValueError:
                raise ValueError(f"{f.name.upper()}={raw!r} is not a number") from None
            overrides[f.name] = int(value) if f.type == "int" and value.is_integer() else value
        return replace(cls(), **overrides)


DEFAULT_WEIGHTS = ScoringWeights()


# ── Pipeline ──────────────────────────────────────────────────────────────────

PERIODS = {
    "daily":   1,
    "weekly":  7,
    "monthly": 30,
}

DATA_DIR     = os.environ.get("REPORT_DATA_DIR", "data")
HISTORY_DIR  = "history"
REPO_OWNER   = os.environ.get("GITHUB_OWNER", "elizaos")
REPO_NAME    = os.environ.get("GITHUB_REPO", "eliza")

PRS_FILE          = "prs.json"
ISSUES_FILE       = "issues.json"
COMMITS_FILE      = "commits.json"
COMBINED_FILE     = "combined.json"
SCORED_FILE       = "scored.json"
CONTRIBUTORS_FILE = "contributors.json"
SUMMARY_FILE      = "summary.json"

RAW_FILES      = (PRS_FILE, ISSUES_FILE, COMMITS_FILE)
SNAPSHOT_FILES = (PRS_FILE, ISSUES_FILE, COMMITS_FILE, CONTRIBUTORS_FILE, SUMMARY_FILE)

SUMMARY_WINDOW_DAYS = 90
