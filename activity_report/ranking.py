"""Score attachment, ordering and the leaderboard table."""

from __future__ import annotations

import logging
from typing import Optional

import pandas as pd

from activity_report.scoring import ScoringEngine

log = logging.getLogger(__name__)


def rank(
    contributors: list[dict],
    engine: Optional[ScoringEngine] = None,
) -> list[dict]:
    """
    Recompute every contributor's ``score`` from its activity and sort the
    list in place, descending by score. Ties keep their incoming order.
    """
    engine = engine or ScoringEngine()
    for contrib in contributors:
        contrib["score"] = engine.score(contrib)
    contributors.sort(key=lambda c: c["score"], reverse=True)
    return contributors


def leaderboard(contributors: list[dict], top: Optional[int] = None) -> pd.DataFrame:
    rows = []
    for c in contributors:
        code = c["activity"]["code"]
        rows.append({
            "contributor": c["contributor"],
            "score":       c.get("score", 0),
            "prs":         code["total_prs"],
            "merged_prs":  sum(1 for pr in code["pull_requests"] if pr.get("merged")),
            "issues":      c["activity"]["issues"]["total_opened"],
            "commits":     code["total_commits"],
            "comments":    c["activity"]["engagement"]["total_comments"],
        })
    df = pd.DataFrame(
        rows,
        columns=["contributor", "score", "prs", "merged_prs", "issues", "commits", "comments"],
    )
    df = df.sort_values("score", ascending=False, kind="stable").reset_index(drop=True)
    return df.head(top) if top else df


def log_leaderboard(contributors: list[dict], top: int = 5) -> None:
    df = leaderboard(contributors, top=top)
    if df.empty:
        log.info("No contributors to rank")
        return
    log.info("Top contributors by score:\n" + df.to_string(index=False))
