"""
Summaries:
  - summarize_all: applies a per-contributor summarizer, degrading to a
    placeholder string when it fails
  - digest_summary: offline default summarizer built from recent activity
  - daily_summary: repository-level activity summary for the daily window
"""

from __future__ import annotations

import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import pandas as pd

from activity_report.config import SUMMARY_WINDOW_DAYS

log = logging.getLogger(__name__)

Summarizer = Callable[[dict], str]

_COMMIT_KEYWORDS = ("feat:", "fix:", "breaking:", "major:")
_PR_TYPES = {
    "feat":     "features",
    "fix":      "fixes",
    "chore":    "chores",
    "refactor": "refactors",
}


def parse_dt(s: Optional[str]) -> Optional[datetime]:
    if not s or not isinstance(s, str):
        return None
    try:
        dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError:
        return None
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def _area(path: str) -> Optional[str]:
    return path.split("/")[0] if "/" in path else None


# ─────────────────────────────────────────────────────────────────────────────
# Summarize stage
# ─────────────────────────────────────────────────────────────────────────────

def summarize_all(
    contributors: list[dict],
    summarizer: Summarizer,
    workers: int = 1,
) -> list[dict]:
    """
    Set ``summary`` on every contributor. A failing summarizer call leaves a
    visible placeholder for that contributor only; the batch always finishes.
    """

    def summarize_one(contrib: dict) -> str:
        try:
            return str(summarizer(contrib))
        except Exception as exc:
            log.warning(f"Summary failed for {contrib.get('contributor')}: {exc}")
            return f"Error generating summary: {exc}"

    if workers <= 1:
        for contrib in contributors:
            contrib["summary"] = summarize_one(contrib)
        return contributors

    with ThreadPoolExecutor(max_workers=workers) as pool:
        pending = {pool.submit(summarize_one, c): c for c in contributors}
        for future in as_completed(pending):
            pending[future]["summary"] = future.result()
    return contributors


# ─────────────────────────────────────────────────────────────────────────────
# Offline digest summarizer
# ─────────────────────────────────────────────────────────────────────────────

def contribution_stats(
    contributor: dict,
    days: int = SUMMARY_WINDOW_DAYS,
    now: Optional[datetime] = None,
) -> dict:
    """Counts and touched areas for entries newer than ``days``."""
    cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=days)
    activity = contributor["activity"]
    stats: Counter = Counter()
    code_areas: list[str] = []
    issue_areas: list[str] = []

    for pr in activity["code"]["pull_requests"]:
        created = parse_dt(pr.get("created_at"))
        if not created or created <= cutoff:
            continue
        stats["prs"] += 1
        stats["merged_prs"] += int(bool(pr.get("merged")))
        stats["reviews_received"] += len(pr.get("reviews") or [])
        for f in pr.get("files") or []:
            area = _area(f.get("path") or "")
            if area and area not in code_areas:
                code_areas.append(area)

    for issue in activity["issues"]["opened"]:
        created = parse_dt(issue.get("created_at"))
        if not created or created <= cutoff:
            continue
        stats["issues"] += 1
        for lbl in issue.get("labels") or []:
            name = lbl.get("name")
            if name and name not in issue_areas:
                issue_areas.append(name)

    for commit in activity["code"]["commits"]:
        created = parse_dt(commit.get("created_at"))
        if not created or created <= cutoff:
            continue
        stats["commits"] += 1
        stats["additions"] += commit.get("additions") or 0
        stats["deletions"] += commit.get("deletions") or 0

    return {
        "stats": dict(stats),
        "areas": {"code_areas": code_areas, "issue_areas": issue_areas},
    }


def recent_activity(
    contributor: dict,
    days: int = SUMMARY_WINDOW_DAYS,
    now: Optional[datetime] = None,
    limit: int = 15,
) -> list[str]:
    """Descriptions of recent entries, most important first, then newest."""
    cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=days)
    activity = contributor["activity"]
    items: list[tuple[int, datetime, str]] = []

    for pr in activity["code"]["pull_requests"]:
        created = parse_dt(pr.get("created_at"))
        if not created or created <= cutoff:
            continue
        importance = 3 if pr.get("merged") else 0
        importance += len(pr.get("reviews") or []) + len(pr.get("comments") or [])
        changes = sum(
            (f.get("additions") or 0) + (f.get("deletions") or 0)
            for f in pr.get("files") or []
        )
        if changes > 500:
            importance += 2
        items.append((importance, created, f"PR: {pr.get('title', '')}"))

    for issue in activity["issues"]["opened"]:
        created = parse_dt(issue.get("created_at"))
        if not created or created <= cutoff:
            continue
        importance = 1 + len(issue.get("comments") or [])
        if issue.get("labels"):
            importance += 1
        items.append((importance, created, f"Issue: {issue.get('title', '')}"))

    for commit in activity["code"]["commits"]:
        created = parse_dt(commit.get("created_at"))
        if not created or created <= cutoff:
            continue
        msg = (commit.get("message") or "").split("\n")[0]
        importance = 2 if any(k in msg.lower() for k in _COMMIT_KEYWORDS) else 0
        if (commit.get("additions") or 0) + (commit.get("deletions") or 0) > 200:
            importance += 1
        items.append((importance, created, f"Commit: {msg[:100]}"))

    items.sort(key=lambda x: (x[0], x[1]), reverse=True)
    return [text for _, _, text in items[:limit]]


def digest_summary(
    contributor: dict,
    days: int = SUMMARY_WINDOW_DAYS,
    now: Optional[datetime] = None,
) -> str:
    login = contributor["contributor"]
    activity = recent_activity(contributor, days, now)
    if not activity:
        return f"{login} has no significant activity in the last {days} days."

    info = contribution_stats(contributor, days, now)
    stats = info["stats"]
    highlights = "; ".join(a.split(": ", 1)[-1] for a in activity[:3])
    text = (
        f"{login} is working on {highlights}. "
        f"{stats.get('prs', 0)} PRs ({stats.get('merged_prs', 0)} merged), "
        f"{stats.get('issues', 0)} issues and {stats.get('commits', 0)} commits "
        f"in the last {days} days."
    )
    areas = info["areas"]["code_areas"][:3]
    if areas:
        text += f" Main areas: {', '.join(areas)}."
    return text


# ─────────────────────────────────────────────────────────────────────────────
# Daily repository summary
# ─────────────────────────────────────────────────────────────────────────────

def _pr_type(title: str) -> str:
    prefix = title.split(":", 1)[0].strip().lower() if ":" in title else ""
    return _PR_TYPES.get(prefix, "other")


def activity_metrics(contributors: list[dict]) -> dict:
    merged = [
        pr for c in contributors
        for pr in c["activity"]["code"]["pull_requests"]
        if pr.get("merged")
    ]
    issues = [i for c in contributors for i in c["activity"]["issues"]["opened"]]

    files_df = pd.DataFrame(
        [
            {
                "area":      _area(f.get("path") or "") or "root",
                "additions": f.get("additions") or 0,
                "deletions": f.get("deletions") or 0,
            }
            for pr in merged for f in (pr.get("files") or [])
        ],
        columns=["area", "additions", "deletions"],
    )
    file_changes = {
        area: {
            "adds":    int(row.additions),
            "dels":    int(row.deletions),
            "changes": int(row.changes),
        }
        for area, row in files_df.groupby("area").agg(
            additions=("additions", "sum"),
            deletions=("deletions", "sum"),
            changes=("additions", "size"),
        ).iterrows()
    }

    return {
        "basic_metrics": {
            "contributors": len(contributors),
            "commits":      sum(len(c["activity"]["code"]["commits"]) for c in contributors),
            "merged_prs":   len(merged),
            "new_issues":   len(issues),
        },
        "pr_types":     dict(Counter(_pr_type(pr.get("title") or "") for pr in merged)),
        "file_changes": file_changes,
        "issue_labels": dict(Counter(
            lbl.get("name") or "unlabeled"
            for i in issues for lbl in (i.get("labels") or [])
        )),
    }


def _merged_areas(contributor: dict) -> list[str]:
    areas: list[str] = []
    for pr in contributor["activity"]["code"]["pull_requests"]:
        if not pr.get("merged"):
            continue
        for f in pr.get("files") or []:
            area = (f.get("path") or "").split("/")[0]
            if area and area not in areas:
                areas.append(area)
    return areas


def daily_summary(contributors: list[dict], title: str) -> dict:
    metrics = activity_metrics(contributors)
    merged = [
        pr for c in contributors
        for pr in c["activity"]["code"]["pull_requests"]
        if pr.get("merged")
    ]

    changes: dict[str, list[str]] = {"features": [], "fixes": [], "chores": []}
    for pr in merged:
        kind = _pr_type(pr.get("title") or "")
        if kind in changes:
            changes[kind].append(pr["title"].split(":", 1)[1].strip())

    areas = sorted(
        metrics["file_changes"].items(),
        key=lambda kv: -kv[1]["changes"],
    )[:3]
    top = sorted(contributors, key=lambda c: c.get("score", 0), reverse=True)[:3]

    basic = metrics["basic_metrics"]
    overview = (
        f"{basic['contributors']} contributors merged {basic['merged_prs']} PRs "
        f"and opened {basic['new_issues']} issues"
    )
    if metrics["pr_types"].get("fixes"):
        overview += f", including {metrics['pr_types']['fixes']} bug fixes"

    return {
        "title":    title,
        "overview": overview + ".",
        "metrics": {
            "contributors":  basic["contributors"],
            "merged_prs":    basic["merged_prs"],
            "new_issues":    basic["new_issues"],
            "lines_changed": sum(a["adds"] + a["dels"] for a in metrics["file_changes"].values()),
        },
        "changes": {kind: titles[:3] for kind, titles in changes.items()},
        "areas": [
            {
                "name":      name,
                "files":     stats["changes"],
                "additions": stats["adds"],
                "deletions": stats["dels"],
            }
            for name, stats in areas
        ],
        "issue_labels": metrics["issue_labels"],
        "top_contributors": [
            {
                "name":    c["contributor"],
                "score":   c.get("score", 0),
                "summary": (c.get("summary") or "").split(".")[0],
                "areas":   _merged_areas(c)[:3],
            }
            for c in top
        ],
    }
