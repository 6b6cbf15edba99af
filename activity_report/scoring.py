"""
Contributor scoring.

Six additive components over one contributor's activity graph:
  - merged PRs (size x quality multipliers, reviews, description, comments)
  - engaged issues (type x complexity multipliers, comments)
  - commits (flat)
  - collaboration on the contributor's PRs (merging, reviews, coordination)
  - reviews the contributor left on their own PR list
  - volume floor (raw counters)

The final score is the floor of the sum, never negative.
"""

from __future__ import annotations

import math
import re

from activity_report.config import DEFAULT_WEIGHTS, ScoringWeights

_MENTION_RE = re.compile(r"@\w+")

COMPONENTS = (
    "pull_requests",
    "issues",
    "commits",
    "collaboration",
    "reviews",
    "volume",
)


def _changes(pr: dict) -> tuple[int, int]:
    """(additions, deletions) summed over the PR's files."""
    files = pr.get("files") or []
    additions = sum(f.get("additions") or 0 for f in files)
    deletions = sum(f.get("deletions") or 0 for f in files)
    return additions, deletions


def _labels(issue: dict) -> set[str]:
    return {
        (lbl.get("name") or "").lower()
        for lbl in (issue.get("labels") or [])
        if lbl
    }


class ScoringEngine:
    """Pure scoring over an immutable ``ScoringWeights``."""

    def __init__(self, weights: ScoringWeights = DEFAULT_WEIGHTS) -> None:
        self.weights = weights

    # ── Pull requests ────────────────────────────────────────────────────────

    def size_multiplier(self, pr: dict) -> float:
        w = self.weights
        total = sum(_changes(pr))
        if total < w.pr_small_max_lines:
            return w.pr_size_small
        if total > w.pr_large_min_lines:
            return w.pr_size_large
        return w.pr_size_medium

    def quality_multiplier(self, pr: dict) -> float:
        """Squash, deletion and documentation bonuses, compounding."""
        w = self.weights
        additions, deletions = _changes(pr)
        multiplier = 1.0

        commit_count = pr.get("commit_count") or 1
        if commit_count == 1 and additions + deletions > w.pr_squash_min_lines:
            multiplier *= w.pr_bonus_squashed

        if deletions > additions + w.pr_deletion_margin:
            multiplier *= w.pr_bonus_code_deletion

        if len(pr.get("body") or "") > w.pr_documentation_min_length:
            multiplier *= w.pr_bonus_documentation

        return multiplier

    def pr_points(self, pr: dict) -> float:
        w = self.weights
        if not pr.get("merged") or pr.get("draft"):
            return 0.0

        points = w.pr_points_base * self.size_multiplier(pr) * self.quality_multiplier(pr)

        reviews = pr.get("reviews") or []
        points += len(reviews) * w.pr_points_review
        approved = sum(1 for r in reviews if r and r.get("state") == "APPROVED")
        points += approved * w.pr_points_approved

        body = pr.get("body") or ""
        if body and w.pr_description_divisor:
            points += min(len(body) / w.pr_description_divisor, w.pr_points_description)

        meaningful = sum(
            1 for c in (pr.get("comments") or [])
            if c and len(c.get("body") or "") > w.pr_min_comment_length
        )
        points += meaningful * w.pr_points_comments
        return points

    # ── Issues ───────────────────────────────────────────────────────────────

    @staticmethod
    def has_engagement(issue: dict) -> bool:
        comments = issue.get("comments") or []
        return bool(comments) or any(c and c.get("reactions") for c in comments)

    def issue_multiplier(self, issue: dict) -> float:
        """Type multiplier x complexity multiplier, both from labels."""
        w = self.weights
        labels = _labels(issue)

        if "bug" in labels:
            type_mult = w.issue_multiplier_bug
        elif "documentation" in labels:
            type_mult = w.issue_multiplier_docs
        elif "enhancement" in labels:
            type_mult = w.issue_multiplier_enhancement
        else:
            type_mult = w.issue_multiplier_feature

        if labels & {"complex", "high-priority"}:
            complexity = w.issue_complexity_high
        elif labels & {"easy", "good-first-issue"}:
            complexity = w.issue_complexity_low
        else:
            complexity = w.issue_complexity_medium

        return type_mult * complexity

    def issue_points(self, issue: dict) -> float:
        w = self.weights
        if not self.has_engagement(issue):
            return 0.0
        points = w.issue_points_base * self.issue_multiplier(issue)
        points += len(issue.get("comments") or []) * w.issue_points_comments
        return points

    # ── Commits ──────────────────────────────────────────────────────────────

    def commit_points(self, commit: dict) -> float:
        return self.weights.commit_points

    # ── Collaboration ────────────────────────────────────────────────────────

    def collaboration_points(self, pr: dict, login: str) -> float:
        w = self.weights
        points = 0.0

        if pr.get("merged_by") == login and pr.get("author") != login:
            points += w.collab_points_merge

        review_comments = sum(
            1 for r in (pr.get("reviews") or [])
            if r and r.get("author") == login
            and len(r.get("body") or "") > w.collab_review_min_length
        )
        points += review_comments * w.collab_points_review

        coordination = sum(
            1 for c in (pr.get("comments") or [])
            if c and c.get("author") == login
            and len(_MENTION_RE.findall(c.get("body") or "")) >= w.collab_min_mentions
        )
        points += coordination * w.collab_points_coordination
        return points

    def reviewer_points(self, pr: dict, login: str) -> float:
        # Only matches reviews the contributor left on a PR in their own list.
        given = sum(
            1 for r in (pr.get("reviews") or [])
            if r and r.get("author") == login
        )
        return given * self.weights.review_points

    # ── Volume floor ─────────────────────────────────────────────────────────

    def volume_points(self, contributor: dict) -> float:
        w = self.weights
        activity = contributor.get("activity") or {}
        code = activity.get("code") or {}
        issues = activity.get("issues") or {}
        engagement = activity.get("engagement") or {}
        return (
            (code.get("total_commits") or 0) * w.total_commits_base
            + (code.get("total_prs") or 0) * w.total_prs_base
            + (issues.get("total_opened") or 0) * w.total_issues
            + (engagement.get("total_comments") or 0) * w.total_comments
        )

    # ── Totals ───────────────────────────────────────────────────────────────

    def breakdown(self, contributor: dict) -> dict[str, float]:
        """Real-valued points per component, before flooring."""
        login = contributor.get("contributor", "")
        activity = contributor.get("activity") or {}
        code = activity.get("code") or {}
        prs = code.get("pull_requests") or []

        return {
            "pull_requests": sum(self.pr_points(pr) for pr in prs),
            "issues":        sum(
                self.issue_points(i)
                for i in ((activity.get("issues") or {}).get("opened") or [])
            ),
            "commits":       sum(self.commit_points(c) for c in (code.get("commits") or [])),
            "collaboration": sum(self.collaboration_points(pr, login) for pr in prs),
            "reviews":       sum(self.reviewer_points(pr, login) for pr in prs),
            "volume":        self.volume_points(contributor),
        }

    def score(self, contributor: dict) -> int:
        total = sum(self.breakdown(contributor).values())
        return max(int(math.floor(total)), 0)
