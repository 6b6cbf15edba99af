"""
Activity merging: folds raw PR / issue / commit records into one
contributor-keyed activity graph.

Raw records come from the GitHub GraphQL fetcher. Nested collections may be
plain lists or connection objects ({"nodes": [...]}), and author fields may
be a login string or an object carrying ``login``.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

log = logging.getLogger(__name__)


# ── Field helpers ─────────────────────────────────────────────────────────────

def _nodes(value: Any) -> list[dict]:
    """Items of a list or GraphQL connection, skipping null / non-object entries."""
    if isinstance(value, dict):
        value = value.get("nodes")
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, dict)]


def _login(author: Any) -> Optional[str]:
    if isinstance(author, str):
        return author or None
    if isinstance(author, dict):
        login = author.get("login")
        if isinstance(login, str) and login:
            return login
    return None


def _avatar(author: Any) -> Optional[str]:
    if isinstance(author, dict):
        return author.get("avatarUrl") or author.get("avatar_url") or None
    return None


def _int(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return max(int(value), 0)
    return 0


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _count(value: Any) -> Optional[int]:
    """Commit count of a PR: an int, a list, or a {totalCount} connection."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, list):
        return len(value)
    if isinstance(value, dict) and isinstance(value.get("totalCount"), int):
        return value["totalCount"]
    return None


def _comment(c: dict) -> dict:
    reactions = c.get("reactions")
    if isinstance(reactions, dict):
        reactions = _nodes(reactions) or [{}] * _int(reactions.get("totalCount"))
    return {
        "author":    _login(c.get("author")),
        "body":      _text(c.get("body")),
        "reactions": reactions if isinstance(reactions, list) else [],
    }


# ── Record builders ───────────────────────────────────────────────────────────

def new_contributor(login: str, avatar_url: Optional[str] = None) -> dict:
    """Empty ContributorRecord for ``login``."""
    return {
        "contributor": login,
        "score":       0,
        "summary":     "",
        "avatar_url":  avatar_url,
        "activity": {
            "code": {
                "total_commits": 0,
                "total_prs":     0,
                "commits":       [],
                "pull_requests": [],
            },
            "issues": {
                "total_opened": 0,
                "opened":       [],
            },
            "engagement": {
                "total_comments": 0,
                "total_reviews":  0,
                "comments":       [],
                "reviews":        [],
            },
        },
    }


def normalize_pr(pr: dict, login: str) -> dict:
    files = [
        {
            "path":      _text(f.get("path")),
            "additions": _int(f.get("additions")),
            "deletions": _int(f.get("deletions")),
        }
        for f in _nodes(pr.get("files"))
    ]
    reviews = [
        {
            "author": _login(r.get("author")),
            "state":  _text(r.get("state")),
            "body":   _text(r.get("body")),
        }
        for r in _nodes(pr.get("reviews"))
    ]
    return {
        "number":       pr.get("number"),
        "title":        _text(pr.get("title")),
        "state":        _text(pr.get("state")),
        "merged":       bool(pr.get("merged", False)),
        "draft":        bool(pr.get("isDraft", pr.get("draft", False))),
        "author":       login,
        "merged_by":    _login(pr.get("mergedBy", pr.get("merged_by"))),
        "commit_count": _count(pr.get("commits")),
        "created_at":   pr.get("createdAt"),
        "updated_at":   pr.get("updatedAt"),
        "body":         _text(pr.get("body")),
        "files":        files,
        "reviews":      reviews,
        "comments":     [_comment(c) for c in _nodes(pr.get("comments"))],
    }


def normalize_issue(issue: dict) -> dict:
    labels = [
        {
            "name":        _text(lbl.get("name")),
            "color":       lbl.get("color"),
            "description": lbl.get("description"),
        }
        for lbl in _nodes(issue.get("labels"))
    ]
    return {
        "number":     issue.get("number"),
        "title":      _text(issue.get("title")),
        "state":      _text(issue.get("state")),
        "created_at": issue.get("createdAt"),
        "updated_at": issue.get("updatedAt"),
        "body":       _text(issue.get("body")),
        "labels":     labels,
        "comments":   [_comment(c) for c in _nodes(issue.get("comments"))],
    }


def normalize_commit(commit: dict) -> dict:
    return {
        "sha":           commit.get("sha") or commit.get("oid"),
        "message":       _text(commit.get("message")),
        "created_at":    commit.get("committedDate"),
        "additions":     _int(commit.get("additions")),
        "deletions":     _int(commit.get("deletions")),
        "changed_files": _int(commit.get("changedFiles")),
    }


def commit_author(commit: dict) -> Optional[str]:
    author = commit.get("author")
    if not isinstance(author, dict):
        return None
    return _login(author.get("user"))


# ─────────────────────────────────────────────────────────────────────────────
# Merge
# ─────────────────────────────────────────────────────────────────────────────

def merge_activity(
    prs: list[dict],
    issues: list[dict],
    commits: Optional[list[dict]] = None,
) -> list[dict]:
    """
    Fold the three raw streams into one ContributorRecord per author login.

    PRs are processed first, then issues, then commits; the first PR or
    issue that carries an avatar supplies ``avatar_url``. Records without a
    resolvable author are dropped. Output is ordered by commits + PRs,
    descending (stable).
    """
    contributors: dict[str, dict] = {}

    def get_or_create(login: str, avatar_url: Optional[str] = None) -> dict:
        contrib = contributors.get(login)
        if contrib is None:
            contrib = contributors[login] = new_contributor(login, avatar_url)
            log.debug(f"Added new contributor: {login}")
        elif contrib["avatar_url"] is None and avatar_url:
            contrib["avatar_url"] = avatar_url
        return contrib

    for pr in prs or []:
        if not isinstance(pr, dict):
            continue
        login = _login(pr.get("author"))
        if not login:
            continue
        contrib = get_or_create(login, _avatar(pr.get("author")))
        entry = normalize_pr(pr, login)

        code = contrib["activity"]["code"]
        code["pull_requests"].append(entry)
        code["total_prs"] += 1

        engagement = contrib["activity"]["engagement"]
        for review in entry["reviews"]:
            engagement["reviews"].append({"pr_number": entry["number"], **review})
        engagement["total_reviews"] += len(entry["reviews"])

    for issue in issues or []:
        if not isinstance(issue, dict):
            continue
        login = _login(issue.get("author"))
        if not login:
            continue
        contrib = get_or_create(login, _avatar(issue.get("author")))
        entry = normalize_issue(issue)

        opened = contrib["activity"]["issues"]
        opened["opened"].append(entry)
        opened["total_opened"] += 1

        engagement = contrib["activity"]["engagement"]
        for comment in entry["comments"]:
            engagement["comments"].append({"issue_number": entry["number"], **comment})
        engagement["total_comments"] += len(entry["comments"])

    for commit in commits or []:
        if not isinstance(commit, dict):
            continue
        login = commit_author(commit)
        if not login:
            continue
        code = get_or_create(login)["activity"]["code"]
        code["commits"].append(normalize_commit(commit))
        code["total_commits"] += 1

    result = list(contributors.values())
    result.sort(
        key=lambda c: len(c["activity"]["code"]["commits"])
        + len(c["activity"]["code"]["pull_requests"]),
        reverse=True,
    )
    return result
