import json

import pytest


def make_pr(login="alice", number=1, merged=True, body="", files=None, reviews=None,
            comments=None, avatar="https://avatars.example/alice.png", **extra):
    pr = {
        "number": number,
        "title": f"feat: change {number}",
        "body": body,
        "state": "MERGED" if merged else "OPEN",
        "merged": merged,
        "createdAt": "2026-10-18T10:00:00Z",
        "updatedAt": "2026-10-18T12:00:00Z",
        "author": {"login": login, "avatarUrl": avatar} if login else None,
        "labels": [],
        "files": files or [],
        "reviews": reviews or [],
        "comments": comments or [],
    }
    pr.update(extra)
    return pr


def make_issue(login="bob", number=100, labels=(), comments=None,
               avatar="https://avatars.example/bob.png"):
    return {
        "number": number,
        "title": f"Issue {number}",
        "body": "Something is off",
        "state": "OPEN",
        "createdAt": "2026-10-18T09:00:00Z",
        "updatedAt": "2026-10-18T09:30:00Z",
        "author": {"login": login, "avatarUrl": avatar} if login else None,
        "labels": [{"name": name, "color": "ff0000", "description": None} for name in labels],
        "comments": comments or [],
    }


def make_commit(login="carol", sha="abc123", additions=10, deletions=2):
    return {
        "sha": sha,
        "message": "fix: tidy things up",
        "committedDate": "2026-10-18T08:00:00Z",
        "author": {"user": {"login": login}},
        "additions": additions,
        "deletions": deletions,
        "changedFiles": 1,
    }


@pytest.fixture
def raw_activity():
    prs = [
        make_pr("alice", 1, files=[{"path": "src/app.py", "additions": 40, "deletions": 20}],
                reviews=[{"author": "bob", "state": "APPROVED", "body": "Looks good"}]),
        make_pr("alice", 2, merged=False),
        make_pr("dave", 3, avatar=None),
    ]
    issues = [
        make_issue("bob", 100, labels=["bug"], comments=[{"author": "alice", "body": "Confirmed"}]),
        make_issue("dave", 101, avatar="https://avatars.example/dave.png"),
    ]
    commits = [
        make_commit("carol", "c1"),
        make_commit("carol", "c2"),
        make_commit("alice", "c3"),
    ]
    return prs, issues, commits


@pytest.fixture
def data_dir(tmp_path, raw_activity):
    """data/ root with raw artifacts already in place for the daily window."""
    root = tmp_path / "data"
    daily = root / "daily"
    daily.mkdir(parents=True)
    prs, issues, commits = raw_activity
    for name, data in (("prs.json", prs), ("issues.json", issues), ("commits.json", commits)):
        (daily / name).write_text(json.dumps(data))
    return root
