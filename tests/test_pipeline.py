import json
from datetime import date

import pytest

from activity_report.artifacts import StageGateError
from activity_report.pipeline import STAGES, Pipeline, run_periods

TODAY = date(2026, 10, 19)


def _read(path):
    return json.loads(path.read_text())


def test_stage_order():
    assert STAGES == ("fetch", "merge", "score", "summarize", "snapshot", "build")


def test_full_daily_run(data_dir):
    built = []
    Pipeline("daily", data_dir, site_builder=built.append, today=TODAY).run()

    daily = data_dir / "daily"
    combined = _read(daily / "combined.json")
    scored = _read(daily / "scored.json")
    contributors = _read(daily / "contributors.json")

    assert all(c["score"] == 0 and c["summary"] == "" for c in combined)
    assert [c["score"] for c in scored] == sorted((c["score"] for c in scored), reverse=True)
    assert scored[0]["contributor"] == "alice"
    assert [c["contributor"] for c in contributors] == [c["contributor"] for c in scored]
    assert all(c["summary"] for c in contributors)
    assert (daily / "summary.json").exists()

    history = sorted(p.name for p in (daily / "history").iterdir())
    assert history == [
        "commits_2026_10_19.json",
        "contributors_2026_10_19.json",
        "issues_2026_10_19.json",
        "prs_2026_10_19.json",
        "summary_2026_10_19.json",
    ]
    assert _read(data_dir / "contributors.json") == contributors
    assert built == [data_dir / "contributors.json"]


def test_daily_rerun_appends_history(data_dir):
    Pipeline("daily", data_dir, today=TODAY).run()
    first = _read(data_dir / "daily" / "history" / "contributors_2026_10_19.json")

    Pipeline("daily", data_dir, summarizer=lambda c: "second run", today=TODAY).run()

    history = data_dir / "daily" / "history"
    assert _read(history / "contributors_2026_10_19.json") == first
    second = _read(history / "contributors_2026_10_19_2.json")
    assert all(c["summary"] == "second run" for c in second)
    assert len(list(history.glob("contributors_*.json"))) == 2


def test_current_artifacts_are_overwritten(data_dir):
    Pipeline("daily", data_dir, summarizer=lambda c: "one", today=TODAY).run()
    Pipeline("daily", data_dir, summarizer=lambda c: "two", today=TODAY).run()

    contributors = _read(data_dir / "daily" / "contributors.json")
    assert {c["summary"] for c in contributors} == {"two"}


def test_weekly_run_takes_no_snapshot(tmp_path, raw_activity):
    prs, issues, commits = raw_activity
    fetched = []

    def fetcher(period, days):
        fetched.append((period, days))
        return prs, issues, commits

    Pipeline("weekly", tmp_path, fetcher=fetcher).run()

    weekly = tmp_path / "weekly"
    assert fetched == [("weekly", 7)]
    assert _read(weekly / "prs.json") == prs
    assert (weekly / "contributors.json").exists()
    assert not (weekly / "history").exists()
    assert not (weekly / "summary.json").exists()


def test_missing_raw_artifact_is_fatal(data_dir):
    (data_dir / "daily" / "commits.json").unlink()

    with pytest.raises(StageGateError) as info:
        Pipeline("daily", data_dir, today=TODAY).run()

    assert info.value.stage == "fetch"
    assert info.value.path.name == "commits.json"
    assert not (data_dir / "daily" / "combined.json").exists()


def test_empty_artifact_is_fatal(data_dir):
    (data_dir / "daily" / "issues.json").write_text("")

    with pytest.raises(StageGateError, match="empty"):
        Pipeline("daily", data_dir, today=TODAY).run(start_at="merge")


def test_resume_requires_previous_artifact(data_dir):
    with pytest.raises(StageGateError) as info:
        Pipeline("daily", data_dir, today=TODAY).run(start_at="score")

    assert info.value.stage == "score"
    assert info.value.path.name == "combined.json"
    assert not (data_dir / "daily" / "scored.json").exists()


def test_resume_from_disk(data_dir):
    pipeline = Pipeline("daily", data_dir, today=TODAY)
    pipeline.run(stop_after="merge")
    assert not (data_dir / "daily" / "scored.json").exists()

    pipeline.run(start_at="score", stop_after="score")
    assert _read(data_dir / "daily" / "scored.json")[0]["score"] > 0


def test_summarizer_failures_do_not_abort(data_dir):
    def broken(contributor):
        raise TimeoutError("no response")

    Pipeline("daily", data_dir, summarizer=broken, today=TODAY).run()

    contributors = _read(data_dir / "contributors.json")
    assert {c["summary"] for c in contributors} == {"Error generating summary: no response"}
    assert contributors[0]["score"] > 0


def test_unknown_period_and_stage(data_dir):
    with pytest.raises(ValueError):
        Pipeline("hourly", data_dir)
    with pytest.raises(ValueError):
        Pipeline("daily", data_dir).run(start_at="render")
    with pytest.raises(ValueError):
        Pipeline("daily", data_dir).run(start_at="build", stop_after="merge")


def test_run_periods_builds_once_from_last(tmp_path, raw_activity):
    prs, issues, commits = raw_activity
    built = []

    run_periods(
        ["daily", "weekly"],
        tmp_path,
        fetcher=lambda period, days: (prs, issues if period == "daily" else [], commits),
        site_builder=built.append,
        today=TODAY,
    )

    assert built == [tmp_path / "contributors.json"]
    published = _read(tmp_path / "contributors.json")
    assert published == _read(tmp_path / "weekly" / "contributors.json")
    assert "bob" not in {c["contributor"] for c in published}


def test_run_periods_can_stop_early(data_dir):
    run_periods(["daily"], data_dir, stop_after="score", today=TODAY)

    assert (data_dir / "daily" / "scored.json").exists()
    assert not (data_dir / "daily" / "contributors.json").exists()
    assert not (data_dir / "contributors.json").exists()


def test_truncated_artifact_is_fatal(data_dir):
    pipeline = Pipeline("daily", data_dir, today=TODAY)
    pipeline.run(stop_after="merge")
    combined = data_dir / "daily" / "combined.json"
    combined.write_text(combined.read_text()[:40])

    with pytest.raises(StageGateError, match="not a valid JSON array") as info:
        pipeline.run(start_at="score")

    assert info.value.stage == "score"
    assert info.value.path.name == "combined.json"
    assert not (data_dir / "daily" / "scored.json").exists()


def test_null_raw_artifact_is_fatal(data_dir):
    (data_dir / "daily" / "prs.json").write_text("null")

    with pytest.raises(StageGateError) as info:
        Pipeline("daily", data_dir, today=TODAY).run()

    assert info.value.stage == "merge"
    assert info.value.path.name == "prs.json"


def test_build_leaves_no_partial_copy(data_dir):
    Pipeline("daily", data_dir, today=TODAY).run()

    assert (data_dir / "contributors.json").exists()
    assert not (data_dir / "contributors.json.tmp").exists()


def test_default_digest_uses_run_date(data_dir):
    Pipeline("daily", data_dir, today=date(2027, 6, 1)).run()

    contributors = _read(data_dir / "contributors.json")
    alice = next(c for c in contributors if c["contributor"] == "alice")
    assert alice["summary"] == "alice has no significant activity in the last 90 days."
