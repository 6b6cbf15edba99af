"""JSON artifact I/O, stage-gate verification and history naming."""

from __future__ import annotations

import json
import logging
import os
import shutil
from datetime import date
from pathlib import Path
from typing import Any, Optional

log = logging.getLogger(__name__)


class StageGateError(RuntimeError):
    """A stage's required artifact is missing, empty or unreadable. Fatal for the run."""

    def __init__(self, stage: str, path: Path, reason: str = "not found") -> None:
        self.stage = stage
        self.path = Path(path)
        super().__init__(f"[{stage}] required artifact {self.path} {reason}")


def read_json(path: Path) -> Any:
    with Path(path).open(encoding="utf-8") as f:
        return json.load(f)


def write_json(path: Path, data: Any) -> Path:
    """Full overwrite via a .tmp sibling and rename, never a partial file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    with tmp.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, default=str)
    os.replace(tmp, path)
    return path


def verify_artifact(path: Path, stage: str) -> int:
    """Size in bytes of ``path``; raises StageGateError if it is missing or empty."""
    path = Path(path)
    if not path.is_file():
        log.error(f"File verification failed for {path}: not found")
        raise StageGateError(stage, path)
    size = path.stat().st_size
    if size == 0:
        log.error(f"File verification failed for {path}: empty")
        raise StageGateError(stage, path, "is empty")
    log.info(f"Verified {path} exists ({size} bytes)")
    return size


def read_artifact(path: Path, stage: str) -> list:
    """Verified contents of a stage input; anything but a JSON array is fatal."""
    verify_artifact(path, stage)
    try:
        data = read_json(path)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        log.error(f"File verification failed for {path}: {exc}")
        raise StageGateError(stage, path, "is not a valid JSON array") from exc
    if not isinstance(data, list):
        log.error(f"File verification failed for {path}: got {type(data).__name__}")
        raise StageGateError(stage, path, "is not a valid JSON array")
    return data


def copy_artifact(src: Path, dest: Path) -> Path:
    """Copy via a .tmp sibling and rename, like ``write_json``."""
    dest = Path(dest)
    dest.parent.mkdir(parents=True, exist_ok=True)
    tmp = dest.with_name(dest.name + ".tmp")
    shutil.copyfile(src, tmp)
    os.replace(tmp, dest)
    return dest


def date_token(day: Optional[date] = None) -> str:
    """YYYY_MM_DD"""
    return (day or date.today()).strftime("%Y_%m_%d")


def history_path(history_dir: Path, filename: str, token: str) -> Path:
    """
    First free ``<stem>_<token>[_n]<suffix>`` in ``history_dir``. Earlier
    snapshots for the same date are never reused.
    """
    name = Path(filename)
    candidate = Path(history_dir) / f"{name.stem}_{token}{name.suffix}"
    n = 2
    while candidate.exists():
        candidate = Path(history_dir) / f"{name.stem}_{token}_{n}{name.suffix}"
        n += 1
    return candidate


def snapshot(src: Path, history_dir: Path, token: str) -> Path:
    history_dir = Path(history_dir)
    history_dir.mkdir(parents=True, exist_ok=True)
    dest = history_path(history_dir, Path(src).name, token)
    shutil.copyfile(src, dest)
    return dest
