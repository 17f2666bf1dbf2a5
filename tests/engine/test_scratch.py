from __future__ import annotations

import shutil

import pytest

from org_registry.engine.scratch import ScratchSpace


def _populate(scratch: ScratchSpace) -> None:
    scratch.archive_path.write_bytes(b"zip")
    scratch.extract_dir.mkdir(parents=True, exist_ok=True)
    (scratch.extract_dir / "data.txt").write_text("rows", encoding="utf-8")


def test_scratch_removed_after_success(tmp_path) -> None:
    scratch = ScratchSpace(tmp_path / "s" / "a.zip", tmp_path / "s" / "out")
    with scratch:
        _populate(scratch)
    assert not scratch.archive_path.exists()
    assert not scratch.extract_dir.exists()


def test_scratch_removed_after_failure(tmp_path) -> None:
    scratch = ScratchSpace(tmp_path / "a.zip", tmp_path / "out")
    with pytest.raises(RuntimeError):
        with scratch:
            _populate(scratch)
            raise RuntimeError("stage failed")
    assert not scratch.archive_path.exists()
    assert not scratch.extract_dir.exists()


def test_scratch_clears_leftovers_on_enter(tmp_path) -> None:
    scratch = ScratchSpace(tmp_path / "a.zip", tmp_path / "out")
    _populate(scratch)
    with scratch:
        assert not scratch.archive_path.exists()
        assert not scratch.extract_dir.exists()


def test_cleanup_failure_is_recorded_not_raised(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    scratch = ScratchSpace(tmp_path / "a.zip", tmp_path / "out")
    with scratch:
        _populate(scratch)

        def locked(_path, *args, **kwargs):
            raise PermissionError("resource busy")

        monkeypatch.setattr(shutil, "rmtree", locked)
    assert scratch.cleanup_errors == [str(tmp_path / "out")]
    assert not scratch.archive_path.exists()
