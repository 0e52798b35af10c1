from __future__ import annotations

from pathlib import Path

import pytest

from config import ExportSettings
from storage import ExportStore
from utils.cleanup import remove_files, remove_tree
from utils.exceptions import CleanupWarning


def _store(tmp_path: Path) -> ExportStore:
    return ExportStore(
        ExportSettings(
            base_url="http://cards.test/",
            exports_dir=tmp_path / "public" / "exports",
            scratch_dir=tmp_path / "public" / "exports" / "temp",
        )
    )


def test_publish_copies_into_exports_and_returns_public_url(tmp_path: Path) -> None:
    store = _store(tmp_path)
    source = tmp_path / "frame.png"
    source.write_bytes(b"png")

    url = store.publish(source, "card-1-0.png")

    assert url == "http://cards.test/exports/card-1-0.png"
    assert (tmp_path / "public" / "exports" / "card-1-0.png").read_bytes() == b"png"
    assert not list((tmp_path / "public" / "exports").glob(".*partial"))


def test_ensure_dirs_creates_exports_and_scratch(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.ensure_dirs()
    assert (tmp_path / "public" / "exports" / "temp").is_dir()


@pytest.mark.parametrize("name", ["../escape.png", "nested/card.png", ""])
def test_artifact_names_cannot_leave_exports_dir(tmp_path: Path, name: str) -> None:
    with pytest.raises(ValueError):
        _store(tmp_path).path_for(name)


def test_unpublish_is_idempotent(tmp_path: Path) -> None:
    store = _store(tmp_path)
    source = tmp_path / "frame.png"
    source.write_bytes(b"png")
    store.publish(source, "card-2-0.png")

    store.unpublish("card-2-0.png")
    store.unpublish("card-2-0.png")
    assert not store.path_for("card-2-0.png").exists()


def test_cleanup_failures_warn_instead_of_raising(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    (scratch / "slide.png").write_bytes(b"png")

    def _refuse(path):
        raise PermissionError("busy")

    monkeypatch.setattr("utils.cleanup.shutil.rmtree", _refuse)
    with pytest.warns(CleanupWarning):
        assert remove_tree(scratch) is False


def test_remove_files_tolerates_missing_paths(tmp_path: Path) -> None:
    present = tmp_path / "a.png"
    present.write_bytes(b"png")
    assert remove_files([present, tmp_path / "missing.png"]) == []
    assert not present.exists()
    assert remove_tree(tmp_path / "never-created") is True
