from __future__ import annotations

import json
from pathlib import Path

import pytest

import main as cli
from config import ExportSettings, VideoSettings
from orchestrator import ExportOrchestrator
from storage import ExportStore

from tests.fakes import FakeAssembler, FakeDriver


def _fake_orchestrator(tmp_path: Path) -> ExportOrchestrator:
    settings = ExportSettings(
        base_url="http://cli.test",
        exports_dir=tmp_path / "exports",
        scratch_dir=tmp_path / "exports" / "temp",
    )
    return ExportOrchestrator(
        settings=settings,
        video_settings=VideoSettings(),
        capture_driver=FakeDriver(),
        assembler=FakeAssembler(),
        store=ExportStore(settings),
    )


def _write_project(tmp_path: Path, **overrides) -> Path:
    data = {"canvasSize": "1:1", "slides": [{"id": "a", "headline": "A"}, {"id": "b", "headline": "B"}]}
    data.update(overrides)
    path = tmp_path / "project.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_cli_export_prints_result(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    orchestrator = _fake_orchestrator(tmp_path)
    monkeypatch.setattr(cli, "get_default_orchestrator", lambda: orchestrator)

    code = cli.main(["export", "--project", str(_write_project(tmp_path)), "--format", "video"])

    assert code == 0
    body = json.loads(capsys.readouterr().out)
    assert body["success"] is True
    assert body["duration"] == 6
    assert body["videoUrl"].startswith("http://cli.test/exports/video-")


def test_cli_export_reports_validation_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    orchestrator = _fake_orchestrator(tmp_path)
    monkeypatch.setattr(cli, "get_default_orchestrator", lambda: orchestrator)

    code = cli.main(["export", "--project", str(_write_project(tmp_path, slides=[]))])

    assert code == 1
    assert json.loads(capsys.readouterr().err.strip().splitlines()[-1])["success"] is False


def test_cli_generate_image(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    class _Client:
        async def generate_image(self, prompt, *, aspect_ratio=None):
            return f"https://cdn.example/{prompt}.png"

    monkeypatch.setattr(cli, "KieImageJobClient", _Client)

    assert cli.main(["generate-image", "--prompt", "sky"]) == 0
    assert capsys.readouterr().out.strip() == "https://cdn.example/sky.png"


def test_cli_generate_image_blank_prompt_reports_error(capsys) -> None:
    assert cli.main(["generate-image", "--prompt", ""]) == 1
    body = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
    assert body == {"success": False, "error": "prompt is required"}
