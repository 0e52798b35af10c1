from __future__ import annotations

import asyncio
from pathlib import Path
import shutil
import stat
import subprocess
from typing import List

import pytest

from config import VideoSettings
from core import CapturedFrame, VideoTransition
from outputs import (
    VideoAssembler,
    build_concat_playlist,
    build_fade_command,
    build_fade_filter,
    fade_window,
)
from utils.exceptions import EncodeStageError


def _frames(tmp_path: Path, count: int, batch_id: str = "b1") -> List[CapturedFrame]:
    frames = []
    for index in range(count):
        path = tmp_path / f"slide-{batch_id}-{index:03d}.png"
        path.write_bytes(b"png")
        frames.append(CapturedFrame(index=index, slide_id=f"s{index}", path=path, batch_id=batch_id))
    return frames


def _script(tmp_path: Path, body: str) -> Path:
    path = tmp_path / "fake-ffmpeg.sh"
    path.write_text("#!/bin/sh\n" + body, encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IEXEC)
    return path


def _ok_ffmpeg(tmp_path: Path) -> Path:
    return _script(tmp_path, 'for last; do :; done\necho "frame=1" >&2\n: > "$last"\nexit 0\n')


def _failing_ffmpeg(tmp_path: Path) -> Path:
    return _script(tmp_path, 'echo "concat: Invalid data found when processing input" >&2\nexit 1\n')


def test_playlist_repeats_last_entry(tmp_path: Path) -> None:
    frames = _frames(tmp_path, 3)
    playlist = build_concat_playlist(frames, 4)
    text = playlist.render()
    lines = text.strip().splitlines()

    assert lines[0] == "ffconcat version 1.0"
    assert [line for line in lines if line.startswith("duration")] == ["duration 4"] * 3
    file_lines = [line for line in lines if line.startswith("file")]
    assert len(file_lines) == 4
    assert file_lines[-1] == file_lines[-2]
    assert str(frames[0].path.resolve()) in file_lines[0]
    assert playlist.total_duration == 12


def test_fade_window_is_clamped_to_half_slide() -> None:
    assert fade_window(4, 0.5) == 0.5
    assert fade_window(0.6, 0.5) == pytest.approx(0.3)


def test_fade_command_keeps_total_duration(tmp_path: Path) -> None:
    settings = VideoSettings()
    frames = _frames(tmp_path, 3)
    cmd = build_fade_command("ffmpeg", frames, 4, tmp_path / "out.mp4", settings)

    input_lengths = [cmd[i + 1] for i, token in enumerate(cmd) if token == "-t"]
    # three looped inputs, then the output cap
    assert input_lengths == ["4", "4.5", "4.5", "12"]
    graph = cmd[cmd.index("-filter_complex") + 1]
    assert "xfade=transition=fade:duration=0.5:offset=3.5" in graph
    assert "xfade=transition=fade:duration=0.5:offset=7.5" in graph
    assert cmd[cmd.index("-map") + 1] == "[out]"
    for flag, value in (("-c:v", "libx264"), ("-pix_fmt", "yuv420p"), ("-crf", "23"), ("-preset", "medium"), ("-movflags", "+faststart")):
        assert cmd[cmd.index(flag) + 1] == value


def test_fade_filter_for_single_frame_has_no_xfade() -> None:
    graph = build_fade_filter(1, 3, 0.5, VideoSettings())
    assert "xfade" not in graph
    assert graph.endswith("[v0]null[out]")


@pytest.mark.parametrize("transition", list(VideoTransition))
def test_assemble_reports_duration_and_cleans_up(tmp_path: Path, transition: VideoTransition) -> None:
    work = tmp_path / "work"
    work.mkdir()
    frames = _frames(work, 2)
    assembler = VideoAssembler(settings=VideoSettings(ffmpeg_path=str(_ok_ffmpeg(tmp_path))))
    output = tmp_path / "out" / "video-b1.mp4"

    result = asyncio.run(
        assembler.assemble(frames, per_slide_duration=4, transition=transition, output_path=output)
    )

    assert result.duration == 8
    assert result.frame_count == 2
    assert result.path == output
    assert output.exists()
    assert list(work.iterdir()) == []


def test_encoder_failure_carries_stderr_tail_and_cleans_up(tmp_path: Path) -> None:
    work = tmp_path / "work"
    work.mkdir()
    frames = _frames(work, 2)
    assembler = VideoAssembler(settings=VideoSettings(ffmpeg_path=str(_failing_ffmpeg(tmp_path))))

    with pytest.raises(EncodeStageError) as exc_info:
        asyncio.run(
            assembler.assemble(
                frames,
                per_slide_duration=3,
                transition=VideoTransition.NONE,
                output_path=tmp_path / "video.mp4",
            )
        )

    assert exc_info.value.stage == "encode"
    assert "Invalid data found" in exc_info.value.stderr_tail
    assert list(work.iterdir()) == []


def test_missing_ffmpeg_raises_encode_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("outputs.video_assembly.shutil.which", lambda name: None)
    frames = _frames(tmp_path, 1)
    assembler = VideoAssembler(settings=VideoSettings(ffmpeg_path=None))

    with pytest.raises(EncodeStageError):
        asyncio.run(
            assembler.assemble(
                frames,
                per_slide_duration=3,
                transition=VideoTransition.FADE,
                output_path=tmp_path / "video.mp4",
            )
        )
    assert not frames[0].path.exists()


def test_empty_frame_list_is_rejected(tmp_path: Path) -> None:
    assembler = VideoAssembler(settings=VideoSettings(ffmpeg_path=str(_ok_ffmpeg(tmp_path))))
    with pytest.raises(EncodeStageError):
        asyncio.run(
            assembler.assemble([], per_slide_duration=3, transition=VideoTransition.FADE, output_path=tmp_path / "v.mp4")
        )


@pytest.mark.skipif(
    shutil.which("ffmpeg") is None or shutil.which("ffprobe") is None,
    reason="ffmpeg/ffprobe not installed",
)
@pytest.mark.parametrize("transition", [VideoTransition.FADE, VideoTransition.NONE])
def test_real_encode_duration_matches_slide_count(tmp_path: Path, transition: VideoTransition) -> None:
    frames = []
    for index, color in enumerate(("red", "blue")):
        path = tmp_path / f"slide-real-{index:03d}.png"
        subprocess.run(
            ["ffmpeg", "-y", "-v", "error", "-f", "lavfi", "-i", f"color=c={color}:s=108x136", "-frames:v", "1", str(path)],
            check=True,
        )
        frames.append(CapturedFrame(index=index, slide_id=f"s{index}", path=path, batch_id="real"))

    assembler = VideoAssembler(settings=VideoSettings())
    output = tmp_path / "video-real.mp4"

    async def _run():
        result = await assembler.assemble(frames, per_slide_duration=1, transition=transition, output_path=output)
        return result, await assembler.probe_duration(result.path)

    result, probed = asyncio.run(_run())
    assert result.duration == 2
    assert probed == pytest.approx(2.0, abs=0.15)
