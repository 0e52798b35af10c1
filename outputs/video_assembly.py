"""
Video assembly engine.

Turns an ordered list of captured frames into one H.264 MP4 slideshow:
1) hard cuts (`none` / `slide`) go through the ffmpeg concat demuxer
2) `fade` loops each frame and chains `xfade` filters so the total
   duration stays exactly N x D
3) the playlist and frame files are removed whether encoding succeeds or not
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import logging
from pathlib import Path
import shutil
from typing import List, Optional, Sequence

from config import VideoSettings, get_video_settings
from core import CapturedFrame, VideoTransition
from utils.cleanup import remove_file, remove_files
from utils.exceptions import EncodeStageError


logger = logging.getLogger(__name__)

_STDERR_TAIL_LINES = 20


def _fmt_seconds(value: float) -> str:
    text = f"{float(value):.3f}".rstrip("0").rstrip(".")
    return text or "0"


def _escape_concat_path(path: str) -> str:
    return path.replace("'", "'\\''")


def _stderr_tail(text: str, lines: int = _STDERR_TAIL_LINES) -> str:
    return "\n".join(str(text or "").strip().splitlines()[-lines:])


@dataclass
class PlaylistEntry:
    frame: CapturedFrame
    duration: float


@dataclass
class Playlist:
    """Ordered frame list with per-entry durations."""

    entries: List[PlaylistEntry] = field(default_factory=list)

    @property
    def total_duration(self) -> float:
        return sum(entry.duration for entry in self.entries)

    def render(self) -> str:
        lines = ["ffconcat version 1.0"]
        for entry in self.entries:
            lines.append(f"file '{_escape_concat_path(str(Path(entry.frame.path).resolve()))}'")
            lines.append(f"duration {_fmt_seconds(entry.duration)}")
        if self.entries:
            # The demuxer ignores the duration of the final entry unless it is repeated.
            last = self.entries[-1]
            lines.append(f"file '{_escape_concat_path(str(Path(last.frame.path).resolve()))}'")
        return "\n".join(lines) + "\n"

    def write(self, path: Path) -> Path:
        path.write_text(self.render(), encoding="utf-8")
        return path


def build_concat_playlist(frames: Sequence[CapturedFrame], per_slide_duration: float) -> Playlist:
    return Playlist(entries=[PlaylistEntry(frame=frame, duration=float(per_slide_duration)) for frame in frames])


def fade_window(per_slide_duration: float, fade_duration: float) -> float:
    """Cross-fade length, clamped so a slide is never more than half transition."""
    return max(0.0, min(float(fade_duration), float(per_slide_duration) / 2.0))


def _encoder_args(settings: VideoSettings, total_duration: float, output_path: Path) -> List[str]:
    return [
        "-t",
        _fmt_seconds(total_duration),
        "-c:v",
        settings.codec,
        "-preset",
        settings.preset,
        "-crf",
        str(settings.crf),
        "-pix_fmt",
        settings.pix_fmt,
        "-r",
        str(settings.fps),
        "-an",
        "-movflags",
        "+faststart",
        str(output_path),
    ]


def build_concat_command(
    ffmpeg_bin: str,
    playlist: Playlist,
    playlist_path: Path,
    output_path: Path,
    settings: VideoSettings,
) -> List[str]:
    return [
        ffmpeg_bin,
        "-y",
        "-f",
        "concat",
        "-safe",
        "0",
        "-i",
        str(playlist_path),
        "-vf",
        f"fps={settings.fps},format={settings.pix_fmt}",
        *_encoder_args(settings, playlist.total_duration, output_path),
    ]


def build_fade_filter(count: int, per_slide_duration: float, window: float, settings: VideoSettings) -> str:
    chains = [f"[{i}:v]fps={settings.fps},format={settings.pix_fmt},setsar=1[v{i}]" for i in range(count)]
    previous = "v0"
    for k in range(1, count):
        label = f"x{k}"
        offset = k * float(per_slide_duration) - window
        chains.append(
            f"[{previous}][v{k}]xfade=transition=fade:duration={_fmt_seconds(window)}"
            f":offset={_fmt_seconds(offset)}[{label}]"
        )
        previous = label
    return ";".join(chains) + f";[{previous}]null[out]"


def build_fade_command(
    ffmpeg_bin: str,
    frames: Sequence[CapturedFrame],
    per_slide_duration: float,
    output_path: Path,
    settings: VideoSettings,
) -> List[str]:
    duration = float(per_slide_duration)
    window = fade_window(duration, settings.fade_duration_s)
    cmd: List[str] = [ffmpeg_bin, "-y"]
    for position, frame in enumerate(frames):
        # Later frames start `window` early so the overlap does not shorten the video.
        length = duration if position == 0 else duration + window
        cmd.extend(
            [
                "-loop",
                "1",
                "-framerate",
                str(settings.fps),
                "-t",
                _fmt_seconds(length),
                "-i",
                str(frame.path),
            ]
        )
    cmd.extend(
        [
            "-filter_complex",
            build_fade_filter(len(frames), duration, window, settings),
            "-map",
            "[out]",
        ]
    )
    cmd.extend(_encoder_args(settings, duration * len(frames), output_path))
    return cmd


@dataclass
class VideoAssemblyResult:
    path: Path
    duration: float
    frame_count: int


class VideoAssembler:
    """Encodes captured frames with ffmpeg as an async subprocess."""

    def __init__(self, *, settings: Optional[VideoSettings] = None) -> None:
        self.settings = settings or get_video_settings()

    def _binary(self, configured: Optional[str], name: str) -> str:
        resolved = configured or shutil.which(name)
        if not resolved:
            raise EncodeStageError(f"{name} is required for video export. Please install {name} first.")
        return resolved

    def ffmpeg_bin(self) -> str:
        return self._binary(self.settings.ffmpeg_path, "ffmpeg")

    def ffprobe_bin(self) -> str:
        return self._binary(self.settings.ffprobe_path, "ffprobe")

    async def assemble(
        self,
        frames: Sequence[CapturedFrame],
        *,
        per_slide_duration: float,
        transition: VideoTransition,
        output_path: Path,
    ) -> VideoAssemblyResult:
        ordered = list(frames)
        playlist_path: Optional[Path] = None
        try:
            if not ordered:
                raise EncodeStageError("no frames to encode")
            duration = float(per_slide_duration)
            if duration <= 0:
                raise EncodeStageError(f"per-slide duration must be positive, got {per_slide_duration}")

            ffmpeg_bin = self.ffmpeg_bin()
            output_path.parent.mkdir(parents=True, exist_ok=True)
            transition = VideoTransition(transition)

            if transition is VideoTransition.FADE and len(ordered) > 1:
                cmd = build_fade_command(ffmpeg_bin, ordered, duration, output_path, self.settings)
            else:
                # `slide` has no dedicated motion and renders as a hard cut.
                playlist = build_concat_playlist(ordered, duration)
                playlist_path = playlist.write(Path(ordered[0].path).parent / f"playlist-{ordered[0].batch_id}.txt")
                cmd = build_concat_command(ffmpeg_bin, playlist, playlist_path, output_path, self.settings)

            logger.info(
                "Encoding %s frames (%ss each, transition=%s) -> %s",
                len(ordered),
                _fmt_seconds(duration),
                transition.value,
                output_path.name,
            )
            await self._run_encoder(cmd, context="ffmpeg encode")
            if not output_path.exists():
                raise EncodeStageError(f"encoder produced no output at {output_path}")
            return VideoAssemblyResult(path=output_path, duration=duration * len(ordered), frame_count=len(ordered))
        finally:
            if playlist_path is not None:
                remove_file(playlist_path)
            remove_files(frame.path for frame in ordered)

    async def _run_encoder(self, cmd: List[str], *, context: str) -> str:
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise EncodeStageError(f"{context} could not start: {exc}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.settings.encode_timeout_s)
        except asyncio.TimeoutError as exc:
            await self._kill(process)
            raise EncodeStageError(f"{context} timed out after {self.settings.encode_timeout_s}s") from exc
        except asyncio.CancelledError:
            await self._kill(process)
            raise

        stderr_text = (stderr or b"").decode("utf-8", errors="replace")
        if process.returncode != 0:
            tail = _stderr_tail(stderr_text)
            raise EncodeStageError(
                f"{context} failed (exit {process.returncode}): {tail or 'unknown error'}",
                stderr_tail=tail,
                returncode=process.returncode,
            )
        return (stdout or b"").decode("utf-8", errors="replace")

    @staticmethod
    async def _kill(process: asyncio.subprocess.Process) -> None:
        if process.returncode is not None:
            return
        try:
            process.kill()
        except ProcessLookupError:
            return
        await process.wait()

    async def probe_duration(self, path: Path) -> float:
        cmd = [
            self.ffprobe_bin(),
            "-v",
            "error",
            "-show_entries",
            "format=duration",
            "-of",
            "default=noprint_wrappers=1:nokey=1",
            str(path),
        ]
        output = await self._run_encoder(cmd, context="ffprobe")
        try:
            return float(output.strip().splitlines()[0])
        except (IndexError, ValueError) as exc:
            raise EncodeStageError(f"ffprobe returned no duration for {path}") from exc
