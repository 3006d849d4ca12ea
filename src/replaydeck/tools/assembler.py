"""ffmpeg-based video assembler for exports."""

from __future__ import annotations

import asyncio
import json
import logging
import shlex
import subprocess
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

from replaydeck.errors import ExternalToolError
from replaydeck.interfaces import VideoAssembler
from replaydeck.models.export import ExportClip
from replaydeck.models.transitions import TransitionDescriptor

logger = logging.getLogger(__name__)

_STDERR_TAIL_CHARS = 600


def _format_cmd(cmd: list[str]) -> str:
    return shlex.join([str(x) for x in cmd])


def _escape_filter_value(value: str) -> str:
    """Escape a path for use inside a quoted filtergraph option value."""
    return value.replace("\\", "\\\\").replace(":", "\\:").replace("'", "\\'")


def seconds_since_midnight(ts: datetime) -> int:
    return ts.hour * 3600 + ts.minute * 60 + ts.second


async def _created_at(media_path: Path) -> datetime:
    """Creation time of a replay; now if the file cannot be stat'ed."""
    try:
        stat_info = await asyncio.to_thread(media_path.stat)
    except OSError as exc:
        logger.warning("Cannot read creation time of %s, using now: %s", media_path.name, exc)
        return datetime.now()
    return datetime.fromtimestamp(stat_info.st_ctime)


def build_audio_fade_filter(duration_s: float, fade_s: float) -> str:
    """Fade audio in at the start and out at the end of a clip."""
    fade = min(fade_s, duration_s / 2)
    fade_out_start = max(0.0, duration_s - fade)
    return f"afade=t=in:st=0:d={fade:.3f},afade=t=out:st={fade_out_start:.3f}:d={fade:.3f}"


def build_overlay_filter(
    time_offset_s: int,
    *,
    with_image: bool,
    font_file: Path | None = None,
    font_size: int = 50,
    font_color: str = "red",
) -> str:
    """Burn a running wall-clock timestamp (and optional logo) into the video.

    The timestamp starts at `time_offset_s` seconds after midnight and runs
    with the clip's presentation time.
    """
    text = r"%{pts\:gmtime\:" + str(time_offset_s) + r"\:%H\\\:%M\\\:%S}"
    options = []
    if font_file is not None:
        options.append(f"fontfile='{_escape_filter_value(str(font_file))}'")
    options.extend(
        [
            f"fontsize={font_size}",
            f"fontcolor={font_color}",
            "x=((w-text_w)-40)",
            "y=((h-text_h)-50)",
            f"text='{text}'",
        ]
    )
    drawtext = "drawtext=" + ":".join(options)
    if with_image:
        return f"[0:v][1:v]overlay=W-w:H-h[base];[base]{drawtext}[v]"
    return f"[0:v]{drawtext}[v]"


def build_transition_filter(
    durations_s: Sequence[float],
    transition: TransitionDescriptor,
) -> tuple[str, str, str]:
    """Chain `xfade`/`acrossfade` over all inputs.

    Returns:
        (filtergraph, video output label, audio output label)
    """
    if len(durations_s) < 2:
        raise ValueError("Transition filter requires at least two clips")

    t = transition.duration_s
    extra = ""
    if transition.params:
        extra = "".join(f":{key}={value}" for key, value in transition.params.items())

    parts: list[str] = []
    video_label = "0:v"
    audio_label = "0:a"
    chain_length = durations_s[0]
    for index in range(1, len(durations_s)):
        offset = max(0.0, chain_length - t)
        out_v = f"v{index}"
        out_a = f"a{index}"
        parts.append(
            f"[{video_label}][{index}:v]xfade=transition={transition.effect}"
            f":duration={t:.3f}:offset={offset:.3f}{extra}[{out_v}]"
        )
        parts.append(f"[{audio_label}][{index}:a]acrossfade=d={t:.3f}[{out_a}]")
        video_label = out_v
        audio_label = out_a
        chain_length = chain_length + durations_s[index] - t
    return ";".join(parts), f"[{video_label}]", f"[{audio_label}]"


class FfmpegAssembler(VideoAssembler):
    """Three-stage export: audio fade, timestamp overlay, transition concat."""

    def __init__(
        self,
        *,
        ffmpeg_bin: str = "ffmpeg",
        ffprobe_bin: str = "ffprobe",
        audio_fade_s: float = 0.2,
        overlay_image: Path | None = None,
        overlay_font: Path | None = None,
    ) -> None:
        self.ffmpeg_bin = ffmpeg_bin
        self.ffprobe_bin = ffprobe_bin
        self.audio_fade_s = audio_fade_s
        self.overlay_image = overlay_image
        self.overlay_font = overlay_font

    async def assemble(
        self,
        clips: Sequence[ExportClip],
        transition: TransitionDescriptor,
        output_path: Path,
    ) -> None:
        if not clips:
            raise ExternalToolError("assembler", "no clips to assemble")

        logger.info("Export: audio-fading %d replay clips", len(clips))
        durations: list[float] = []
        for clip in clips:
            duration = await self.probe_duration(clip.cut)
            durations.append(duration)
            await self._run(
                [
                    self.ffmpeg_bin, "-y", "-i", str(clip.cut),
                    "-c:v", "copy",
                    "-af", build_audio_fade_filter(duration, self.audio_fade_s),
                    str(clip.audio_faded),
                ],
                stage="audio-fade",
            )

        logger.info("Export: overlaying timestamps on %d replay clips", len(clips))
        for clip in clips:
            created = await _created_at(clip.original)
            await self._run(self._overlay_command(clip, created), stage="overlay")

        logger.info(
            "Export: concatenating %d replay clips with transition %s into %s",
            len(clips),
            transition.id,
            output_path,
        )
        await self._run(self._concat_command(clips, durations, transition, output_path), stage="concat")

    async def probe_duration(self, media_path: Path) -> float:
        """Return the container duration in seconds."""
        cmd = [
            self.ffprobe_bin, "-v", "error",
            "-show_entries", "format=duration",
            "-of", "json",
            str(media_path),
        ]
        result = await self._run(cmd, stage="probe")
        try:
            payload = json.loads(result.stdout)
            return float(payload["format"]["duration"])
        except (ValueError, KeyError, TypeError) as exc:
            raise ExternalToolError(
                "assembler", f"probe: invalid ffprobe response for {media_path.name}", exc
            ) from exc

    def _overlay_command(self, clip: ExportClip, created: datetime) -> list[str]:
        with_image = self.overlay_image is not None
        cmd = [self.ffmpeg_bin, "-y", "-i", str(clip.audio_faded)]
        if self.overlay_image is not None:
            cmd.extend(["-i", str(self.overlay_image)])
        cmd.extend(
            [
                "-filter_complex",
                build_overlay_filter(
                    seconds_since_midnight(created),
                    with_image=with_image,
                    font_file=self.overlay_font,
                ),
                "-map", "[v]",
                "-map", "0:a",
                "-c:a", "copy",
                str(clip.overlayed),
            ]
        )
        return cmd

    def _concat_command(
        self,
        clips: Sequence[ExportClip],
        durations: Sequence[float],
        transition: TransitionDescriptor,
        output_path: Path,
    ) -> list[str]:
        cmd = [self.ffmpeg_bin, "-y"]
        for clip in clips:
            cmd.extend(["-i", str(clip.overlayed)])
        if len(clips) == 1:
            cmd.extend(["-c", "copy", str(output_path)])
            return cmd
        graph, video_out, audio_out = build_transition_filter(durations, transition)
        cmd.extend(
            [
                "-filter_complex", graph,
                "-map", video_out,
                "-map", audio_out,
                "-c:v", "libx264",
                "-c:a", "aac",
                str(output_path),
            ]
        )
        return cmd

    async def _run(self, cmd: list[str], *, stage: str) -> subprocess.CompletedProcess[str]:
        logger.debug("Running %s: %s", stage, _format_cmd(cmd))
        try:
            result = await asyncio.to_thread(
                subprocess.run,
                cmd,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as exc:
            raise ExternalToolError("assembler", f"{stage}: failed to run {cmd[0]}: {exc}", exc) from exc

        if result.returncode != 0:
            tail = (result.stderr or "")[-_STDERR_TAIL_CHARS:]
            raise ExternalToolError(
                "assembler", f"{stage}: {cmd[0]} exited with code {result.returncode}: {tail}"
            )
        return result
