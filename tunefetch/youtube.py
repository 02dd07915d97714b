# YouTube access through the yt-dlp executable: search, audio download, URL parsing.

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from . import config
from .errors import (
    InputValidationError,
    OutputDirectoryError,
    PathRecoveryError,
    SearchError,
    SearchParseError,
    VideoDownloadError,
)
from .models import ToolLocation, VideoInfo
from .process import run_cmd
from .ytdlp_output import CompletionParser, default_parser

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, str], None]
ToolArg = Union[ToolLocation, Path, str]

VIDEO_ID_RE = re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/shorts/)([A-Za-z0-9_-]{11})")

WATCH_URL = "https://www.youtube.com/watch?v={}"


def extract_video_id(text: str) -> Optional[str]:
    m = VIDEO_ID_RE.search(text or "")
    return m.group(1) if m else None


def is_youtube_url(text: str) -> bool:
    return extract_video_id(text) is not None


def watch_url(video_id: str) -> str:
    return WATCH_URL.format(video_id)


def _tool_path(tool: ToolArg) -> str:
    if isinstance(tool, ToolLocation):
        return str(tool.path)
    return str(tool)


def _str_or_none(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _seconds(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        return None
    return int(value)


def video_info_from_json(data: Dict[str, Any]) -> VideoInfo:
    video_id = _str_or_none(data.get("id"))
    if not video_id:
        raise SearchParseError("No video ID in search response")

    thumbnail = _str_or_none(data.get("thumbnail"))
    if not thumbnail:
        thumbs = data.get("thumbnails")
        if isinstance(thumbs, list) and thumbs and isinstance(thumbs[0], dict):
            thumbnail = _str_or_none(thumbs[0].get("url"))

    uploader = (
        _str_or_none(data.get("uploader"))
        or _str_or_none(data.get("uploader_name"))
        or _str_or_none(data.get("channel"))
    )

    duration = _seconds(data.get("duration"))
    if duration is None:
        duration = _seconds(data.get("duration_seconds"))

    return VideoInfo(
        id=video_id,
        title=data.get("title") if isinstance(data.get("title"), str) else "",
        url=watch_url(video_id),
        thumbnail_url=thumbnail,
        uploader=uploader,
        duration_seconds=duration,
        upload_date=_str_or_none(data.get("upload_date")),
    )


def search_video(tool: ToolArg, query: str) -> Optional[VideoInfo]:
    """First hit of a yt-dlp search for `query`, or None when there are no results."""
    query = (query or "").strip()
    if not query:
        raise InputValidationError("Search query is empty")

    result = run_cmd(
        [
            _tool_path(tool),
            "--dump-json",
            "--no-download",
            "--quiet",
            "--no-warnings",
            f"ytsearch{config.SEARCH_RESULTS}:{query}",
        ]
    )
    if not result.ok:
        raise SearchError(
            f"yt-dlp search failed (exit code {result.returncode}) for {query!r}",
            returncode=result.returncode,
            stderr=result.stderr,
        )

    lines = [line for line in result.stdout.splitlines() if line.strip()]
    if not lines:
        logger.info("No search results for %r", query)
        return None

    try:
        data = json.loads(lines[0])
    except json.JSONDecodeError as e:
        raise SearchParseError(f"Search response is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise SearchParseError("Search response is not a JSON object")

    info = video_info_from_json(data)
    logger.debug("Search %r -> %s (%s)", query, info.id, info.title)
    return info


def build_download_args(
    tool: ToolArg,
    video_id: str,
    output_dir: Path,
    ffmpeg_location: Optional[ToolArg] = None,
) -> List[str]:
    # Title and id in the name: no collisions, and the id can be recovered later.
    # Absolute, since yt-dlp runs with cwd=output_dir.
    tmpl = str(Path(output_dir).resolve() / "%(title)s [%(id)s].%(ext)s")
    args = [
        _tool_path(tool),
        "--format",
        config.AUDIO_FORMAT_SELECTOR,
        "--output",
        tmpl,
        "--extract-audio",
        "--audio-format",
        config.AUDIO_FORMAT,
        "--audio-quality",
        config.AUDIO_QUALITY,
        "--no-playlist",
        "--no-warnings",
        "--newline",
        "--socket-timeout",
        str(config.SOCKET_TIMEOUT_S),
    ]
    if ffmpeg_location is not None:
        args += ["--ffmpeg-location", _tool_path(ffmpeg_location)]
    args.append(watch_url(video_id))
    return args


def download_audio(
    tool: ToolArg,
    video_id: str,
    output_dir: Path,
    ffmpeg_location: Optional[ToolArg] = None,
    on_progress: Optional[ProgressCallback] = None,
    parser: Optional[CompletionParser] = None,
) -> Path:
    """Download `video_id` as audio into `output_dir` and return the final file path.

    Progress is coarse: 0 before the process starts, 90 after it exits and 100
    once the output file is known.
    """
    report = on_progress or (lambda pct, text: None)
    parser = parser or default_parser
    output_dir = Path(output_dir).resolve()
    if not output_dir.is_dir():
        raise OutputDirectoryError(f"Output directory does not exist: {output_dir}")

    report(0, "starting")
    result = run_cmd(build_download_args(tool, video_id, output_dir, ffmpeg_location), cwd=output_dir)
    report(90, "processing")

    if not result.ok:
        raise VideoDownloadError(
            f"yt-dlp download failed (exit code {result.returncode}) for {video_id}",
            returncode=result.returncode,
            stderr=result.stderr,
        )

    filename = parser.extract(result.stdout)
    if not filename:
        raise PathRecoveryError(
            f"yt-dlp finished but the output file for {video_id} could not be determined"
        )

    path = Path(filename)
    if not path.is_absolute():
        path = output_dir / path
    report(100, "complete")
    logger.info("Downloaded %s -> %s", video_id, path)
    return path
