# ffmpeg helper for turning an arbitrary local audio/video file into an MP3.

from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

from .errors import FileSystemFailureError, TranscodeError
from .models import ToolLocation
from .process import run_cmd

logger = logging.getLogger(__name__)


def convert_to_mp3(ffmpeg: Union[ToolLocation, Path, str], input_path: Path, output_path: Path) -> Path:
    ffmpeg_path = str(ffmpeg.path if isinstance(ffmpeg, ToolLocation) else ffmpeg)
    src = Path(input_path)
    dst = Path(output_path)

    if not src.is_file():
        raise FileSystemFailureError(f"Input file does not exist: {src}")
    dst.parent.mkdir(parents=True, exist_ok=True)

    # VBR V0
    result = run_cmd(
        [
            ffmpeg_path,
            "-i",
            str(src),
            "-vn",
            "-acodec",
            "libmp3lame",
            "-q:a",
            "0",
            "-y",
            str(dst),
        ]
    )
    if not result.ok:
        raise TranscodeError(
            f"ffmpeg conversion failed (exit code {result.returncode})",
            returncode=result.returncode,
            stderr=result.stderr,
        )
    logger.info("Converted %s -> %s", src, dst)
    return dst
