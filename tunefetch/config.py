# Runtime configuration: names, pinned tool versions, download sources, timeouts.
# Values are plain module constants; paths that depend on the environment are
# resolved by functions so they are re-read on every call.

from __future__ import annotations

import os
import tempfile
from pathlib import Path

APP_NAME = "tunefetch"

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/130.0.0.0 Safari/537.36"
)

# Environment override for the private tool directory
HOME_ENV = "TUNEFETCH_HOME"

# Pinned tool versions (part of the private install path)
FFMPEG_VERSION = "6.1"
YTDLP_VERSION = "2025.10.22"

# ffmpeg zips keyed by (system, machine)
FFMPEG_ZIP_BASE = (
    "https://github.com/ffbinaries/ffbinaries-prebuilt/releases/download/"
    f"v{FFMPEG_VERSION}/ffmpeg-{FFMPEG_VERSION}"
)
FFMPEG_ZIP_URLS = {
    ("windows", "x86_64"): f"{FFMPEG_ZIP_BASE}-win-64.zip",
    ("linux", "x86_64"): f"{FFMPEG_ZIP_BASE}-linux-64.zip",
    ("linux", "aarch64"): f"{FFMPEG_ZIP_BASE}-linux-arm-64.zip",
    ("darwin", "x86_64"): f"{FFMPEG_ZIP_BASE}-macos-64.zip",
    ("darwin", "arm64"): f"{FFMPEG_ZIP_BASE}-macos-64.zip",
}

# yt-dlp is a single executable from the "latest" release endpoint
YTDLP_RELEASE_BASE = "https://github.com/yt-dlp/yt-dlp/releases/latest/download"
YTDLP_ASSETS = {
    ("windows", "x86_64"): "yt-dlp.exe",
    ("windows", "x86"): "yt-dlp.exe",
    ("windows", "arm64"): "yt-dlp.exe",
    ("darwin", "x86_64"): "yt-dlp_macos",
    ("darwin", "arm64"): "yt-dlp_macos",
    ("linux", "x86_64"): "yt-dlp_linux",
    ("linux", "aarch64"): "yt-dlp_linux_aarch64",
}

# Audio settings handed to yt-dlp and expected by the tagger
AUDIO_FORMAT = "mp3"
AUDIO_QUALITY = "0"
AUDIO_FORMAT_SELECTOR = "bestaudio[ext=m4a]/bestaudio[ext=webm]/bestaudio"
SEARCH_RESULTS = 10

# Timeouts (seconds)
VERIFY_TIMEOUT_S = 30
DOWNLOAD_TIMEOUT_S = 90
SOCKET_TIMEOUT_S = 20

# Tool download retry (HTTP only, handled by the session adapter)
DOWNLOAD_RETRIES = 3
DOWNLOAD_BACKOFF_FACTOR = 0.5
DOWNLOAD_RETRY_STATUSES = (429, 500, 502, 503, 504)
DOWNLOAD_CHUNK_SIZE = 1024 * 256

# Batch execution
DEFAULT_WORKERS = 1
MAX_WORKERS = 8


def data_dir() -> Path:
    override = os.environ.get(HOME_ENV, "").strip()
    if override:
        return Path(override).expanduser()
    return Path(tempfile.gettempdir()) / f"{APP_NAME}_bin"


def tools_dir() -> Path:
    return data_dir() / "tools"


def default_output_dir() -> Path:
    return Path(os.environ.get("USERPROFILE", str(Path.home()))) / "Downloads"
