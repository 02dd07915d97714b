# Tool provisioning for ffmpeg and yt-dlp.
#
# locate() is a pure query against PATH and the private install directory and
# is re-run on every call. install() is the only mutation: it downloads a
# private copy under <data dir>/tools/<name>/<version>/ when nothing usable is
# found, and is idempotent and single-flight per tool within the process.

from __future__ import annotations

import logging
import os
import platform
import shutil
import stat
import sys
import threading
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from . import config
from .errors import (
    ExtractionError,
    ToolDownloadError,
    ToolInstallError,
    ToolNotFoundError,
    TunefetchError,
    UnsupportedPlatformError,
    VerificationError,
)
from .events import EventChannel, ToolStatus, ToolStatusEvent, post
from .models import ToolLocation
from .process import run_cmd

logger = logging.getLogger(__name__)

FFMPEG = "ffmpeg"
YTDLP = "yt-dlp"

_MACHINE_ALIASES = {
    "amd64": "x86_64",
    "x64": "x86_64",
    "i386": "x86",
    "i686": "x86",
    "arm64": "arm64",
    "aarch64": "aarch64",
}


def is_windows() -> bool:
    return sys.platform == "win32"


def current_platform() -> Tuple[str, str]:
    """(system, machine) with names normalized to the keys used in config."""
    system = platform.system().lower()
    machine = platform.machine().lower()
    machine = _MACHINE_ALIASES.get(machine, machine)
    if system == "darwin" and machine == "aarch64":
        machine = "arm64"
    if system == "linux" and machine == "arm64":
        machine = "aarch64"
    return system, machine


def _ffmpeg_url(system: str, machine: str) -> Optional[str]:
    return config.FFMPEG_ZIP_URLS.get((system, machine))


def _ytdlp_url(system: str, machine: str) -> Optional[str]:
    asset = config.YTDLP_ASSETS.get((system, machine))
    if not asset:
        return None
    return f"{config.YTDLP_RELEASE_BASE}/{asset}"


@dataclass(frozen=True)
class ToolSpec:
    name: str
    version: str
    version_flag: str
    is_archive: bool
    url_for: Callable[[str, str], Optional[str]]
    windows_names: Tuple[str, ...]
    posix_names: Tuple[str, ...]

    def candidate_names(self) -> Tuple[str, ...]:
        return self.windows_names if is_windows() else self.posix_names

    def filename(self) -> str:
        return self.candidate_names()[0]

    def download_url(self) -> Optional[str]:
        return self.url_for(*current_platform())


FFMPEG_SPEC = ToolSpec(
    name=FFMPEG,
    version=config.FFMPEG_VERSION,
    version_flag="-version",
    is_archive=True,
    url_for=_ffmpeg_url,
    windows_names=("ffmpeg.exe", "ffmpeg.bat", "ffmpeg.cmd"),
    posix_names=("ffmpeg",),
)

YTDLP_SPEC = ToolSpec(
    name=YTDLP,
    version=config.YTDLP_VERSION,
    version_flag="--version",
    is_archive=False,
    url_for=_ytdlp_url,
    windows_names=("yt-dlp.exe",),
    posix_names=("yt-dlp",),
)

# One install at a time per tool
_INSTALL_LOCKS: Dict[str, threading.Lock] = {FFMPEG: threading.Lock(), YTDLP: threading.Lock()}
_INSTALL_LOCKS_GUARD = threading.Lock()


def _install_lock(name: str) -> threading.Lock:
    with _INSTALL_LOCKS_GUARD:
        return _INSTALL_LOCKS.setdefault(name, threading.Lock())


def is_executable(path: Path) -> bool:
    if not path.is_file():
        return False
    if is_windows():
        return True
    try:
        return bool(path.stat().st_mode & (stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH))
    except OSError:
        return False


def is_runnable(path: Path, version_flag: str) -> bool:
    try:
        result = run_cmd([str(path), version_flag], timeout=config.VERIFY_TIMEOUT_S)
    except TunefetchError as e:
        logger.debug("%s is not runnable: %s", path, e)
        return False
    return result.ok


def find_in_path(names, path_var: Optional[str] = None):
    """Yield every file named in `names` found in the PATH directories, in order."""
    path_var = os.environ.get("PATH", "") if path_var is None else path_var
    for d in path_var.split(os.pathsep):
        if not d:
            continue
        for name in names:
            candidate = Path(d) / name
            if candidate.is_file():
                yield candidate


class Provisioner:
    def __init__(
        self,
        spec: ToolSpec,
        channel: Optional[EventChannel] = None,
        session: Optional[requests.Session] = None,
    ):
        self.spec = spec
        self.channel = channel
        self.s = session or requests.Session()
        self.s.headers.update({"User-Agent": config.USER_AGENT})
        retry = Retry(
            total=config.DOWNLOAD_RETRIES,
            backoff_factor=config.DOWNLOAD_BACKOFF_FACTOR,
            status_forcelist=config.DOWNLOAD_RETRY_STATUSES,
            allowed_methods=frozenset({"GET"}),
            respect_retry_after_header=True,
        )
        adapter = HTTPAdapter(max_retries=retry)
        self.s.mount("https://", adapter)
        self.s.mount("http://", adapter)

    def private_path(self) -> Path:
        return config.tools_dir() / self.spec.name / self.spec.version / self.spec.filename()

    def _usable(self, path: Path) -> bool:
        return is_executable(path) and is_runnable(path, self.spec.version_flag)

    def locate(self) -> Optional[ToolLocation]:
        for candidate in find_in_path(self.spec.candidate_names()):
            if self._usable(candidate):
                logger.debug("Using system %s at %s", self.spec.name, candidate)
                return ToolLocation(tool=self.spec.name, path=candidate, source="system")
            logger.debug("Skipping unusable %s at %s", self.spec.name, candidate)

        private = self.private_path()
        if self._usable(private):
            return ToolLocation(tool=self.spec.name, path=private, source="private")
        return None

    def require(self) -> ToolLocation:
        loc = self.locate()
        if loc is None:
            raise ToolNotFoundError(self.spec.name, "not found")
        return loc

    def install(self) -> ToolLocation:
        with _install_lock(self.spec.name):
            existing = self.locate()
            if existing is not None:
                self._status(ToolStatus.ALREADY_INSTALLED, f"{self.spec.name} already installed at {existing.path}")
                return existing
            try:
                return self._install()
            except TunefetchError as e:
                self._status(ToolStatus.ERROR, str(e))
                raise
            except OSError as e:
                err = ToolInstallError(self.spec.name, f"install into {self.private_path().parent} failed: {e}")
                self._status(ToolStatus.ERROR, str(err))
                raise err from e

    def _install(self) -> ToolLocation:
        name = self.spec.name
        url = self.spec.download_url()
        if not url:
            system, machine = current_platform()
            raise UnsupportedPlatformError(name, f"no automatic download for {system}/{machine}")

        dest = self.private_path()
        dest.parent.mkdir(parents=True, exist_ok=True)

        self._status(ToolStatus.DOWNLOADING, f"Downloading {name} from {url}")
        payload = dest.parent / (dest.name + (".zip" if self.spec.is_archive else ".download"))
        size = self._download(url, payload)
        self._status(ToolStatus.DOWNLOADING, f"Downloaded {size} bytes")

        self._status(ToolStatus.INSTALLING, f"Installing {name} to {dest}")
        try:
            if self.spec.is_archive:
                self._extract_member(payload, self.spec.filename(), dest)
            else:
                payload.replace(dest)
        finally:
            payload.unlink(missing_ok=True)

        if not is_windows():
            dest.chmod(0o755)

        if not is_runnable(dest, self.spec.version_flag):
            raise VerificationError(name, f"installed binary at {dest} does not run")

        self._status(ToolStatus.COMPLETE, f"{name} installed successfully")
        logger.info("Installed %s %s at %s", name, self.spec.version, dest)
        return ToolLocation(tool=name, path=dest, source="private")

    def _download(self, url: str, dest: Path) -> int:
        # Connection errors and 5xx are retried by the session adapter.
        tmp = dest.with_suffix(dest.suffix + ".part")
        written = 0
        try:
            with self.s.get(url, stream=True, timeout=config.DOWNLOAD_TIMEOUT_S) as r:
                if not 200 <= r.status_code < 300:
                    raise ToolDownloadError(self.spec.name, f"download failed: HTTP {r.status_code}")
                with open(tmp, "wb") as f:
                    for chunk in r.iter_content(chunk_size=config.DOWNLOAD_CHUNK_SIZE):
                        if chunk:
                            f.write(chunk)
                            written += len(chunk)
        except requests.RequestException as e:
            tmp.unlink(missing_ok=True)
            raise ToolDownloadError(self.spec.name, f"download failed: {e}") from e
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise
        tmp.replace(dest)
        return written

    def _extract_member(self, zip_path: Path, member_name: str, out_path: Path) -> None:
        try:
            with zipfile.ZipFile(zip_path, "r") as z:
                member = None
                for info in z.infolist():
                    if info.is_dir():
                        continue
                    normalized = info.filename.replace("\\", "/")
                    if normalized == member_name or normalized.endswith("/" + member_name):
                        member = info
                        break
                if member is None:
                    raise ExtractionError(self.spec.name, f"{member_name} not found inside archive")
                tmp = out_path.with_suffix(out_path.suffix + ".part")
                with z.open(member) as src, open(tmp, "wb") as dst:
                    shutil.copyfileobj(src, dst)
                tmp.replace(out_path)
        except zipfile.BadZipFile as e:
            raise ExtractionError(self.spec.name, f"invalid archive: {e}") from e

    def _status(self, status: ToolStatus, message: str) -> None:
        logger.debug("%s: %s", status.value, message)
        post(self.channel, ToolStatusEvent(tool=self.spec.name, status=status, message=message))


@dataclass
class Toolchain:
    """Both tools, resolved lazily right before a subprocess needs them."""

    channel: Optional[EventChannel] = None
    session: Optional[requests.Session] = None
    provisioners: Dict[str, Provisioner] = field(default_factory=dict)

    def __post_init__(self):
        for spec in (YTDLP_SPEC, FFMPEG_SPEC):
            self.provisioners.setdefault(spec.name, Provisioner(spec, channel=self.channel, session=self.session))

    def ytdlp(self) -> ToolLocation:
        return self.provisioners[YTDLP].install()

    def ffmpeg(self) -> ToolLocation:
        return self.provisioners[FFMPEG].install()

    def ensure_ready(self) -> Dict[str, ToolLocation]:
        return {name: p.install() for name, p in self.provisioners.items()}
