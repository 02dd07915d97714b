# Subprocess wrapper: runs a command to completion and captures its output.

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from .errors import ProcessStartError, SubprocessFailureError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    args: List[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def run_cmd(
    args: Sequence[str],
    cwd: Optional[Path] = None,
    timeout: Optional[float] = None,
) -> CommandResult:
    """Run `args` without a shell; stdout and stderr are fully captured.

    A non-zero exit is returned, not raised: callers decide which error it maps to.
    """
    args = [str(a) for a in args]
    logger.debug("Running: %s", " ".join(args))
    try:
        p = subprocess.run(
            args,
            cwd=str(cwd) if cwd else None,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            shell=False,
            creationflags=getattr(subprocess, "CREATE_NO_WINDOW", 0),
        )
    except subprocess.TimeoutExpired as e:
        raise SubprocessFailureError(f"Process timed out after {timeout}s:\n{args[0]}") from e
    except (OSError, subprocess.SubprocessError) as e:
        raise ProcessStartError(f"Failed to start process:\n{args[0]}\n\n{e}") from e

    logger.debug("Exit code %s: %s", p.returncode, args[0])
    return CommandResult(args=args, returncode=p.returncode, stdout=p.stdout or "", stderr=p.stderr or "")
