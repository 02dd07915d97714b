# Recovering the final file path from yt-dlp's captured console output.
#
# yt-dlp has no stable machine-readable "this is your file" message, so the
# path is scraped from known log lines. Patterns are tried in order and the
# first one that matches anywhere in the output wins; extraction and merge
# lines come before [info] lines because the latter can name an intermediate
# file. When nothing matches the caller must fail rather than guess.

from __future__ import annotations

import re
from typing import Iterable, Optional, Pattern, Sequence

from . import config


def _strip_quotes(path: str) -> str:
    path = path.strip()
    if len(path) >= 2 and path[0] == path[-1] and path[0] in "\"'":
        return path[1:-1]
    return path


def completion_patterns(ext: str = config.AUDIO_FORMAT) -> Sequence[Pattern[str]]:
    e = re.escape(ext)
    return (
        re.compile(rf"\[ExtractAudio\] Destination: (.+\.{e})\s*$", re.MULTILINE),
        re.compile(rf"\[Merger\] Merging formats into (\"?.+\.{e}\"?)\s*$", re.MULTILINE),
        re.compile(rf"\[download\] (.+\.{e}) has already been downloaded", re.MULTILINE),
        re.compile(rf"\[ExtractAudio\] Not converting audio (.+\.{e}); file is already in target format", re.MULTILINE),
        re.compile(rf"\[info\] (.+\.{e})\s*$", re.MULTILINE),
    )


class CompletionParser:
    def __init__(self, patterns: Optional[Iterable[Pattern[str]]] = None):
        self.patterns = tuple(patterns) if patterns is not None else tuple(completion_patterns())

    def extract(self, output: str) -> Optional[str]:
        for rx in self.patterns:
            m = rx.search(output or "")
            if m:
                return _strip_quotes(m.group(1))
        return None


default_parser = CompletionParser()


def extract_downloaded_filename(output: str) -> Optional[str]:
    return default_parser.extract(output)
