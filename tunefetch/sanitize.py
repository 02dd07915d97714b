# Filename cleanup: strips promotional decorations from a downloaded title.

from __future__ import annotations

import re

BANNED_PHRASES = (
    "[Audio HD]",
    "(Radio Mix)",
    "(Official Video)",
    "(lyrics)",
    "(Radio Edit)",
    "[High Quality]",
    "(Official Music Video)",
    "(Audio)",
    "[Clean version]",
    "[visualizer]",
    "[Official]",
    "[Lyric Video]",
    "[Lyrics]",
    "(Lyric Video)",
    "(Explicit)",
    "[Explicit]",
    "(Clean)",
    "[Live]",
    "(Studio)",
    "[Studio]",
    "[Remastered]",
    "[Remix]",
    "(Remix)",
    "[DJ Mix]",
    "(DJ Mix)",
    "[Acoustic]",
    "(Acoustic)",
    "[Instrumental]",
    "(Instrumental)",
    "[Extended]",
    "(Extended)",
    "[Edit]",
    "(Edit)",
    "[Version]",
    "(Version)",
    "[Mixed]",
    "(Mixed)",
)

_BANNED_RES = tuple(re.compile(r"\s*" + re.escape(p), re.IGNORECASE) for p in BANNED_PHRASES)
_WS_RE = re.compile(r"\s+")


def _sanitize_once(s: str) -> str:
    for rx in _BANNED_RES:
        s = rx.sub("", s)
    return _WS_RE.sub(" ", s).strip()


def sanitize(original: str) -> str:
    """Remove ban-list phrases (with leading whitespace), collapse whitespace, trim.

    Repeats until stable, so sanitize(sanitize(x)) == sanitize(x).
    """
    s = original or ""
    while True:
        cleaned = _sanitize_once(s)
        if cleaned == s:
            return cleaned
        s = cleaned
