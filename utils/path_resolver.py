"""
File reference extraction from free text.

Recognizes three reference forms, in strict priority order:
1. Qualified repository paths ("src/peanut-city.html")
2. Site URLs ("bot.inference-arcade.com/src/game.html")
3. Informal bare filenames ("part3.html")

Informal names are only qualified into the canonical folder when they name a
page document. Bare "config.js" or "style.css" are usually inline code
snippets, so they are not treated as file references.
"""

import re
from typing import List, Optional

from config import CANONICAL_DIR, SITE_HOST, PAGE_EXTENSIONS, RECOGNIZED_EXTENSIONS


_EXT_GROUP = "|".join(sorted(RECOGNIZED_EXTENSIONS))
_PAGE_EXT_GROUP = "|".join(sorted(PAGE_EXTENSIONS))

QUALIFIED_PATTERN = re.compile(
    rf"{re.escape(CANONICAL_DIR)}/([^\s]+\.(?:{_EXT_GROUP}))",
    re.IGNORECASE,
)
URL_PATTERN = re.compile(rf"{re.escape(SITE_HOST)}/([^\s]+)", re.IGNORECASE)
INFORMAL_PATTERN = re.compile(rf"\b(\w[\w-]*\.({_EXT_GROUP}))\b", re.IGNORECASE)

# "... the same design as peanut-city.html", "make game.html like snake.html"
REFERENCE_PATTERN = re.compile(
    rf"\b(?:like|as|to)\s+(?:{re.escape(CANONICAL_DIR)}/)?(\w[\w-]*\.(?:{_PAGE_EXT_GROUP}))\b",
    re.IGNORECASE,
)

_URL_TRAILING = ".,;:!?)]}'\""


def qualify(filename: str) -> str:
    """Place a bare filename inside the canonical folder."""
    return f"{CANONICAL_DIR}/{filename}"


def _match_qualified(text: str) -> Optional[str]:
    match = QUALIFIED_PATTERN.search(text)
    return qualify(match.group(1)) if match else None


def _match_url(text: str) -> Optional[str]:
    match = URL_PATTERN.search(text)
    if not match:
        return None
    path = match.group(1).rstrip(_URL_TRAILING)
    return path or None


def _match_informal(text: str) -> Optional[str]:
    match = INFORMAL_PATTERN.search(text)
    if not match:
        return None
    if match.group(2).lower() not in PAGE_EXTENSIONS:
        return None
    return qualify(match.group(1))


def resolve_path(text: str) -> Optional[str]:
    """
    Extract the primary file reference from a message.

    Args:
        text: Raw user message

    Returns:
        Repository path, or None when the message names no file

    Example:
        >>> resolve_path("update part3.html")
        'src/part3.html'
        >>> resolve_path("check config.js") is None
        True
    """
    if not text:
        return None

    return _match_qualified(text) or _match_url(text) or _match_informal(text)


def resolve_reference_path(text: str) -> Optional[str]:
    """
    Extract the secondary "as/like/to <name>.html" reference of a
    structural-transformation request.

    Args:
        text: Raw user message

    Returns:
        Qualified path of the reference page, or None
    """
    if not text:
        return None

    match = REFERENCE_PATTERN.search(text)
    return qualify(match.group(1)) if match else None


def extract_all_paths(text: str) -> List[str]:
    """List every file reference in the message, in order of appearance, without duplicates."""
    if not text:
        return []

    found = []
    for match in QUALIFIED_PATTERN.finditer(text):
        found.append((match.start(), qualify(match.group(1))))
    for match in URL_PATTERN.finditer(text):
        path = match.group(1).rstrip(_URL_TRAILING)
        if path:
            found.append((match.start(), path))
    for match in INFORMAL_PATTERN.finditer(text):
        if match.group(2).lower() in PAGE_EXTENSIONS:
            found.append((match.start(), qualify(match.group(1))))

    paths: List[str] = []
    for _, path in sorted(found, key=lambda item: item[0]):
        if path not in paths:
            paths.append(path)
    return paths
