from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

DEFAULT_TITLE = "Untitled Document"

# Titles we never want to show: temp upload names and LLM placeholders.
_GENERIC_TITLE_RE = re.compile(
    r"^(?:upload(?:_[0-9a-fA-F\-]{8,})?(?:\.[A-Za-z0-9]{1,8})?|untitled(?: document)?|document|title)$",
    re.IGNORECASE,
)


def is_generic_title(title: str | None) -> bool:
    if not title:
        return True
    t = title.strip()
    if not t:
        return True
    return bool(_GENERIC_TITLE_RE.match(t))


_MARKUP_PREFIX_RE = re.compile(r"^[#>*\-•\s]+")
_TRAILING_SEP_RE = re.compile(r"[\-|:_=\s]+$")
# Extracted PDF text often opens with page furniture rather than a title.
_PAGE_MARKER_RE = re.compile(r"^(?:page\s*)?\d+(?:\s*(?:/|of)\s*\d+)?$", re.IGNORECASE)

_SCAN_LINES = 40
_MAX_TITLE_CHARS = 120


def _clean_line(line: str) -> str:
    line = _MARKUP_PREFIX_RE.sub("", line.strip())
    line = " ".join(line.split())
    return _TRAILING_SEP_RE.sub("", line)


def _candidate_lines(text: str) -> list[tuple[bool, str]]:
    """(is_heading, cleaned) for the leading non-empty, non-page-marker lines."""
    out: list[tuple[bool, str]] = []
    for raw in text.splitlines():
        cleaned = _clean_line(raw)
        if not cleaned or _PAGE_MARKER_RE.match(cleaned):
            continue
        out.append((raw.lstrip().startswith("#"), cleaned))
        if len(out) >= _SCAN_LINES:
            break
    return out


def extract_title_from_text(text: str | None) -> Optional[str]:
    """A markdown heading near the top, else the first line long enough to be a title."""
    candidates = _candidate_lines(text or "")
    if not candidates:
        return None

    headings = [c for is_heading, c in candidates if is_heading and len(c) >= 4]
    if headings:
        return headings[0][:_MAX_TITLE_CHARS]

    for _, cand in candidates:
        if 6 <= len(cand) <= _MAX_TITLE_CHARS:
            return cand
    return candidates[0][1][:_MAX_TITLE_CHARS]


def best_title(generated: str | None, original_name: str | None = None, text: str | None = None) -> str:
    """Choose the display title for a new session.

    Priority:
      1) title generated with the notes (unless it's a placeholder)
      2) uploaded filename, without extension
      3) extracted from the text
      4) DEFAULT_TITLE
    """
    if not is_generic_title(generated):
        return (generated or "").strip()

    stem = Path((original_name or "").strip()).stem.strip()
    if stem and not is_generic_title(stem):
        return stem

    extracted = extract_title_from_text(text)
    if extracted:
        return extracted

    return DEFAULT_TITLE
