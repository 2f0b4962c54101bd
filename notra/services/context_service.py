from __future__ import annotations

from typing import Sequence

from notra.core.config import settings
from notra.core.models import NoteSection


def format_section_refs(sections: Sequence[NoteSection]) -> list[dict]:
    """UI-friendly list of the sections that went into a prompt."""
    return [
        {"ref": i, "id": s.id, "heading": s.heading, "snippet": (s.content or "")[:200]}
        for i, s in enumerate(sections, 1)
    ]


def format_sections_for_prompt(sections: Sequence[NoteSection], max_length: int = 2000) -> str:
    """Render sections, in the given order, into a context block of at most `max_length` chars.

    Each section is a `## heading` line plus its content cut to
    CONTEXT_SECTION_PREVIEW_CHARS. The first section that doesn't fit is cut
    to the remaining budget and nothing after it is emitted. Bullets are
    added as a "Key points" line only while the block is comfortably under
    budget (CONTEXT_BULLETS_BUDGET_RATIO).
    """
    preview = settings.CONTEXT_SECTION_PREVIEW_CHARS
    bullets_gate = max_length * settings.CONTEXT_BULLETS_BUDGET_RATIO
    out = ""

    for s in sections:
        if len(out) >= max_length:
            break

        content = s.content or ""
        body = content[:preview] + ("..." if len(content) > preview else "")
        block = f"## {s.heading}\n{body}\n"

        if len(out) + len(block) > max_length:
            out += block[: max_length - len(out)]
            break
        out += block

        if s.bullets and len(out) < bullets_gate:
            key_points = f"Key points: {', '.join(s.bullets[:3])}\n"
            if len(out) + len(key_points) <= max_length:
                out += key_points

        # blank line between sections, only if it still fits
        if len(out) < max_length:
            out += "\n"

    return out.rstrip()
