import logging
from dataclasses import dataclass
from typing import Sequence

from notra.adapters.bm25.bm25 import SectionIndex
from notra.core.config import settings
from notra.core.models import NoteSection
from notra.services.text_splitter import split_into_sentences

logger = logging.getLogger(__name__)

INDEX_FIELDS = ("heading", "content", "combined_text")


@dataclass(frozen=True)
class SearchableUnit:
    """Index-time projection of one NoteSection; lives for a single call."""

    source_id: str
    position: int
    heading: str
    content: str
    combined_text: str

    def as_document(self) -> dict:
        return {
            "source_id": self.source_id,
            "heading": self.heading,
            "content": self.content,
            "combined_text": self.combined_text,
        }


def _combined_text(section: NoteSection) -> str:
    parts = [
        section.heading,
        *split_into_sentences(section.content),
        section.concept_explanation,
        section.formula_derivation,
        section.example,
        *section.bullets,
        *section.applications,
        *section.common_mistakes,
    ]
    return " ".join(p for p in parts if p)


def build_searchable_units(sections: Sequence[NoteSection]) -> list[SearchableUnit]:
    units: list[SearchableUnit] = []
    seen: set[str] = set()
    for i, s in enumerate(sections):
        sid = s.id if s.id and s.id not in seen else f"section-{i}"
        seen.add(sid)
        units.append(SearchableUnit(
            source_id=sid,
            position=i,
            heading=s.heading,
            content=s.content,
            combined_text=_combined_text(s),
        ))
    return units


def build_index(sections: Sequence[NoteSection]) -> tuple[SectionIndex, list[SearchableUnit]]:
    units = build_searchable_units(sections)
    index = SectionIndex(
        INDEX_FIELDS,
        boost={"heading": settings.RAG_HEADING_BOOST, "content": 1.0, "combined_text": 1.0},
        fuzzy=settings.RAG_FUZZY,
        prefix=settings.RAG_PREFIX,
        max_terms=settings.RAG_MAX_QUERY_TERMS,
    )
    index.build([u.as_document() for u in units])
    return index, units


def rank_sections(sections: Sequence[NoteSection], query: str) -> list[NoteSection]:
    """Sections with lexical overlap with `query`, most relevant first (may be empty)."""
    index, units = build_index(sections)
    by_id = {u.source_id: sections[u.position] for u in units}
    hits = index.search(query)
    logger.debug("ranked %d/%d sections for query=%r", len(hits), len(units), query)
    return [by_id[h["source_id"]] for h in hits]


def select_with_fallback(ranked: Sequence[NoteSection], sections: Sequence[NoteSection], k: int) -> list[NoteSection]:
    """Ranked sections first, topped up with unranked ones in document order up to `k`."""
    if k <= 0:
        return []
    picked = list(ranked[:k])
    taken = {id(s) for s in picked}
    for s in sections:
        if len(picked) >= k:
            break
        if id(s) not in taken:
            picked.append(s)
            taken.add(id(s))
    return picked


def retrieve_relevant_sections(notes: Sequence[NoteSection], query: str | None, max_sections: int = 5) -> list[NoteSection]:
    """Top `max_sections` sections for `query`.

    Never empty for non-empty `notes`: a blank query, no lexical hits or an
    indexing failure all fall back to the first sections in document order.
    """
    if max_sections <= 0:
        return []
    if not notes or not (query or "").strip():
        return list(notes[:max_sections])

    try:
        ranked = rank_sections(notes, query)
    except Exception:
        logger.exception("section retrieval failed, using first %d sections", max_sections)
        ranked = []
    if not ranked:
        logger.info("no lexical match for query=%r, using first %d sections", query, max_sections)
    return select_with_fallback(ranked, notes, max_sections)
