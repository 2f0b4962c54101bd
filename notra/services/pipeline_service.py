import logging

from notra.adapters.llm.base import LLM
from notra.core.models import Plan
from notra.core.usage_limits import get_plan_limits
from notra.services import store_service
from notra.services.generation_service import generate_study_material
from notra.services.ingest_service import extract_text
from notra.services.title_service import best_title

logger = logging.getLogger(__name__)


class TooManyPages(ValueError):
    def __init__(self, pages: int, limit: int):
        super().__init__(f"File has {pages} pages; your plan allows {limit}")
        self.pages = pages
        self.limit = limit


class EmptyDocument(ValueError):
    pass


async def process_file(filename: str, data: bytes, plan: Plan, llm: LLM) -> dict:
    # 1) extract text
    extracted = extract_text(filename, data)
    limit = get_plan_limits(plan).max_pages_per_file
    if extracted.pages is not None and extracted.pages > limit:
        raise TooManyPages(extracted.pages, limit)
    if not extracted.text.strip():
        raise EmptyDocument("No text could be extracted from the file")

    # 2) dedupe on content
    content_hash = store_service.generate_content_hash(extracted.text)
    existing = store_service.find_session_by_hash(content_hash)
    if existing:
        logger.info("reusing session %s for identical content", existing.id)
        return _result(existing, deduplicated=True)

    # 3) generate notes/quizzes/flashcards
    content = await generate_study_material(extracted.text, plan, llm)

    # 4) persist
    session = store_service.create_session(
        type="file",
        title=best_title(content.title, extracted.meta.get("original_name"), extracted.text),
        content_hash=content_hash,
        notes=content.notes,
        quizzes=content.quizzes,
        flashcards=content.flashcards,
        summary_for_chat=content.summary_for_chat,
    )
    return _result(session, deduplicated=False)


def _result(session, *, deduplicated: bool) -> dict:
    return {
        "sessionId": session.id,
        "type": session.type,
        "title": session.title,
        "createdAt": session.created_at,
        "deduplicated": deduplicated,
    }
