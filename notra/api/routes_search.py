from fastapi import APIRouter, HTTPException

from notra.core.models import NotraModel
from notra.core.usage_limits import get_chat_limits, normalize_plan
from notra.services.chat_service import build_note_context
from notra.services.store_service import get_session

router = APIRouter(prefix="/search", tags=["search"])

class SearchRequest(NotraModel):
    session_id: str
    query: str = ""
    user_plan: str | None = None

@router.post("")
async def search(req: SearchRequest):
    """Show which sections (and which context text) a chat question would get."""
    session = get_session(req.session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    plan = normalize_plan(req.user_plan)
    limits = get_chat_limits(plan)
    context, sections = build_note_context(session, req.query, limits)
    return {
        "plan": plan,
        "sections": [s.model_dump(by_alias=True) for s in sections],
        "context": context,
    }
