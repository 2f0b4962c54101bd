from fastapi import APIRouter, HTTPException, Query
from notra.services.store_service import delete_session, get_session, list_recent_sessions

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.get("/recent")
async def recent_sessions(limit: int = Query(10, ge=1, le=100)):
    out = []
    for s in list_recent_sessions(limit):
        # notes/quizzes can be large; the dashboard only needs a summary row.
        out.append({
            "id": s.id,
            "type": s.type,
            "title": s.title,
            "createdAt": s.created_at,
            "summary": s.summary_for_chat or "No summary available",
            "sections": len(s.notes),
        })
    return out

@router.get("/{session_id}")
async def get_one(session_id: str):
    session = get_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return session.model_dump(by_alias=True)


@router.delete("/{session_id}")
async def delete_one(session_id: str):
    if not delete_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return {"ok": True, "id": session_id}
