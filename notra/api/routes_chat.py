import json
import asyncio
import logging
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse

from notra.adapters.llm.base import LLM
from notra.core.models import ConversationMessage, NotraModel
from notra.core.usage_limits import ChatLimits, get_chat_limits, normalize_plan
from notra.services import store_service
from notra.services.chat_service import (
    build_chat_messages,
    build_note_context,
    build_system_prompt,
    last_user_question,
)
from notra.services.context_service import format_section_refs
from notra.services.llm_factory import get_llm, resolve_model
from notra.services.usage_service import UsageLimitExceeded, UsageMeter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])

class ChatRequest(NotraModel):
    messages: list[ConversationMessage]
    mode: Literal["general", "note"] = "general"
    session_id: str | None = None  # required when mode == "note"
    user_plan: str | None = None
    model: str | None = None
    user_id: str | None = None
    language: str | None = None


def _caller_id(req: ChatRequest, request: Request) -> str:
    if req.user_id:
        return req.user_id
    return request.client.host if request.client else "anonymous"


def _prepare(req: ChatRequest, request: Request) -> tuple[list[dict], ChatLimits, str, list]:
    """Validate, meter and assemble the completion messages for one chat turn."""
    if not any(m.role != "system" and m.content.strip() for m in req.messages):
        raise HTTPException(status_code=400, detail="messages must contain a user message")
    if req.mode == "note" and not req.session_id:
        raise HTTPException(status_code=400, detail="session_id is required in note mode")

    plan = normalize_plan(req.user_plan)
    limits = get_chat_limits(plan)

    session = None
    if req.mode == "note":
        session = store_service.get_session(req.session_id)
        if not session:
            raise HTTPException(status_code=404, detail="Session not found")

    meter: UsageMeter = request.app.state.usage_meter
    try:
        meter.check_and_record(_caller_id(req, request), "chat", plan)
    except UsageLimitExceeded as e:
        raise HTTPException(
            status_code=429,
            detail={"error": str(e), "bucket": e.bucket, "limit": e.limit},
            headers={"Retry-After": str(e.retry_after_seconds)},
        )

    sections = []
    context = ""
    if session is not None:
        context, sections = build_note_context(session, last_user_question(req.messages), limits)
    system_prompt = build_system_prompt(
        request.app.state.prompts,
        mode=req.mode,
        context=context,
        summary=session.summary_for_chat if session else "",
        language=req.language,
    )
    messages = build_chat_messages(req.messages, system_prompt, limits.max_rounds)
    logger.debug("chat plan=%s mode=%s sections=%d context_chars=%d", plan, req.mode, len(sections), len(context))
    return messages, limits, plan, sections


@router.post("")
async def chat(req: ChatRequest, request: Request, llm: LLM = Depends(get_llm)):
    messages, limits, plan, sections = _prepare(req, request)
    try:
        answer = await llm.generate(
            messages,
            model=resolve_model(limits, req.model),
            max_tokens=limits.max_response_tokens,
            temperature=limits.temperature,
        )
    except Exception as e:
        logger.exception("completion failed")
        raise HTTPException(
            status_code=503,
            detail={"error": str(e), "hint": "Check LLM_PROVIDER and its credentials (OPENAI_API_KEY / OLLAMA_BASE_URL)."},
        )
    return {"answer": answer, "plan": plan, "sections": format_section_refs(sections)}


@router.post("/stream")
async def chat_stream(req: ChatRequest, request: Request, llm: LLM = Depends(get_llm)):
    """Server-Sent Events (SSE) token streaming endpoint.

    Emits events:
      - meta: { plan, sections }
      - token: { delta }
      - ping: {} (keep-alive while the model is silent)
      - error: { error }
      - done: [DONE]
    """
    messages, limits, plan, sections = _prepare(req, request)
    model = resolve_model(limits, req.model)

    async def event_gen():
        meta = {"plan": plan, "sections": format_section_refs(sections)}
        yield f"event: meta\ndata: {json.dumps(meta, ensure_ascii=False)}\n\n"

        # Read the completion stream in a background task so we can emit pings
        # while the model has not produced its first token yet.
        q: asyncio.Queue[str | None] = asyncio.Queue()
        err: dict[str, str] = {}

        async def producer():
            try:
                async for delta in llm.stream_generate(
                    messages,
                    model=model,
                    max_tokens=limits.max_response_tokens,
                    temperature=limits.temperature,
                ):
                    if delta:
                        await q.put(delta)
            except Exception as e:
                logger.exception("completion stream failed")
                err["error"] = str(e)
            finally:
                await q.put(None)  # end of stream

        task = asyncio.create_task(producer())

        try:
            while True:
                try:
                    delta = await asyncio.wait_for(q.get(), timeout=15.0)
                except asyncio.TimeoutError:
                    yield "event: ping\ndata: {}\n\n"
                    continue
                if delta is None:
                    break
                yield f"event: token\ndata: {json.dumps({'delta': delta}, ensure_ascii=False)}\n\n"

            if "error" in err:
                yield f"event: error\ndata: {json.dumps({'error': err['error']}, ensure_ascii=False)}\n\n"

            yield "event: done\ndata: [DONE]\n\n"
        finally:
            # client went away (or we finished): stop pulling from the provider
            if not task.done():
                task.cancel()

    headers = {
        "Cache-Control": "no-cache",
        "Connection": "keep-alive",
        "X-Accel-Buffering": "no",
    }
    return StreamingResponse(event_gen(), media_type="text/event-stream", headers=headers)
