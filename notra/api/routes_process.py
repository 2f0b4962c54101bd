import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile

from notra.adapters.llm.base import LLM
from notra.core.usage_limits import normalize_plan
from notra.services.generation_service import GenerationError
from notra.services.ingest_service import UnsupportedFileType
from notra.services.llm_factory import get_llm
from notra.services.pipeline_service import EmptyDocument, TooManyPages, process_file
from notra.services.usage_service import UsageLimitExceeded, UsageMeter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/process", tags=["process"])


@router.post("/file")
async def process_upload(
    request: Request,
    file: UploadFile = File(...),
    user_plan: str | None = Form(None),
    user_id: str | None = Form(None),
    llm: LLM = Depends(get_llm),
):
    plan = normalize_plan(user_plan)
    caller = user_id or (request.client.host if request.client else "anonymous")
    meter: UsageMeter = request.app.state.usage_meter
    if meter.remaining(caller, "file", plan) <= 0:
        raise HTTPException(status_code=429, detail={"error": "Monthly file limit reached", "bucket": "file"})

    data = await file.read()
    try:
        result = await process_file(file.filename or "upload", data, plan, llm)
    except UnsupportedFileType as e:
        raise HTTPException(status_code=400, detail=str(e))
    except EmptyDocument as e:
        raise HTTPException(status_code=400, detail=str(e))
    except TooManyPages as e:
        raise HTTPException(status_code=413, detail={"error": str(e), "pages": e.pages, "limit": e.limit})
    except Exception as e:
        # generation (LLM) failures and unreadable files land here
        logger.exception("processing %s failed", file.filename)
        hint = "Check the LLM provider configuration." if isinstance(e, GenerationError) else (
            "The file could not be read, or the LLM provider is unavailable."
        )
        raise HTTPException(status_code=503, detail={"error": str(e), "hint": hint})

    if not result["deduplicated"]:
        try:
            meter.check_and_record(caller, "file", plan)
        except UsageLimitExceeded:
            # raced with a concurrent upload; the session exists already
            logger.warning("file quota exceeded after processing for %s", caller)
    return result
