from fastapi import APIRouter, HTTPException

from notra.core.usage_limits import CHAT_LIMITS, PLANS, USAGE_LIMITS

router = APIRouter(prefix="/plans", tags=["plans"])


def _plan_payload(plan: str) -> dict:
    return {"usage": USAGE_LIMITS[plan].model_dump(), "chat": CHAT_LIMITS[plan].model_dump()}


@router.get("")
async def list_plans():
    return {plan: _plan_payload(plan) for plan in PLANS}


@router.get("/{plan}")
async def get_plan(plan: str):
    if plan not in PLANS:
        raise HTTPException(status_code=404, detail="Unknown plan")
    return _plan_payload(plan)
