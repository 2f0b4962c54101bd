"""Plan tiers and the quantitative limits attached to them.

Everything here is static configuration built at import time and never
mutated. Consumers read through `get_plan_limits` / `get_chat_limits` so the
free/pro numbers live in exactly one place.
"""

from pydantic import BaseModel, ConfigDict

from notra.core.config import settings
from notra.core.models import Plan

PLANS: tuple[Plan, ...] = ("free", "pro")


class PlanLimits(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_file_sessions_per_month: int
    max_audio_sessions_per_month: int
    max_video_sessions_per_month: int
    max_chat_messages_per_day: int
    max_pages_per_file: int
    max_audio_minutes_per_session: int
    rate_limit_qps: int | None = None
    rate_limit_quota: int | None = None  # requests per day


class ChatLimits(BaseModel):
    """Per-request budget for note-mode chat."""

    model_config = ConfigDict(frozen=True)

    max_sections: int
    max_context_length: int
    max_rounds: int
    max_response_tokens: int
    model: str
    allow_model_choice: bool = False
    temperature: float = 0.7


USAGE_LIMITS: dict[Plan, PlanLimits] = {
    "free": PlanLimits(
        max_file_sessions_per_month=15,
        max_audio_sessions_per_month=10,
        max_video_sessions_per_month=3,
        max_chat_messages_per_day=50,
        max_pages_per_file=20,
        max_audio_minutes_per_session=5,
        rate_limit_qps=5,
        rate_limit_quota=1000,
    ),
    "pro": PlanLimits(
        max_file_sessions_per_month=9999,
        max_audio_sessions_per_month=9999,
        max_video_sessions_per_month=9999,
        max_chat_messages_per_day=9999,
        max_pages_per_file=200,
        max_audio_minutes_per_session=60,
        rate_limit_qps=20,
        rate_limit_quota=10000,
    ),
}

CHAT_LIMITS: dict[Plan, ChatLimits] = {
    "free": ChatLimits(
        max_sections=3,
        max_context_length=1500,
        max_rounds=3,
        max_response_tokens=512,
        model="gpt-4o-mini",
    ),
    "pro": ChatLimits(
        max_sections=6,
        max_context_length=2000,
        max_rounds=5,
        max_response_tokens=1024,
        model="gpt-4o",
        allow_model_choice=True,
    ),
}


def normalize_plan(value: str | None) -> Plan:
    v = (value or "").strip().lower()
    if v in PLANS:
        return v  # type: ignore[return-value]
    default = (settings.DEFAULT_PLAN or "free").strip().lower()
    return default if default in PLANS else "free"  # type: ignore[return-value]


def get_plan_limits(plan: str | None) -> PlanLimits:
    return USAGE_LIMITS[normalize_plan(plan)]


def get_chat_limits(plan: str | None) -> ChatLimits:
    return CHAT_LIMITS[normalize_plan(plan)]
