"""Unit tests for plan tiers and their limits."""

import pytest

from notra.core import usage_limits
from notra.core.usage_limits import (
    CHAT_LIMITS,
    PlanLimits,
    USAGE_LIMITS,
    get_chat_limits,
    get_plan_limits,
    normalize_plan,
)

NUMERIC_CHAT_FIELDS = ("max_sections", "max_context_length", "max_rounds", "max_response_tokens")


def test_free_chat_limits() -> None:
    """Test the free tier's retrieval and conversation budget."""
    limits = get_chat_limits("free")

    assert (limits.max_sections, limits.max_context_length, limits.max_rounds) == (3, 1500, 3)
    assert limits.max_response_tokens == 512
    assert limits.model == "gpt-4o-mini"
    assert not limits.allow_model_choice


def test_pro_chat_limits() -> None:
    """Test the pro tier's retrieval and conversation budget."""
    limits = get_chat_limits("pro")

    assert (limits.max_sections, limits.max_context_length, limits.max_rounds) == (6, 2000, 5)
    assert limits.max_response_tokens == 1024
    assert limits.allow_model_choice


@pytest.mark.parametrize("field", NUMERIC_CHAT_FIELDS)
def test_pro_chat_limits_dominate_free(field) -> None:
    """Test that pro is never tighter than free for chat budgets."""
    assert getattr(CHAT_LIMITS["pro"], field) >= getattr(CHAT_LIMITS["free"], field)


@pytest.mark.parametrize("field", list(PlanLimits.model_fields))
def test_pro_usage_limits_dominate_free(field) -> None:
    """Test that pro is never tighter than free for quotas."""
    assert getattr(USAGE_LIMITS["pro"], field) >= getattr(USAGE_LIMITS["free"], field)


def test_limits_are_immutable() -> None:
    """Test that plan records cannot be changed at runtime."""
    with pytest.raises(Exception):
        CHAT_LIMITS["free"].max_sections = 99


@pytest.mark.parametrize(
    ("value", "expected"),
    [("pro", "pro"), (" PRO ", "pro"), ("free", "free"), (None, "free"), ("enterprise", "free"), ("", "free")],
)
def test_normalize_plan(value, expected) -> None:
    """Test that unknown or missing plans resolve to the default."""
    assert normalize_plan(value) == expected


def test_normalize_plan_uses_configured_default(monkeypatch) -> None:
    """Test that DEFAULT_PLAN decides the tier for unknown input."""
    monkeypatch.setattr(usage_limits.settings, "DEFAULT_PLAN", "pro")

    assert normalize_plan("gold") == "pro"
    assert get_plan_limits(None).max_pages_per_file == 200


def test_free_quotas() -> None:
    """Test the free tier's monthly and daily quotas."""
    limits = get_plan_limits("free")

    assert limits.max_chat_messages_per_day == 50
    assert limits.max_file_sessions_per_month == 15
    assert limits.max_pages_per_file == 20
