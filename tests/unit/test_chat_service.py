"""Unit tests for transcript trimming and prompt assembly."""

import pytest

from notra.core.models import ConversationMessage, NotraSession
from notra.core.prompts import PromptCache
from notra.core.usage_limits import get_chat_limits
from notra.services.chat_service import (
    build_chat_messages,
    build_note_context,
    build_system_prompt,
    last_user_question,
    trim_messages,
)


def _transcript(pairs: int, system: bool = True) -> list[ConversationMessage]:
    msgs = [ConversationMessage(role="system", content="be nice")] if system else []
    for i in range(pairs):
        msgs.append(ConversationMessage(role="user", content=f"q{i}"))
        msgs.append(ConversationMessage(role="assistant", content=f"a{i}"))
    return msgs


def test_trim_keeps_system_and_last_three_rounds() -> None:
    """Test that 1 system + 10 messages trims to the system message plus the last 6."""
    msgs = _transcript(5)

    trimmed = trim_messages(msgs, 3)

    assert len(trimmed) == 7
    assert trimmed[0].role == "system"
    assert [m.content for m in trimmed[1:]] == ["q2", "a2", "q3", "a3", "q4", "a4"]


def test_trim_moves_late_system_message_first() -> None:
    """Test that system messages anywhere in the transcript are kept and lead."""
    msgs = _transcript(4, system=False)
    msgs.insert(5, ConversationMessage(role="system", content="late rule"))

    trimmed = trim_messages(msgs, 1)

    assert [m.content for m in trimmed] == ["late rule", "q3", "a3"]


def test_trim_short_transcript_is_unchanged() -> None:
    """Test that transcripts within the limit are returned whole."""
    msgs = _transcript(2)

    assert trim_messages(msgs, 3) == msgs


@pytest.mark.parametrize("rounds", [0, -2])
def test_trim_with_no_rounds_keeps_only_system(rounds) -> None:
    """Test that a non-positive round count drops all conversation messages."""
    trimmed = trim_messages(_transcript(3), rounds)

    assert [m.role for m in trimmed] == ["system"]


def test_last_user_question_skips_blank_messages() -> None:
    """Test that the latest non-blank user message is picked."""
    msgs = [
        ConversationMessage(role="user", content="What is a refund?"),
        ConversationMessage(role="assistant", content="A return of money."),
        ConversationMessage(role="user", content="   "),
    ]

    assert last_user_question(msgs) == "What is a refund?"
    assert last_user_question([]) == ""


def test_build_chat_messages_puts_system_prompt_first() -> None:
    """Test that the assembled prompt leads with our system prompt, then the trimmed transcript."""
    out = build_chat_messages(_transcript(5, system=False), "SYSTEM", max_rounds=2)

    assert out[0] == {"role": "system", "content": "SYSTEM"}
    assert [m["content"] for m in out[1:]] == ["q3", "a3", "q4", "a4"]


def test_note_prompt_embeds_summary_and_context() -> None:
    """Test that note mode fills the summary and notes into the template."""
    prompt = build_system_prompt(PromptCache(), mode="note", context="## Refund Policy\nWeek one.",
                                 summary="Course syllabus.")

    assert "## Refund Policy\nWeek one." in prompt
    assert "Course syllabus." in prompt


def test_note_prompt_without_notes_says_so() -> None:
    """Test that empty context and summary are shown as placeholders."""
    prompt = build_system_prompt(PromptCache(), mode="note")

    assert "(no notes available)" in prompt
    assert "(none)" in prompt


def test_general_prompt_in_chinese() -> None:
    """Test that a supported language selects its translation."""
    assert "Notra" in build_system_prompt(PromptCache(), language="zh-CN")
    assert build_system_prompt(PromptCache(), language="zh") != build_system_prompt(PromptCache(), language="en")


def test_build_note_context_respects_plan_budget(sample_sections) -> None:
    """Test the refund scenario under the free plan budget."""
    session = NotraSession(id="s", type="file", title="Syllabus", content_hash="h",
                           created_at="2024-01-01T00:00:00+00:00", notes=sample_sections)
    limits = get_chat_limits("free")

    context, sections = build_note_context(session, "refund", limits)

    assert "## Refund Policy" in context
    assert len(context) <= limits.max_context_length
    assert len(sections) == limits.max_sections
    assert sections[0].heading == "Refund Policy"
