from typing import Sequence

from notra.core.models import ConversationMessage, NotraSession
from notra.core.prompts import PromptCache
from notra.core.usage_limits import ChatLimits
from notra.services.context_service import format_sections_for_prompt
from notra.services.retrieve_service import retrieve_relevant_sections


def trim_messages(messages: Sequence[ConversationMessage], max_rounds: int = 3) -> list[ConversationMessage]:
    """Keep every system message plus the last `max_rounds` exchanges (2 messages each)."""
    system = [m for m in messages if m.role == "system"]
    conversation = [m for m in messages if m.role != "system"]
    keep = max(0, max_rounds) * 2
    return system + (conversation[-keep:] if keep else [])


def last_user_question(messages: Sequence[ConversationMessage]) -> str:
    for m in reversed(messages):
        if m.role == "user" and m.content.strip():
            return m.content
    return ""


def build_note_context(session: NotraSession, question: str, limits: ChatLimits) -> tuple[str, list]:
    """Retrieve and format the note sections for one question under the plan's budget."""
    sections = retrieve_relevant_sections(session.notes, question, limits.max_sections)
    return format_sections_for_prompt(sections, limits.max_context_length), sections


def build_system_prompt(prompts: PromptCache, *, mode: str = "general", context: str = "",
                        summary: str = "", language: str | None = None) -> str:
    if mode == "note":
        return prompts.get("chat.note", language).format(
            summary=summary.strip() or "(none)",
            context=context or "(no notes available)",
        )
    return prompts.get("chat.general", language)


def build_chat_messages(messages: Sequence[ConversationMessage], system_prompt: str,
                        max_rounds: int) -> list[dict]:
    """OpenAI-style message list: our system prompt first, then the trimmed transcript."""
    trimmed = trim_messages(messages, max_rounds)
    out = [{"role": "system", "content": system_prompt}]
    out.extend({"role": m.role, "content": m.content} for m in trimmed)
    return out
