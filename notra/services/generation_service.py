"""Turn extracted document text into notes, quizzes and flashcards via the LLM."""

from __future__ import annotations

import json
import logging
import re

from pydantic import Field

from notra.adapters.llm.base import LLM
from notra.core.config import settings
from notra.core.models import Flashcard, NoteSection, NotraModel, Plan, QuizItem, QuizOption
from notra.core.usage_limits import get_chat_limits
from notra.services.llm_factory import resolve_model

logger = logging.getLogger(__name__)

DEFAULT_SUMMARY = "Educational content covering key concepts and topics."

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)

# (notes, quiz questions, flashcards) requested per plan
_COUNTS: dict[str, tuple[str, str, str]] = {
    "free": ("4-6", "5-8", "8-15"),
    "pro": ("6-10", "8-12", "12-20"),
}

_SYSTEM = "You are a helpful educational assistant that generates structured learning materials in JSON format."


class GenerationError(RuntimeError):
    pass


class GeneratedContent(NotraModel):
    title: str = ""
    summary_for_chat: str = DEFAULT_SUMMARY
    notes: list[NoteSection] = Field(default_factory=list)
    quizzes: list[QuizItem] = Field(default_factory=list)
    flashcards: list[Flashcard] = Field(default_factory=list)


def build_generation_prompt(text: str, plan: Plan) -> str:
    notes_n, quiz_n, cards_n = _COUNTS[plan]
    content = (text or "")[: settings.GENERATION_MAX_INPUT_CHARS]
    extra = ""
    if plan == "pro":
        extra = (
            "\nFor each note section you may also add \"conceptExplanation\", "
            "\"formulaDerivation\", \"applications\" and \"commonMistakes\" when they help.\n"
        )
    return f"""Analyze the following educational content and generate structured study materials.

Content:
{content}

Return ONLY a JSON object with this structure:
{{
  "title": "A concise title for this content",
  "summaryForChat": "A concise 2-3 sentence summary of the key concepts for chat context",
  "notes": [
    {{
      "id": "note-1",
      "heading": "Section heading",
      "content": "Main content paragraph. Use **bold** for important terms.",
      "bullets": ["Key point 1", "Key point 2"],
      "example": "Optional example",
      "tableSummary": [{{"label": "Term", "value": "Definition"}}]
    }}
  ],
  "quizzes": [
    {{
      "id": "quiz-1",
      "question": "Question text",
      "options": [{{"label": "A", "text": "Option A"}}, {{"label": "B", "text": "Option B"}}, {{"label": "C", "text": "Option C"}}, {{"label": "D", "text": "Option D"}}],
      "correctIndex": 0,
      "explanation": "Why this answer is correct",
      "difficulty": "easy|medium|hard"
    }}
  ],
  "flashcards": [
    {{"id": "card-1", "front": "Question or term", "back": "Answer or definition", "tag": "Category"}}
  ]
}}
{extra}
Generate {notes_n} note sections, {quiz_n} quiz questions, and {cards_n} flashcards. Make sure all content is educational and accurate."""


def _text(v) -> str:
    return v.strip() if isinstance(v, str) else ""


def _quiz(raw: dict, idx: int) -> QuizItem:
    options = [
        QuizOption(label=_text(o.get("label")) or chr(65 + i), text=_text(o.get("text")))
        for i, o in enumerate(raw.get("options") or [])
        if isinstance(o, dict)
    ]
    try:
        correct = int(raw.get("correctIndex") or 0)
    except (TypeError, ValueError):
        correct = 0
    if not 0 <= correct < max(1, len(options)):
        correct = 0
    difficulty = _text(raw.get("difficulty")).lower()
    return QuizItem(
        id=_text(raw.get("id")) or f"quiz-{idx + 1}",
        question=_text(raw.get("question")),
        options=options,
        correct_index=correct,
        explanation=_text(raw.get("explanation")),
        difficulty=difficulty if difficulty in ("easy", "medium", "hard") else "medium",
    )


def parse_generated_content(raw: str) -> GeneratedContent:
    """Parse (possibly fenced) LLM JSON, filling ids and defaults the model left out."""
    body = (raw or "").strip()
    m = _FENCE_RE.match(body)
    if m:
        body = m.group(1)
    try:
        data = json.loads(body or "{}")
    except json.JSONDecodeError as e:
        raise GenerationError(f"LLM returned invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise GenerationError("LLM returned JSON that is not an object")

    notes = []
    for i, n in enumerate(x for x in (data.get("notes") or []) if isinstance(x, dict)):
        section = NoteSection.model_validate(n)
        if not section.id:
            section.id = f"note-{i + 1}"
        notes.append(section)

    quizzes = [_quiz(q, i) for i, q in enumerate(x for x in (data.get("quizzes") or []) if isinstance(x, dict))]

    flashcards = [
        Flashcard(
            id=_text(c.get("id")) or f"card-{i + 1}",
            front=_text(c.get("front")),
            back=_text(c.get("back")),
            tag=_text(c.get("tag")) or None,
        )
        for i, c in enumerate(x for x in (data.get("flashcards") or []) if isinstance(x, dict))
    ]

    return GeneratedContent(
        title=_text(data.get("title")),
        summary_for_chat=_text(data.get("summaryForChat")) or DEFAULT_SUMMARY,
        notes=notes,
        quizzes=quizzes,
        flashcards=flashcards,
    )


async def generate_study_material(text: str, plan: Plan, llm: LLM) -> GeneratedContent:
    limits = get_chat_limits(plan)
    messages = [
        {"role": "system", "content": _SYSTEM},
        {"role": "user", "content": build_generation_prompt(text, plan)},
    ]
    raw = await llm.generate(
        messages,
        model=resolve_model(limits),
        max_tokens=settings.GENERATION_MAX_TOKENS,
        temperature=settings.GENERATION_TEMPERATURE,
        json_mode=True,
    )
    content = parse_generated_content(raw)
    if not content.notes:
        raise GenerationError("LLM returned no note sections")
    logger.info(
        "generated %d notes, %d quizzes, %d flashcards (plan=%s)",
        len(content.notes), len(content.quizzes), len(content.flashcards), plan,
    )
    return content
