from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Plan = Literal["free", "pro"]
Role = Literal["system", "user", "assistant"]
SessionType = Literal["file", "audio", "video"]
Difficulty = Literal["easy", "medium", "hard"]


class NotraModel(BaseModel):
    """Base for records that travel as camelCase JSON (LLM output, frontend)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


_SCALARS = (str, int, float, bool)


def _as_text(v: Any) -> str:
    # Numbers become text; objects and lists are not usable as prose.
    if isinstance(v, str):
        return v
    return str(v) if isinstance(v, _SCALARS) else ""


def _as_optional_text(v: Any) -> str | None:
    if v is None or not isinstance(v, _SCALARS):
        return None
    return _as_text(v)


def _as_text_list(v: Any) -> list[str]:
    if isinstance(v, _SCALARS):
        v = [v]
    if not isinstance(v, (list, tuple)):
        return []
    return [t for t in (_as_text(x) for x in v) if t.strip()]


class TableRow(NotraModel):
    label: str = ""
    value: str = ""

    @field_validator("label", "value", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        return _as_text(v)


class NoteSection(NotraModel):
    # Generated by an LLM, so every field is optional and coerced.
    id: str = ""
    heading: str = ""
    content: str = ""
    bullets: list[str] = Field(default_factory=list)
    example: str | None = None
    table_summary: list[TableRow] = Field(default_factory=list)
    concept_explanation: str | None = None
    formula_derivation: str | None = None
    applications: list[str] = Field(default_factory=list)
    common_mistakes: list[str] = Field(default_factory=list)

    @field_validator("id", "heading", "content", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        return _as_text(v)

    @field_validator("example", "concept_explanation", "formula_derivation", mode="before")
    @classmethod
    def _optional_text(cls, v: Any) -> str | None:
        return _as_optional_text(v)

    @field_validator("bullets", "applications", "common_mistakes", mode="before")
    @classmethod
    def _text_list(cls, v: Any) -> list[str]:
        return _as_text_list(v)

    @field_validator("table_summary", mode="before")
    @classmethod
    def _rows(cls, v: Any) -> list[Any]:
        if not isinstance(v, list):
            return []
        return [r for r in v if isinstance(r, (dict, TableRow))]


class ConversationMessage(NotraModel):
    role: Role
    content: str = ""

    @field_validator("content", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        return _as_text(v)


class QuizOption(NotraModel):
    label: str = ""
    text: str = ""


class QuizItem(NotraModel):
    id: str
    question: str = ""
    options: list[QuizOption] = Field(default_factory=list)
    correct_index: int = 0
    explanation: str = ""
    difficulty: Difficulty = "medium"


class Flashcard(NotraModel):
    id: str
    front: str = ""
    back: str = ""
    tag: str | None = None


class NotraSession(NotraModel):
    id: str
    type: SessionType
    title: str
    content_hash: str
    created_at: str
    notes: list[NoteSection] = Field(default_factory=list)
    quizzes: list[QuizItem] = Field(default_factory=list)
    flashcards: list[Flashcard] = Field(default_factory=list)
    summary_for_chat: str = ""
