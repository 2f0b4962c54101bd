"""System prompt resources.

Prompts are looked up by key (`<name>.<language>`) from a static registry.
`PromptCache` is owned by the app (one per process) and remembers each
translated (name, language) pair. Languages without a translation resolve to
the default-language entry, so the cache is bounded by the registry.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

_CHAT_GENERAL_EN = """You are Notra, an intelligent learning assistant for university students.
Your tone is professional, encouraging, and concise.

- Math & science: explain step by step and give the specific answer.
- Analysis: be structured (use headings and bullet points).
- Charts: if asked to visualize data, output a ```json:chart block with
  "type" (bar|line|area|pie), "title", "data" ([{"name", "value"}]), "xLabel", "yLabel".
  Do not output plotting code unless explicitly requested."""

_CHAT_GENERAL_ZH = """你是 Notra，一名面向大学生的智能学习助手。
语气专业、鼓励、简洁。

- 数学与理科：逐步讲解，并给出明确答案。
- 分析：结构清晰（使用标题和要点）。
- 图表：如需可视化数据，请输出 ```json:chart 代码块，包含
  "type"（bar|line|area|pie）、"title"、"data"（[{"name", "value"}]）、"xLabel"、"yLabel"。"""

_CHAT_NOTE_EN = """You are Notra, a study assistant answering questions about the student's own notes.
Prefer the NOTES below when they are relevant and say so when they don't cover the question.
Keep answers short and concrete.

SUMMARY:
{summary}

NOTES:
{context}"""

_CHAT_NOTE_ZH = """你是 Notra，根据学生自己的笔记回答问题的学习助手。
优先使用下面的笔记内容；如果笔记没有涉及该问题，请说明。
回答简短具体。

摘要：
{summary}

笔记：
{context}"""

PROMPT_REGISTRY: dict[str, str] = {
    "chat.general.en": _CHAT_GENERAL_EN,
    "chat.general.zh": _CHAT_GENERAL_ZH,
    "chat.note.en": _CHAT_NOTE_EN,
    "chat.note.zh": _CHAT_NOTE_ZH,
}


class PromptLoader:
    def __init__(self, registry: dict[str, str] | None = None):
        self._registry = dict(PROMPT_REGISTRY if registry is None else registry)

    def load(self, key: str) -> str | None:
        return self._registry.get(key)


class PromptCache:
    def __init__(self, loader: PromptLoader | None = None, default_language: str = "en"):
        self._loader = loader or PromptLoader()
        self.default_language = default_language
        self._resolved: dict[tuple[str, str], str] = {}

    def __len__(self) -> int:
        return len(self._resolved)

    def get(self, name: str, language: str | None = None) -> str:
        lang = (language or self.default_language).strip().lower().split("-")[0]
        key = (name, lang)
        if key in self._resolved:
            return self._resolved[key]

        text = self._loader.load(f"{name}.{lang}")
        if text is None:
            # Untranslated languages share the default entry; only known pairs are kept.
            if lang != self.default_language:
                logger.debug("no %s prompt for language=%s, using %s", name, lang, self.default_language)
            key = (name, self.default_language)
            if key in self._resolved:
                return self._resolved[key]
            text = self._loader.load(f"{name}.{self.default_language}")
        if text is None:
            raise KeyError(f"unknown prompt: {name}")
        self._resolved[key] = text
        return text
