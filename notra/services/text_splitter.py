"""Sentence/paragraph splitting for building searchable note text."""

from __future__ import annotations

import functools
import logging
import re

logger = logging.getLogger(__name__)

_FALLBACK_SPLIT_RE = re.compile(r"[.!?]+")


@functools.lru_cache(maxsize=1)
def _get_tokenizer():
    """Punkt tokenizer, trained English model when the nltk data is installed."""
    from nltk.tokenize.punkt import PunktSentenceTokenizer, PunktTokenizer

    try:
        return PunktTokenizer("english")
    except LookupError:
        # punkt_tab not downloaded; untrained Punkt still splits on . ! ?
        logger.debug("nltk punkt_tab data not found, using untrained Punkt tokenizer")
        return PunktSentenceTokenizer()


def _fallback_split(text: str) -> list[str]:
    return [s.strip() for s in _FALLBACK_SPLIT_RE.split(text) if s.strip()]


def split_into_sentences(text: str | None) -> list[str]:
    if not text or not text.strip():
        return []
    try:
        sentences = _get_tokenizer().tokenize(text)
        return [s.strip() for s in sentences if s and s.strip()]
    except Exception:
        logger.exception("sentence split failed, falling back to punctuation split")
        return _fallback_split(text)


def split_into_paragraphs(text: str | None, max_length: int = 500) -> list[str]:
    """Greedily pack sentences into paragraphs of at most `max_length` chars.

    A sentence longer than `max_length` on its own becomes its own paragraph;
    nothing is cut here.
    """
    paragraphs: list[str] = []
    current = ""
    for sentence in split_into_sentences(text):
        candidate = f"{current} {sentence}" if current else sentence
        if current and len(candidate) > max_length:
            paragraphs.append(current)
            current = sentence
        else:
            current = candidate
    if current.strip():
        paragraphs.append(current.strip())
    return paragraphs
