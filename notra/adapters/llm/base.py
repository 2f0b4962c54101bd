from abc import ABC, abstractmethod
from typing import AsyncIterator

class LLM(ABC):
    """Chat completion service. `messages` are OpenAI-style {"role", "content"} dicts."""

    @abstractmethod
    async def generate(
        self,
        messages: list[dict],
        *,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float = 0.7,
        json_mode: bool = False,
    ) -> str:
        ...

    # Optional streaming interface. Adapters can override for true token streaming.
    async def stream_generate(
        self,
        messages: list[dict],
        *,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float = 0.7,
    ) -> AsyncIterator[str]:
        yield await self.generate(messages, model=model, max_tokens=max_tokens, temperature=temperature)
