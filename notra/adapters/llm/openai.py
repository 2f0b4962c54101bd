from typing import AsyncIterator

from notra.core.config import settings
from notra.adapters.llm.base import LLM

class OpenAILLM(LLM):
    def _client(self):
        if not settings.OPENAI_API_KEY:
            raise RuntimeError("OPENAI_API_KEY is not set")
        from openai import AsyncOpenAI
        return AsyncOpenAI(api_key=settings.OPENAI_API_KEY)

    async def generate(self, messages, *, model=None, max_tokens=None, temperature=0.7, json_mode=False) -> str:
        kwargs = {}
        if max_tokens:
            kwargs["max_tokens"] = max_tokens
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        resp = await self._client().chat.completions.create(
            model=model or settings.OPENAI_MODEL,
            messages=messages,
            temperature=temperature,
            **kwargs,
        )
        return resp.choices[0].message.content or ""

    async def stream_generate(self, messages, *, model=None, max_tokens=None, temperature=0.7) -> AsyncIterator[str]:
        kwargs = {"max_tokens": max_tokens} if max_tokens else {}
        stream = await self._client().chat.completions.create(
            model=model or settings.OPENAI_MODEL,
            messages=messages,
            temperature=temperature,
            stream=True,
            **kwargs,
        )
        async for event in stream:
            # usage/keep-alive chunks can arrive without choices
            delta = event.choices[0].delta.content if event.choices else None
            if delta:
                yield delta
