import json
import logging
from typing import AsyncIterator

import httpx

from notra.core.config import settings
from notra.adapters.llm.base import LLM

logger = logging.getLogger(__name__)

class OllamaLLM(LLM):
    def _payload(self, messages, model, max_tokens, temperature, stream: bool) -> dict:
        options = {"temperature": temperature}
        if max_tokens:
            options["num_predict"] = max_tokens
        return {
            "model": model or settings.OLLAMA_MODEL,
            "messages": messages,
            "stream": stream,
            "keep_alive": settings.OLLAMA_KEEP_ALIVE,
            "options": options,
        }

    async def generate(self, messages, *, model=None, max_tokens=None, temperature=0.7, json_mode=False) -> str:
        payload = self._payload(messages, model, max_tokens, temperature, stream=False)
        if json_mode:
            payload["format"] = "json"
        async with httpx.AsyncClient(timeout=180) as client:
            r = await client.post(f"{settings.OLLAMA_BASE_URL}/api/chat", json=payload)
            r.raise_for_status()
            return (r.json().get("message") or {}).get("content", "")

    async def stream_generate(self, messages, *, model=None, max_tokens=None, temperature=0.7) -> AsyncIterator[str]:
        # Ollama streams newline-delimited JSON objects when stream=true.
        payload = self._payload(messages, model, max_tokens, temperature, stream=True)
        async with httpx.AsyncClient(timeout=None) as client:
            async with client.stream("POST", f"{settings.OLLAMA_BASE_URL}/api/chat", json=payload) as r:
                r.raise_for_status()
                async for line in r.aiter_lines():
                    if not line:
                        continue
                    try:
                        obj = json.loads(line)
                    except json.JSONDecodeError:
                        logger.warning("skipping malformed ollama stream line: %.80s", line)
                        continue
                    if obj.get("done") is True:
                        break
                    delta = (obj.get("message") or {}).get("content") or ""
                    if delta:
                        yield delta
