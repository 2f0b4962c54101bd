from notra.core.config import settings
from notra.core.usage_limits import ChatLimits
from notra.adapters.llm.base import LLM
from notra.adapters.llm.ollama import OllamaLLM
from notra.adapters.llm.openai import OpenAILLM

# Models a caller may ask for explicitly; anything else gets the plan default.
SELECTABLE_MODELS = {"gpt-4o-mini", "gpt-4o"}


def get_llm() -> LLM:
    if (settings.LLM_PROVIDER or "openai").lower() == "ollama":
        return OllamaLLM()
    return OpenAILLM()


def resolve_model(limits: ChatLimits, requested: str | None = None) -> str | None:
    """OpenAI model for a request, or None to let the provider use its configured default.

    Plan model names only make sense for OpenAI; Ollama always runs OLLAMA_MODEL.
    """
    if (settings.LLM_PROVIDER or "openai").lower() == "ollama":
        return None
    if limits.allow_model_choice and requested in SELECTABLE_MODELS:
        return requested
    return limits.model
