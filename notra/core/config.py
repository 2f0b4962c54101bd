from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    APP_NAME: str = "Notra"
    ENV: str = "local"
    DATA_DIR: str = "./.notra-data"
    DB_PATH: str = "./.notra-data/notra.sqlite3"

    # plan used when a request doesn't say (or says something unknown)
    DEFAULT_PLAN: str = "free"  # free|pro

    # llm
    LLM_PROVIDER: str = "openai"  # openai|ollama
    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    OLLAMA_BASE_URL: str = "http://localhost:11434"
    OLLAMA_MODEL: str = "llama3.1"
    OLLAMA_KEEP_ALIVE: str = "30m"

    # retrieval knobs (lexical, per-request index)
    RAG_HEADING_BOOST: float = 2.0
    RAG_FUZZY: float = 0.2  # max edit distance as a fraction of term length
    RAG_PREFIX: bool = True
    RAG_MAX_QUERY_TERMS: int = 64  # distinct question terms used for ranking

    # prompt context formatting
    CONTEXT_SECTION_PREVIEW_CHARS: int = 400
    CONTEXT_BULLETS_BUDGET_RATIO: float = 0.8

    # note generation
    GENERATION_MAX_INPUT_CHARS: int = 8000
    GENERATION_MAX_TOKENS: int = 3000
    GENERATION_TEMPERATURE: float = 0.7

    # CORS (for browser-based UIs)
    # Comma-separated list of allowed origins.
    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"

    class Config:
        env_file = ".env"
        extra = "ignore"

settings = Settings()
