from fastapi import FastAPI
from notra.core.config import settings
from notra.core.logging import setup_logging
from notra.core.prompts import PromptCache
from notra.services.store_service import init_db
from notra.services.usage_service import UsageMeter

from notra.api.routes_chat import router as chat_router
from notra.api.routes_plans import router as plans_router
from notra.api.routes_process import router as process_router
from notra.api.routes_search import router as search_router
from notra.api.routes_sessions import router as sessions_router

def create_app():
    setup_logging()
    init_db()

    app = FastAPI(title=settings.APP_NAME)
    # process-lifetime state shared by all requests
    app.state.usage_meter = UsageMeter()
    app.state.prompts = PromptCache()

    # Allow browser-based UIs (Next.js) to call the API from localhost
    from fastapi.middleware.cors import CORSMiddleware
    origins = [o.strip() for o in (settings.CORS_ORIGINS or "").split(",") if o.strip()]
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(chat_router)
    app.include_router(search_router)
    app.include_router(process_router)
    app.include_router(sessions_router)
    app.include_router(plans_router)

    @app.get("/health")
    async def health():
        import httpx
        provider = (settings.LLM_PROVIDER or "openai").lower()
        checks = {"llm": False}
        if provider == "ollama":
            try:
                async with httpx.AsyncClient(timeout=3.0) as c:
                    r = await c.get(f"{settings.OLLAMA_BASE_URL.rstrip('/')}/api/tags")
                    checks["llm"] = r.status_code == 200
            except httpx.HTTPError:
                pass
        else:
            checks["llm"] = bool(settings.OPENAI_API_KEY)

        ok = all(checks.values())
        return {"ok": ok, "app": settings.APP_NAME, "env": settings.ENV, "provider": provider, "deps": checks}

    return app

app = create_app()
