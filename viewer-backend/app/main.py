from contextlib import asynccontextmanager
from fastapi import FastAPI
from app.sheet import router as sheet_router
from app.logging_setup import configure_logging, logging_middleware
from suggest.providers import build_provider_from_env
import app.cache as cache_mod
import logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Built inside the server's running loop; a dead Redis yields NoopCache
    cache = await cache_mod.build_cache_from_env()
    app.state.cache = cache
    logger.info("cache ready", extra={"cache": type(cache).__name__})
    try:
        yield
    finally:
        await cache.close()
        app.state.cache = cache_mod.NoopCache()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="sheet-map backend", lifespan=lifespan)
    app.middleware("http")(logging_middleware)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    app.include_router(sheet_router)

    provider = build_provider_from_env()
    if provider is not None:
        app.state.llm_provider = provider

    # Requests served outside the lifespan (bare TestClient) run uncached
    app.state.cache = cache_mod.NoopCache()
    return app

app = create_app()
