from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.asyncio import Redis

from stampbook import models  # noqa: F401
from stampbook.api.routes.auth import router as auth_router
from stampbook.api.routes.calendar import router as calendar_router
from stampbook.api.routes.children import router as children_router
from stampbook.api.routes.goals import router as goals_router
from stampbook.api.routes.pokemon import router as pokemon_router
from stampbook.api.routes.stamp_cards import router as stamp_cards_router
from stampbook.api.routes.stamp_types import router as stamp_types_router
from stampbook.api.routes.stamps import router as stamps_router
from stampbook.api.routes.statistics import router as statistics_router
from stampbook.core.config import settings
from stampbook.core.exceptions import register_exception_handlers
from stampbook.core.logging import setup_json_logging
from stampbook.core.rate_limit import RateLimitMiddleware
from stampbook.core.request_logging import RequestLoggingMiddleware

setup_json_logging()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    redis = Redis.from_url(settings.redis_url, encoding="utf-8", decode_responses=True)
    app.state.redis = redis
    try:
        yield
    finally:
        await redis.aclose()


app = FastAPI(title="stampbook api", lifespan=lifespan)
register_exception_handlers(app)
allowed_origins = [item.strip() for item in settings.cors_allowed_origins.split(",") if item.strip()]
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-Id"],
)
app.include_router(auth_router)
app.include_router(children_router)
app.include_router(stamps_router)
app.include_router(stamp_cards_router)
app.include_router(stamp_types_router)
app.include_router(goals_router)
app.include_router(statistics_router)
app.include_router(calendar_router)
app.include_router(pokemon_router)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "env": settings.app_env, "timezone": settings.timezone}
