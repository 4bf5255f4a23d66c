import logging

from fastapi import FastAPI

from app.core.config import get_settings
from app.core.redis import is_redis_available
from app.api.v1.router import api_router

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Prescription Backend",
)


@app.get("/health", tags=["health"])
async def root_health() -> dict:
    """
    Global health check endpoint. The cache is optional: "degraded" means
    drafts are not remembered between requests and sign-out cannot revoke.
    """
    return {"status": "ok", "cache": "ok" if is_redis_available() else "degraded"}


# Mount versioned API router
app.include_router(api_router, prefix=settings.api_v1_prefix)
