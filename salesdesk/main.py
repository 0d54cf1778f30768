"""FastAPI application entrypoint. No business logic; only wiring and middleware."""

import logging

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from salesdesk.api import router as api_router
from salesdesk.core.config import settings
from salesdesk.core.errors import register_error_handlers
from salesdesk.core.session_bridge import mirror_session_cookies

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)

app = FastAPI(
    title="SalesDesk API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.APP_ENV == "dev" else settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
# Refreshed session cookies reach the response even when a handler fails with an ApiError.
app.middleware("http")(mirror_session_cookies)

register_error_handlers(app)

app.include_router(api_router, prefix=settings.API_PREFIX)


@app.get("/")
def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "SalesDesk API"}
