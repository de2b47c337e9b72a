"""Storefront Reviews FastAPI application.

Web server for the Reviews & Ratings domain. Commands are processed
synchronously via HTTP; rating recomputation runs inline or on a worker
pool depending on REVIEWS_RECOMPUTE_MODE.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay from reviews/domain.toml:
#   - unset / "test" → in-memory database
#   - "production"   → SQL database, schema created on startup
import os
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from reviews.domain import reviews  # noqa: E402
from reviews.utils.db import setup_db
from reviews.utils.logging import add_context, clear_context, get_logger

reviews.init()

if os.environ.get("PROTEAN_ENV") == "production":
    setup_db(reviews)

logger = get_logger(__name__)

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront Reviews API",
    description="Product reviews, helpfulness votes and rating aggregates",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the Reviews domain context and per-request log context."""
    if not request.url.path.startswith("/reviews"):
        # Health check, docs, etc.
        return await call_next(request)

    clear_context()
    add_context(
        request_id=request.headers.get("x-request-id") or str(uuid.uuid4()),
        user_id=request.headers.get("x-user-id"),
    )
    with reviews.domain_context():
        response = await call_next(request)
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from reviews.api.errors import register_error_handlers  # noqa: E402
from reviews.api.routes import review_router  # noqa: E402

app.include_router(review_router)
register_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {
                "reviews": {"name": reviews.name},
            },
        }
    )
