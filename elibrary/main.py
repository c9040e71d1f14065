"""
main.py – FastAPI application for the E-Library API.

Routers
-------
/api/auth       – Signup, login, current user, logout.
/api/resources  – Upload, browse, fetch, delete and download-count resources.
/api/comments   – Comment on a resource and list its comments.
/api/ratings    – Rate a resource (one rating per user and resource).
/api/bookmarks  – The caller's saved resources.
/api/admin      – Moderation queue, user blocking and catalog stats.
/uploads        – Uploaded files, served statically.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from elibrary import config
from elibrary.database.connection import init_db
from elibrary.router import (
    admin_routes,
    auth_routes,
    bookmark_routes,
    comment_routes,
    rating_routes,
    resource_routes,
)
from elibrary.utilis import file_storage

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
)
logger = logging.getLogger("elibrary.api")


# ---------------------------------------------------------------------------
# App lifespan – create tables and the upload directory once
# ---------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting E-Library backend …")
    init_db()
    file_storage.upload_root()
    yield
    logger.info("Shutting down E-Library backend.")


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="E-Library API",
    description=(
        "Share study documents: upload, browse and search the catalog, "
        "bookmark, comment and rate. Uploads by non-admins wait in a "
        "moderation queue until an admin approves them."
    ),
    version="1.0.0",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Authentication", "description": "Token issuance and the current user."},
        {"name": "Resources", "description": "Uploaded documents and their metadata."},
        {"name": "Comments", "description": "Public discussion on a resource."},
        {"name": "Ratings", "description": "1–5 star ratings, one per user and resource."},
        {"name": "Bookmarks", "description": "Resources saved by the current user."},
        {"name": "Admin", "description": "Moderation, user blocking and stats."},
        {"name": "System", "description": "Health checks."},
    ],
)

app.add_middleware(GZipMiddleware, minimum_size=1024)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(
        "%s %s %s %.1fms",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
    )
    return response


SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    if request.url.path.startswith(f"/{config.UPLOAD_URL_PREFIX}/"):
        # User-supplied files must never run as active content on this origin
        response.headers.setdefault("Content-Security-Policy", "default-src 'none'; sandbox")
    return response


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------
@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Validation failed", "errors": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(auth_routes.router)
app.include_router(resource_routes.router)
app.include_router(comment_routes.router)
app.include_router(rating_routes.router)
app.include_router(bookmark_routes.router)
app.include_router(admin_routes.router)


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------
@app.get("/", tags=["System"])
def root():
    return {"message": "E-Library API running"}


@app.get("/health", tags=["System"])
def health():
    return {"status": "ok"}


# The directory is created in lifespan; don't require it at import time
app.mount(
    f"/{config.UPLOAD_URL_PREFIX}",
    StaticFiles(directory=config.UPLOAD_DIR, check_dir=False),
    name="uploads",
)


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    import uvicorn

    uvicorn.run("elibrary.main:app", host="0.0.0.0", port=config.PORT)
