# portal/main.py
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.gzip import GZipMiddleware
from starlette.middleware.sessions import SessionMiddleware

from portal import config
from portal.exception_handlers import (
    app_exception_handler,
    database_exception_handler,
    unhandled_exception_handler,
)
from portal.exceptions import AppException
from portal.logging_config import setup_logging
from portal.services.storage import check_public_base

# ---- Routers ----
from portal.routers import articles as articles_router
from portal.routers import auth as auth_router
from portal.routers import categories as categories_router
from portal.routers import public as public_router
from portal.routers import uploads as uploads_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    # Misconfigured public base only breaks image rendering; warn, keep serving
    check_public_base(config.ASSETS_BASE_URL, config.S3_ENDPOINT)
    logger.info("Portal API started")
    yield


app = FastAPI(title="Portal News API", lifespan=lifespan)

# =============================================================================
# Middleware
# =============================================================================
app.add_middleware(
    SessionMiddleware,
    secret_key=config.SECRET_KEY,
    session_cookie=config.SESSION_COOKIE,
    max_age=config.SESSION_MAX_AGE,
    same_site="lax",
    https_only=config.COOKIE_SECURE,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(GZipMiddleware, minimum_size=500)

# =============================================================================
# Errors
# =============================================================================
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(SQLAlchemyError, database_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)


@app.get("/health")
def health():
    return {"status": "ok", "time": datetime.now(timezone.utc).isoformat()}


# Routers
app.include_router(auth_router.router)        # /api/auth/...
app.include_router(articles_router.router)    # /api/articles/...
app.include_router(categories_router.router)  # /api/categories/...
app.include_router(uploads_router.router)     # /api/upload/...
app.include_router(public_router.router)      # /api/public/...
