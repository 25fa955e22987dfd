# portal/config.py
from __future__ import annotations

import os

from dotenv import load_dotenv

# ---- Load env (.env) ----
load_dotenv()


def _flag(name: str, default: str = "0") -> bool:
    return (os.getenv(name, default) or "").strip().lower() in ("1", "true", "yes")


# ---- Database ----
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./portal.sqlite3")
# Railway/Heroku style URLs
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

# ---- Sessions / cookies ----
SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
SESSION_COOKIE = os.getenv("SESSION_COOKIE", "admin_session")
SESSION_MAX_AGE = int(os.getenv("SESSION_MAX_AGE", str(7 * 24 * 60 * 60)))
COOKIE_SECURE = _flag("COOKIE_SECURE")

VIEW_COOKIE = os.getenv("VIEW_COOKIE", "portal_viewed")
VIEW_WINDOW_SECONDS = int(os.getenv("VIEW_WINDOW_SECONDS", str(24 * 60 * 60)))

CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
    if o.strip()
]

# ---- S3 / R2 object storage ----
S3_BUCKET = os.getenv("S3_BUCKET", "")
S3_REGION = os.getenv("S3_REGION", "auto")
S3_ENDPOINT = os.getenv("S3_ENDPOINT", "")  # e.g. https://<account>.r2.cloudflarestorage.com
S3_ACCESS_KEY = os.getenv("S3_ACCESS_KEY", "")
S3_SECRET_KEY = os.getenv("S3_SECRET_KEY", "")
ASSETS_BASE_URL = (os.getenv("ASSETS_BASE_URL") or "").rstrip("/")

# ---- Logging ----
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
