# portal/utils/view_tracker.py
"""
Per-client record of recently viewed article slugs.

Stored in a signed cookie as {slug: first_view_epoch_seconds}. A slug counts
as "already viewed" for VIEW_WINDOW_SECONDS after the first view; expired
entries are dropped whenever the cookie is read.

Browsers discard a Set-Cookie larger than about 4 KB and keep the old value,
so the oldest entries are dropped until the serialized cookie fits
MAX_COOKIE_BYTES.
"""
from __future__ import annotations

import time
from typing import Optional

from itsdangerous import BadSignature, URLSafeSerializer

from portal import config

MAX_COOKIE_BYTES = 3800

_serializer = URLSafeSerializer(config.SECRET_KEY, salt="portal-viewed")


def _now(now: Optional[float] = None) -> int:
    return int(time.time() if now is None else now)


class ViewedSlugs:
    def __init__(self, entries: Optional[dict] = None, window: int = config.VIEW_WINDOW_SECONDS):
        self.window = window
        self.entries: dict[str, int] = dict(entries or {})
        self.changed = False

    @classmethod
    def load(cls, raw: Optional[str], *, now: Optional[float] = None,
             window: int = config.VIEW_WINDOW_SECONDS) -> "ViewedSlugs":
        entries: dict[str, int] = {}
        if raw:
            try:
                data = _serializer.loads(raw)
            except BadSignature:
                data = {}
            if isinstance(data, dict):
                entries = {
                    str(k): int(v)
                    for k, v in data.items()
                    if isinstance(v, (int, float))
                }
        tracker = cls(entries, window=window)
        tracker.prune(now)
        return tracker

    def prune(self, now: Optional[float] = None) -> None:
        now = _now(now)
        fresh = {s: t for s, t in self.entries.items() if now - t < self.window}
        if len(fresh) != len(self.entries):
            self.changed = True
        self.entries = fresh

    def seen(self, slug: str) -> bool:
        return slug in self.entries

    def mark(self, slug: str, *, now: Optional[float] = None) -> None:
        self.entries[slug] = _now(now)
        self.changed = True
        if len(self.dumps()) <= MAX_COOKIE_BYTES:
            return

        # Drop oldest first until the cookie fits again
        oldest = sorted((s for s in self.entries if s != slug), key=self.entries.get)
        for stale in oldest:
            del self.entries[stale]
            if len(self.dumps()) <= MAX_COOKIE_BYTES:
                break

    def dumps(self) -> str:
        return _serializer.dumps(self.entries)
