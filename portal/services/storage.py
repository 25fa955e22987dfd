# portal/services/storage.py
"""
S3-compatible object storage (Cloudflare R2, Linode, AWS).

Objects are written with `put` and never overwritten: every upload gets
fresh keys. `discard_urls` removes objects a record no longer points at.
"""
from __future__ import annotations

import logging
from typing import Optional

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import Request

from portal import config
from portal.exceptions import DependencyFailureError

logger = logging.getLogger(__name__)

# Hosts that serve the S3 API only; objects are not publicly readable there.
PRIVATE_API_HOSTS = ("r2.cloudflarestorage.com",)


class ObjectStore:
    def __init__(self, client, bucket: str, public_base: str = "", endpoint: str = ""):
        self.client = client
        self.bucket = bucket
        self.public_base = (public_base or "").rstrip("/")
        self.endpoint = (endpoint or "").rstrip("/")

    @classmethod
    def from_env(cls) -> "ObjectStore":
        if not (config.S3_ENDPOINT and config.S3_ACCESS_KEY and config.S3_SECRET_KEY and config.S3_BUCKET):
            raise DependencyFailureError(
                "Object storage",
                "not configured (S3_ENDPOINT, S3_ACCESS_KEY, S3_SECRET_KEY, S3_BUCKET)",
            )
        client = boto3.client(
            "s3",
            region_name=config.S3_REGION or None,
            endpoint_url=config.S3_ENDPOINT,
            aws_access_key_id=config.S3_ACCESS_KEY,
            aws_secret_access_key=config.S3_SECRET_KEY,
            config=BotoConfig(s3={"addressing_style": "virtual"}),
        )
        return cls(client, config.S3_BUCKET, config.ASSETS_BASE_URL, config.S3_ENDPOINT)

    def public_url(self, key: str) -> str:
        key = key.lstrip("/")
        if self.public_base:
            return f"{self.public_base}/{key}"
        return f"{self.endpoint}/{self.bucket}/{key}"

    def key_for_url(self, url: Optional[str]) -> Optional[str]:
        """Inverse of public_url; None for URLs this store did not issue."""
        if not url:
            return None
        prefix = self.public_url("")
        if not url.startswith(prefix):
            return None
        return url[len(prefix):] or None

    def put(self, key: str, body: bytes, content_type: str) -> None:
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=body,
                ContentType=content_type or "application/octet-stream",
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 put failed for %s: %s", key, e)
            raise DependencyFailureError("Object storage", "upload failed") from e
        logger.info("Stored %s (%d bytes)", key, len(body))

    def delete(self, key: str) -> None:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 delete failed for %s: %s", key, e)
            raise DependencyFailureError("Object storage", "delete failed") from e
        logger.info("Deleted %s", key)

    def discard_urls(self, *urls: Optional[str]) -> list[str]:
        """
        Best-effort delete of the objects behind `urls`. Foreign URLs are
        skipped; failures are logged. Returns the keys actually deleted.
        """
        deleted = []
        for url in urls:
            key = self.key_for_url(url)
            if not key:
                continue
            try:
                self.delete(key)
            except DependencyFailureError:
                logger.warning("Left orphaned object %s", key)
                continue
            deleted.append(key)
        return deleted


def check_public_base(public_base: str, endpoint: str) -> list[str]:
    """
    Startup sanity check for the public asset base. Returns the warnings it
    logged; never raises.
    """
    warnings = []
    base = (public_base or "").rstrip("/")
    if not base:
        warnings.append(
            "ASSETS_BASE_URL is not set; image URLs will point at the S3 endpoint "
            "and may not be publicly readable"
        )
    elif any(host in base for host in PRIVATE_API_HOSTS) or (
        endpoint and base.startswith(endpoint.rstrip("/"))
    ):
        warnings.append(
            f"ASSETS_BASE_URL ({base}) looks like the private S3 API endpoint; "
            "uploads will succeed but images will not load publicly"
        )
    for message in warnings:
        logger.warning(message)
    return warnings


def get_storage(request: Request) -> ObjectStore:
    """FastAPI dependency; the client is built on first use and cached on app.state."""
    store = getattr(request.app.state, "storage", None)
    if store is None:
        store = ObjectStore.from_env()
        request.app.state.storage = store
    return store


def get_optional_storage(request: Request) -> Optional[ObjectStore]:
    """Like get_storage, but None when storage is not configured (cleanup paths)."""
    try:
        return get_storage(request)
    except DependencyFailureError:
        return None
