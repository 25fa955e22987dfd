# tests/conftest.py
import os

# Must be set before portal.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("ASSETS_BASE_URL", "https://cdn.example.com")

from datetime import datetime, timedelta, timezone

import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import portal.models  # noqa: F401
from portal.db.base import Base
from portal.db.session import get_db
from portal.main import app
from portal.models.article import Article, ArticleStatus
from portal.models.category import Category
from portal.models.user import User
from portal.services.storage import ObjectStore
from portal.utils.security import hash_password
from portal.utils.text import slugify

PUBLIC_BASE = "https://cdn.example.com"
ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "secret123"
T0 = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeS3Client:
    """Stands in for a boto3 S3 client: put_object / delete_object only."""

    def __init__(self):
        self.objects = {}
        self.fail_on = set()
        self.deleted = []

    def put_object(self, Bucket, Key, Body, ContentType):
        if any(Key.startswith(prefix) for prefix in self.fail_on):
            raise ClientError({"Error": {"Code": "500", "Message": "boom"}}, "PutObject")
        self.objects[Key] = {"Body": Body, "ContentType": ContentType, "Bucket": Bucket}

    def delete_object(self, Bucket, Key):
        self.objects.pop(Key, None)
        self.deleted.append(Key)


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def s3():
    return FakeS3Client()


@pytest.fixture
def storage(s3):
    return ObjectStore(s3, "test-bucket", PUBLIC_BASE, "https://acc.r2.cloudflarestorage.com")


@pytest.fixture
def client(db, storage):
    app.dependency_overrides[get_db] = lambda: db
    app.state.storage = storage
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    app.state.storage = None


@pytest.fixture
def admin_user(db):
    user = User(email=ADMIN_EMAIL, name="Admin", password_hash=hash_password(ADMIN_PASSWORD))
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def admin_client(client, admin_user):
    resp = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert resp.status_code == 200
    return client


@pytest.fixture
def make_category(db):
    def _make(name="Technology", **kw):
        category = Category(name=name, slug=slugify(name), **kw)
        db.add(category)
        db.commit()
        return category

    return _make


@pytest.fixture
def tech(make_category):
    return make_category("Technology")


@pytest.fixture
def make_article(db):
    counter = {"n": 0}

    def _make(category, title=None, status=ArticleStatus.PUBLISHED, published_at=None, **kw):
        counter["n"] += 1
        n = counter["n"]
        title = title or f"Article {n}"
        if published_at is None and status == ArticleStatus.PUBLISHED:
            published_at = T0 + timedelta(minutes=n)
        article = Article(
            title=title,
            slug=kw.pop("slug", None) or f"{slugify(title)}-{n}",
            content=kw.pop("content", f"Body of {title}"),
            excerpt=kw.pop("excerpt", None),
            author=kw.pop("author", "Desk"),
            status=status,
            published_at=published_at,
            category_id=category.id,
            **kw,
        )
        db.add(article)
        db.commit()
        return article

    return _make
