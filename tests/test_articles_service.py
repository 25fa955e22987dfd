import pytest
from sqlalchemy import func, select

from portal.exceptions import InvalidInputError, NotFoundError
from portal.models.article import Article
from portal.services import articles as article_service

CDN = "https://cdn.example.com"


def _featured_ids(db):
    return list(db.execute(select(Article.id).where(Article.is_featured.is_(True))).scalars())


def test_featuring_clears_previous(db, tech, make_article):
    a, b, c = make_article(tech), make_article(tech), make_article(tech)

    article_service.set_featured(db, a.id, True)
    assert _featured_ids(db) == [a.id]

    article_service.set_featured(db, c.id, True)
    assert _featured_ids(db) == [c.id]

    article_service.set_featured(db, c.id, False)
    assert _featured_ids(db) == []
    db.refresh(b)
    assert b.is_featured is False


def test_unfeaturing_other_article_leaves_featured_alone(db, tech, make_article):
    a, b = make_article(tech), make_article(tech)
    article_service.set_featured(db, a.id, True)
    article_service.set_featured(db, b.id, False)
    assert _featured_ids(db) == [a.id]


def test_set_featured_rejects_non_bool(db, tech, make_article):
    a = make_article(tech)
    with pytest.raises(InvalidInputError):
        article_service.set_featured(db, a.id, "true")


def test_set_featured_unknown_article(db):
    with pytest.raises(NotFoundError):
        article_service.set_featured(db, 999, True)


def test_stats_summary(db, tech, make_article):
    assert article_service.stats_summary(db) == {
        "total": 0, "withCover": 0, "withoutCover": 0, "coverPercentage": 0,
    }
    make_article(tech, cover_image_url=f"{CDN}/covers/a.webp")
    make_article(tech)
    make_article(tech)

    assert article_service.stats_summary(db) == {
        "total": 3, "withCover": 1, "withoutCover": 2, "coverPercentage": 33,
    }


def test_change_category(db, tech, make_category, make_article):
    biz = make_category("Business")
    a = make_article(tech)

    moved = article_service.change_category(db, a.id, str(biz.id))
    assert moved.category_id == biz.id

    with pytest.raises(InvalidInputError):
        article_service.change_category(db, a.id, None)
    with pytest.raises(NotFoundError):
        article_service.change_category(db, a.id, 999)
    with pytest.raises(NotFoundError):
        article_service.change_category(db, 999, biz.id)


def test_replacing_cover_discards_old_objects(db, tech, make_article, storage, s3):
    s3.objects["covers/old.webp"] = {}
    s3.objects["thumbs/old.webp"] = {}
    a = make_article(
        tech,
        cover_image_url=f"{CDN}/covers/old.webp",
        thumbnail_url=f"{CDN}/thumbs/old.webp",
    )

    updated = article_service.set_cover(
        db, a.id, f"{CDN}/covers/new.webp", f"{CDN}/thumbs/new.webp", storage=storage
    )
    assert updated.cover_image_url == f"{CDN}/covers/new.webp"
    assert sorted(s3.deleted) == ["covers/old.webp", "thumbs/old.webp"]


def test_foreign_cover_urls_are_not_deleted(db, tech, make_article, storage, s3):
    a = make_article(tech, cover_image_url="https://elsewhere.example.org/pic.jpg")
    cleared = article_service.set_cover(db, a.id, None, None, storage=storage)
    assert cleared.cover_image_url is None
    assert s3.deleted == []


def test_delete_article(db, tech, make_article, storage, s3):
    a = make_article(tech, cover_image_url=f"{CDN}/covers/x.webp", thumbnail_url=f"{CDN}/thumbs/x.webp")
    article_id = a.id

    article_service.delete_article(db, article_id, storage=storage)
    assert db.execute(select(func.count(Article.id))).scalar_one() == 0
    assert sorted(s3.deleted) == ["covers/x.webp", "thumbs/x.webp"]

    with pytest.raises(NotFoundError):
        article_service.delete_article(db, article_id, storage=storage)
