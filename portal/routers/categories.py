# portal/routers/categories.py
from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from portal.db.session import get_db
from portal.schemas import category_out
from portal.services import categories as category_service
from portal.utils.authz import require_admin

router = APIRouter(
    prefix="/api/categories",
    tags=["admin-categories"],
    dependencies=[Depends(require_admin)],
)


def _flag(v) -> bool:
    return str(v).strip().lower() in ("1", "true", "yes")


@router.get("")
def list_categories(db: Session = Depends(get_db)):
    rows = category_service.list_categories(db)
    return {"categories": [category_out(c, n) for c, n in rows]}


@router.get("/{category_id}")
def get_category(category_id: int, db: Session = Depends(get_db)):
    category = category_service.get_category(db, category_id)
    return category_out(category, category_service.article_count(db, category.id))


@router.post("", status_code=201)
def create_category(payload: dict = Body(...), db: Session = Depends(get_db)):
    """Body: {"name": "...", "description": "..."}"""
    payload = payload or {}
    category = category_service.create_category(db, payload.get("name"), payload.get("description"))
    return {"success": True, "category": category_out(category)}


@router.put("/{category_id}")
def update_category(category_id: int, payload: dict = Body(...), db: Session = Depends(get_db)):
    payload = payload or {}
    category = category_service.update_category(
        db, category_id, payload.get("name"), payload.get("description")
    )
    return {
        "success": True,
        "category": category_out(category, category_service.article_count(db, category.id)),
    }


@router.delete("/{category_id}")
def delete_category(category_id: int, force: str = "false", db: Session = Depends(get_db)):
    """?force=true moves remaining articles to "Uncategorized" before deleting."""
    moved = category_service.delete_category(db, category_id, force=_flag(force))
    return {"success": True, "articlesMoved": moved}
