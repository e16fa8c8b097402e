from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import require_roles
from app.models.category import Category, Dish
from app.models.user import User
from app.schemas.category import CategoryCreate, CategoryUpdate
from app.services import category_service

router = APIRouter(tags=["categories"])


def _category_out(c: Category, dish_count: int = 0) -> dict:
    return {
        "id": c.id,
        "name": c.name,
        "description": c.description,
        "icon": c.icon,
        "display_order": c.display_order,
        "is_active": c.is_active,
        "dish_count": dish_count,
        "created_at": c.created_at.isoformat() if c.created_at else None,
        "updated_at": c.updated_at.isoformat() if c.updated_at else None,
    }


def _dish_out(d: Dish) -> dict:
    return {
        "id": d.id,
        "category_id": d.category_id,
        "name": d.name,
        "description": d.description,
        "price": float(d.price or 0),
        "is_available": d.is_available,
    }


@router.get("/categories")
def list_categories(limit: int = 50, db: Session = Depends(get_db)):
    rows, total = category_service.list_categories(db, limit=limit)
    return {"total": total, "items": [_category_out(c, n) for c, n in rows]}


@router.get("/categories/{category_id}")
def get_category(category_id: str, db: Session = Depends(get_db)):
    c, n = category_service.get_category(db, category_id)
    return _category_out(c, n)


@router.get("/categories/{category_id}/dishes")
def list_category_dishes(category_id: str, db: Session = Depends(get_db)):
    category_service.get_category(db, category_id)
    return {"items": [_dish_out(d) for d in category_service.list_available_dishes(db, category_id)]}


@router.post("/categories", status_code=201)
def create_category(body: CategoryCreate, db: Session = Depends(get_db),
                    me: User = Depends(require_roles("admin"))):
    c = category_service.create_category(db, body.name, body.description, body.icon, body.display_order)
    return _category_out(c)


@router.put("/categories/{category_id}")
def update_category(category_id: str, body: CategoryUpdate, db: Session = Depends(get_db),
                    me: User = Depends(require_roles("admin"))):
    category_service.update_category(db, category_id, body.model_dump(exclude_unset=True))
    c, n = category_service.get_category(db, category_id)
    return _category_out(c, n)


@router.delete("/categories/{category_id}")
def delete_category(category_id: str, db: Session = Depends(get_db),
                    me: User = Depends(require_roles("admin"))):
    category_service.delete_category(db, category_id)
    return {"ok": True}
