import uuid
from datetime import datetime, timezone
from sqlalchemy import func, case
from sqlalchemy.orm import Session
from app.core.errors import ValidationError, NotFoundError
from app.models.category import Category, Dish


def _with_dish_count(db: Session):
    dish_count = func.sum(case((Dish.is_available == True, 1), else_=0))
    return (
        db.query(Category, func.coalesce(dish_count, 0).label("dish_count"))
        .outerjoin(Dish, Dish.category_id == Category.id)
        .group_by(Category.id)
    ), dish_count


def list_categories(db: Session, limit: int = 50) -> tuple[list[tuple[Category, int]], int]:
    q, dish_count = _with_dish_count(db)
    rows = q.order_by(Category.display_order.asc(), func.coalesce(dish_count, 0).desc()).limit(min(max(limit, 1), 200)).all()
    total = db.query(func.count(Category.id)).scalar()
    return [(c, int(n or 0)) for c, n in rows], int(total or 0)


def get_category(db: Session, category_id: str) -> tuple[Category, int]:
    q, _ = _with_dish_count(db)
    row = q.filter(Category.id == category_id).first()
    if not row:
        raise NotFoundError("category not found")
    return row[0], int(row[1] or 0)


def list_available_dishes(db: Session, category_id: str) -> list[Dish]:
    return (
        db.query(Dish)
        .filter(Dish.category_id == category_id, Dish.is_available == True)
        .order_by(Dish.name.asc())
        .all()
    )


def create_category(db: Session, name: str, description: str | None = None, icon: str | None = None, display_order: int | None = 0) -> Category:
    if not (name or "").strip():
        raise ValidationError("name is required")
    c = Category(
        id=str(uuid.uuid4()),
        name=name.strip(),
        description=description,
        icon=icon or None,
        display_order=display_order or 0,
        is_active=True,
    )
    db.add(c)
    db.commit()
    db.refresh(c)
    return c


def update_category(db: Session, category_id: str, changes: dict) -> Category:
    c = db.get(Category, category_id)
    if not c:
        raise NotFoundError("category not found")
    if "name" in changes and changes["name"] is not None and not changes["name"].strip():
        raise ValidationError("name cannot be empty")
    for key in ("name", "description", "icon", "display_order", "is_active"):
        if changes.get(key) is not None:
            setattr(c, key, changes[key])
    c.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(c)
    return c


def delete_category(db: Session, category_id: str) -> None:
    c = db.get(Category, category_id)
    if not c:
        raise NotFoundError("category not found")
    in_use = db.query(func.count(Dish.id)).filter(Dish.category_id == category_id).scalar()
    if in_use:
        raise ValidationError("category is used by dishes and cannot be deleted")
    db.delete(c)
    db.commit()
