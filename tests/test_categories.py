import uuid
from decimal import Decimal

from app.models.category import Dish

BASE = "/api/v1"


def _dish(db, category_id, name, available=True):
    db.add(Dish(id=str(uuid.uuid4()), category_id=category_id, name=name, price=Decimal("12.50"), is_available=available))
    db.commit()


def test_admin_crud_and_public_reads(client, users, db_session):
    h = users.admin_headers
    r = client.post(f"{BASE}/categories", json={"name": "Starters", "icon": "leaf", "display_order": 2}, headers=h)
    assert r.status_code == 201
    starters = r.json()["id"]
    mains = client.post(f"{BASE}/categories", json={"name": "Mains", "display_order": 1}, headers=h).json()["id"]

    _dish(db_session, starters, "Soup")
    _dish(db_session, starters, "Bruschetta")
    _dish(db_session, starters, "Hidden", available=False)

    listing = client.get(f"{BASE}/categories").json()
    assert listing["total"] == 2
    assert [c["id"] for c in listing["items"]] == [mains, starters]
    assert listing["items"][1]["dish_count"] == 2

    dishes = client.get(f"{BASE}/categories/{starters}/dishes").json()["items"]
    assert [d["name"] for d in dishes] == ["Bruschetta", "Soup"]
    assert dishes[0]["price"] == 12.5

    r = client.put(f"{BASE}/categories/{mains}", json={"description": "Big plates", "is_active": False}, headers=h)
    assert r.status_code == 200
    assert r.json()["description"] == "Big plates"
    assert r.json()["is_active"] is False


def test_delete_refused_while_dishes_exist(client, users, db_session):
    h = users.admin_headers
    cid = client.post(f"{BASE}/categories", json={"name": "Desserts"}, headers=h).json()["id"]
    _dish(db_session, cid, "Tiramisu", available=False)

    r = client.delete(f"{BASE}/categories/{cid}", headers=h)
    assert r.status_code == 400

    db_session.query(Dish).delete()
    db_session.commit()
    assert client.delete(f"{BASE}/categories/{cid}", headers=h).status_code == 200
    assert client.get(f"{BASE}/categories/{cid}").status_code == 404


def test_writes_require_admin(client, users):
    assert client.post(f"{BASE}/categories", json={"name": "X"}, headers=users.client_headers).status_code == 403
    assert client.post(f"{BASE}/categories", json={"name": "X"}).status_code == 401


def test_blank_name_rejected(client, users):
    r = client.post(f"{BASE}/categories", json={"name": "  "}, headers=users.admin_headers)
    assert r.status_code == 400
    assert r.json() == {"error": "name is required"}
