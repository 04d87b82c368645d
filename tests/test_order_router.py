from conftest import balance_of, supplier_user
from diamondapi.models.order import OrderStatus

BASE = "/api/v1/orders"


def _order_json(supplier_id, **overrides):
    body = {
        "player_account_id": "98765432",
        "server_id": "3012",
        "in_game_name": "Lesley",
        "skin_name": "Dragon Tamer",
        "diamond_price": 1200,
        "supplier_id": supplier_id,
    }
    body.update(overrides)
    return body


def test_requires_authentication(api):
    res = api.client.get(BASE)
    assert res.status_code == 401
    body = res.json()
    assert body["success"] is False
    assert body["error"]["code"] == "AUTH_001"


def test_admin_creates_order(api, db, admin, factory):
    supplier = factory.supplier(balance=10000)
    api.login_as(admin)

    res = api.client.post(BASE, json=_order_json(supplier.id))

    assert res.status_code == 201
    order = res.json()["data"]["order"]
    assert order["status"] == "PENDING"
    assert order["supplier"]["id"] == supplier.id
    assert order["assigned_by"]["email"] == "admin@example.com"
    assert balance_of(db, supplier.id) == 8800


def test_create_validation_error(api, admin, factory):
    supplier = factory.supplier()
    api.login_as(admin)

    res = api.client.post(BASE, json=_order_json(supplier.id, diamond_price=-5))

    assert res.status_code == 422
    assert res.json()["error"]["code"] == "VALIDATION_001"


def test_viewer_cannot_create(api, viewer, factory):
    supplier = factory.supplier()
    api.login_as(viewer)

    res = api.client.post(BASE, json=_order_json(supplier.id))

    assert res.status_code == 403
    assert res.json()["error"]["code"] == "AUTH_002"


def test_list_with_filters(api, admin, factory):
    supplier = factory.supplier()
    factory.order(supplier, admin=admin, skin_name="Abyss Blade")
    factory.order(supplier, admin=admin, skin_name="Neon Witch", status=OrderStatus.COMPLETED)
    api.login_as(admin)

    res = api.client.get(
        BASE, params={"exclude_status": "COMPLETED", "search": "abyss", "sort": "skin_name", "order": "asc"}
    )

    assert res.status_code == 200
    data = res.json()["data"]
    assert data["count"] == 1
    assert data["orders"][0]["skin_name"] == "Abyss Blade"


def test_supplier_lifecycle_via_patch(api, db, admin, factory):
    supplier = factory.supplier(balance=10000)
    order = factory.order(supplier, admin=admin, diamond_price=500)
    api.login_as(supplier_user(db, supplier))

    res = api.client.patch(f"{BASE}/{order.id}", json={"status": "FOLLOWED"})
    assert res.status_code == 200
    assert res.json()["data"]["order"]["followed_at"] is not None

    res = api.client.patch(f"{BASE}/{order.id}", json={"status": "FAILED"})
    assert res.status_code == 200
    assert res.json()["data"]["order"]["balance_deducted_at"] is None
    assert balance_of(db, supplier.id) == 10000

    res = api.client.patch(f"{BASE}/{order.id}", json={"status": "REFUNDED"})
    assert res.status_code == 403


def test_supplier_gets_not_found_for_foreign_order(api, db, admin, factory):
    own = factory.supplier()
    foreign = factory.order(factory.supplier(), admin=admin)
    api.login_as(supplier_user(db, own))

    assert api.client.get(f"{BASE}/{foreign.id}").status_code == 404
    res = api.client.patch(f"{BASE}/{foreign.id}", json={"status": "FOLLOWED"})
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "NOT_FOUND_001"


def test_invalid_status_value(api, admin, factory):
    order = factory.order(factory.supplier(), admin=admin)
    api.login_as(admin)

    res = api.client.patch(f"{BASE}/{order.id}", json={"status": "SHIPPED"})

    assert res.status_code == 422
    assert res.json()["error"]["code"] == "INVALID_STATE_001"

    res = api.client.get(BASE, params={"status": "SHIPPED"})
    assert res.status_code == 422
    assert res.json()["error"]["code"] == "INVALID_STATE_001"


def test_non_status_validation_error(api, admin, factory):
    order = factory.order(factory.supplier(), admin=admin)
    api.login_as(admin)

    res = api.client.patch(f"{BASE}/{order.id}", json={"supplier_id": 0})

    assert res.status_code == 422
    assert res.json()["error"]["code"] == "VALIDATION_001"


def test_admin_reassigns_and_deletes(api, db, admin, factory):
    source = factory.supplier(balance=10000)
    target = factory.supplier(balance=5000)
    order = factory.order(source, admin=admin, diamond_price=700)
    api.login_as(admin)

    res = api.client.patch(f"{BASE}/{order.id}", json={"supplier_id": target.id})
    assert res.status_code == 200
    assert res.json()["data"]["order"]["supplier"]["id"] == target.id
    assert balance_of(db, source.id) == 10000
    assert balance_of(db, target.id) == 4300

    res = api.client.delete(f"{BASE}/{order.id}")
    assert res.status_code == 200
    assert res.json()["data"] == {
        "order_id": order.id,
        "refunded_amount": 700,
        "message": "Order deleted",
    }
    assert balance_of(db, target.id) == 5000

    assert api.client.get(f"{BASE}/{order.id}").status_code == 404
