from conftest import balance_of, supplier_user

BASE = "/api/v1/suppliers"


def test_admin_creates_supplier(api, admin):
    api.login_as(admin)

    res = api.client.post(
        BASE,
        json={
            "name": "Supplier Three",
            "email": "supplier3@example.com",
            "password": "supplier123",
            "diamond_balance": 800,
            "low_balance_threshold": 1000,
        },
    )

    assert res.status_code == 201
    supplier = res.json()["data"]["supplier"]
    assert supplier["diamond_balance"] == 800
    assert supplier["balance_health"] == "low"
    assert supplier["user"]["role"] == "SUPPLIER"


def test_duplicate_email_conflict(api, admin, factory, db):
    existing = supplier_user(db, factory.supplier())
    api.login_as(admin)

    res = api.client.post(
        BASE,
        json={"name": "Copycat", "email": existing.email, "password": "supplier123"},
    )

    assert res.status_code == 409
    assert res.json()["error"]["code"] == "CONFLICT_001"


def test_list_and_get(api, viewer, factory):
    first = factory.supplier(name="Alpha Gems")
    factory.supplier(name="Beta Gems")
    api.login_as(viewer)

    res = api.client.get(BASE, params={"sort": "name", "order": "asc"})
    assert res.status_code == 200
    names = [s["name"] for s in res.json()["data"]["suppliers"]]
    assert names == ["Alpha Gems", "Beta Gems"]

    res = api.client.get(f"{BASE}/{first.id}", params={"include_orders": "true"})
    assert res.status_code == 200
    assert res.json()["data"]["supplier"]["orders"] == []


def test_admin_updates_supplier(api, admin, factory):
    supplier = factory.supplier(name="Old Name")
    api.login_as(admin)

    res = api.client.patch(f"{BASE}/{supplier.id}", json={"low_balance_threshold": 30000})

    assert res.status_code == 200
    updated = res.json()["data"]["supplier"]
    assert updated["name"] == "Old Name"
    assert updated["low_balance_threshold"] == 30000
    assert updated["balance_health"] == "critical"


def test_supplier_adjusts_own_balance(api, db, factory):
    supplier = factory.supplier(balance=1000)
    api.login_as(supplier_user(db, supplier))

    res = api.client.post(
        f"{BASE}/{supplier.id}/balance",
        json={"new_balance": 2500, "reason": "Bought diamonds"},
    )

    assert res.status_code == 200
    data = res.json()["data"]
    assert data["change_amount"] == 1500
    assert data["log_id"] is not None
    assert data["supplier"]["diamond_balance"] == 2500
    assert balance_of(db, supplier.id) == 2500


def test_supplier_cannot_adjust_other(api, db, factory):
    own = factory.supplier()
    other = factory.supplier(balance=1000)
    api.login_as(supplier_user(db, own))

    res = api.client.post(
        f"{BASE}/{other.id}/balance", json={"change_amount": 100, "reason": "Sneaky"}
    )

    assert res.status_code == 404
    assert balance_of(db, other.id) == 1000


def test_adjustment_requires_amount(api, admin, factory):
    supplier = factory.supplier()
    api.login_as(admin)

    res = api.client.post(f"{BASE}/{supplier.id}/balance", json={"reason": "Nothing"})

    assert res.status_code == 422


def test_balance_logs_scoped_to_supplier(api, db, admin, factory):
    own = factory.supplier(balance=1000)
    other = factory.supplier(balance=2000)
    factory.order(own, admin=admin, diamond_price=100)
    api.login_as(supplier_user(db, own))

    res = api.client.get("/api/v1/balance-logs", params={"supplier_id": other.id})

    assert res.status_code == 200
    logs = res.json()["data"]["logs"]
    assert {log["supplier_id"] for log in logs} == {own.id}
    assert [log["change_amount"] for log in logs] == [-100, 1000]
