from datetime import timedelta
from decimal import Decimal

import pytest

from storefront.services.promotion_validator import utcnow

URL = "/api/admin/promotions"


def test_requires_login(client, redis_server):
    resp = client.get(URL)

    assert resp.status_code == 401


def test_requires_admin_role(client, login):
    session_id = login(role="customer")
    client.cookies.set("session_id", session_id)

    resp = client.get(URL)

    assert resp.status_code == 403


def test_admin_session_is_accepted(client, login, make_promotion):
    make_promotion("SAVE15")
    client.cookies.set("session_id", login(role="admin"))

    resp = client.get(URL)

    assert resp.status_code == 200
    assert resp.json()["pagination"]["total"] == 1


def test_create_promotion(admin_client):
    resp = admin_client.post(URL, json={
        "code": "SUMMER20",
        "discountPercent": 20,
        "minOrder": 300,
        "validFrom": "2026-07-01T00:00:00Z",
        "validUntil": "2026-08-31T23:59:59+09:00",
        "usageLimit": 100,
    })

    assert resp.status_code == 201
    body = resp.json()
    assert body["code"] == "SUMMER20"
    assert body["discountPercent"] == 20.0
    assert body["minOrder"] == 300.0
    assert body["isActive"] is True
    assert body["usageLimit"] == 100
    assert body["usedCount"] == 0
    # UTCに正規化して保存し、"Z" 付きで返す
    assert body["validFrom"] == "2026-07-01T00:00:00Z"
    assert body["validUntil"] == "2026-08-31T14:59:59Z"
    assert body["createdAt"].endswith("Z")
    assert body["updatedAt"].endswith("Z")


def test_create_duplicate_code_is_rejected(admin_client, make_promotion):
    make_promotion("SAVE15")

    resp = admin_client.post(URL, json={"code": "SAVE15", "discountPercent": 5, "minOrder": 0})

    assert resp.status_code == 400


@pytest.mark.parametrize("payload", [
    {"code": "", "discountPercent": 10, "minOrder": 0},
    {"code": "   ", "discountPercent": 10, "minOrder": 0},
    {"code": "X", "discountPercent": 0, "minOrder": 0},
    {"code": "X", "discountPercent": 101, "minOrder": 0},
    {"code": "X", "discountPercent": 10, "minOrder": -5},
    {"code": "X", "discountPercent": 10, "minOrder": 0, "usageLimit": 0},
    {"code": "X", "discountPercent": 10, "minOrder": 0,
     "validFrom": "2026-02-01T00:00:00", "validUntil": "2026-01-01T00:00:00"},
])
def test_create_rejects_invalid_payload(admin_client, payload):
    resp = admin_client.post(URL, json=payload)

    assert resp.status_code == 422
    assert resp.json()["detail"]


def test_get_promotion(admin_client, make_promotion):
    promo = make_promotion("SAVE15", min_order=Decimal("25.50"))

    resp = admin_client.get(f"{URL}/{promo.id}")

    assert resp.status_code == 200
    assert resp.json()["minOrder"] == 25.5


def test_get_missing_promotion(admin_client, db_session):
    assert admin_client.get(f"{URL}/999").status_code == 404


def test_list_filters_and_paginates(admin_client, make_promotion):
    now = utcnow()
    make_promotion("A", is_active=True)
    make_promotion("B", is_active=False)
    make_promotion("C", is_active=True, valid_until=now - timedelta(days=1))

    active = admin_client.get(URL, params={"isActive": "true"}).json()
    assert {p["code"] for p in active["data"]} == {"A", "C"}

    expired = admin_client.get(URL, params={"expired": "true"}).json()
    assert [p["code"] for p in expired["data"]] == ["C"]

    page = admin_client.get(URL, params={"limit": 2, "page": 2}).json()
    assert page["pagination"] == {"page": 2, "limit": 2, "total": 3, "totalPages": 2}
    assert [p["code"] for p in page["data"]] == ["A"]


def test_list_caps_page_size(admin_client, db_session):
    resp = admin_client.get(URL, params={"limit": 500})

    assert resp.json()["pagination"]["limit"] == 100


def test_update_partial_fields(admin_client, make_promotion):
    promo = make_promotion("SAVE15", usage_limit=10, valid_until=utcnow() + timedelta(days=3))

    resp = admin_client.put(f"{URL}/{promo.id}", json={
        "discountPercent": 25,
        "isActive": False,
        "usageLimit": None,
        "validUntil": None,
    })

    assert resp.status_code == 200
    body = resp.json()
    assert body["code"] == "SAVE15"
    assert body["discountPercent"] == 25.0
    assert body["isActive"] is False
    assert body["usageLimit"] is None
    assert body["validUntil"] is None


def test_update_null_code_is_ignored(admin_client, make_promotion):
    promo = make_promotion("SAVE15")

    resp = admin_client.put(f"{URL}/{promo.id}", json={"code": None})

    assert resp.status_code == 200
    assert resp.json()["code"] == "SAVE15"


def test_update_code_collision(admin_client, make_promotion):
    make_promotion("TAKEN")
    promo = make_promotion("MINE")

    resp = admin_client.put(f"{URL}/{promo.id}", json={"code": "TAKEN"})

    assert resp.status_code == 400


def test_update_window_conflict_with_stored_value(admin_client, make_promotion):
    promo = make_promotion("SAVE15", valid_until=utcnow() + timedelta(days=1))

    resp = admin_client.put(f"{URL}/{promo.id}", json={
        "validFrom": (utcnow() + timedelta(days=5)).isoformat(),
    })

    assert resp.status_code == 400


def test_update_missing_promotion(admin_client, db_session):
    assert admin_client.put(f"{URL}/999", json={"isActive": False}).status_code == 404


def test_delete_promotion(admin_client, make_promotion):
    promo = make_promotion("SAVE15")

    resp = admin_client.delete(f"{URL}/{promo.id}")

    assert resp.status_code == 200
    assert admin_client.get(f"{URL}/{promo.id}").status_code == 404


def test_delete_missing_promotion(admin_client, db_session):
    assert admin_client.delete(f"{URL}/999").status_code == 404


def test_created_promotion_validates(admin_client):
    admin_client.post(URL, json={"code": "NEW10", "discountPercent": 10, "minOrder": 50})

    resp = admin_client.post("/api/promotions/validate", json={"code": "NEW10", "orderAmount": 80})

    assert resp.json()["valid"] is True
    assert resp.json()["promotion"]["discountAmount"] == 8.0


def test_created_code_is_stripped_and_redeemable(admin_client):
    resp = admin_client.post(URL, json={"code": " SPRING ", "discountPercent": 10, "minOrder": 0})

    assert resp.status_code == 201
    assert resp.json()["code"] == "SPRING"

    for entered in ["SPRING", " SPRING "]:
        result = admin_client.post("/api/promotions/validate", json={"code": entered, "orderAmount": 100})
        assert result.json()["valid"] is True


def test_updated_code_is_stripped(admin_client, make_promotion):
    promo = make_promotion("OLD")

    resp = admin_client.put(f"{URL}/{promo.id}", json={"code": "  NEW  "})

    assert resp.status_code == 200
    assert resp.json()["code"] == "NEW"


def test_update_rejects_blank_code(admin_client, make_promotion):
    promo = make_promotion("SAVE15")

    resp = admin_client.put(f"{URL}/{promo.id}", json={"code": "   "})

    assert resp.status_code == 422
    assert admin_client.get(f"{URL}/{promo.id}").json()["code"] == "SAVE15"
