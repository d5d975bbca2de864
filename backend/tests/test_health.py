from storefront.models.promotion import Promotion
from storefront.routers import health


async def _redis_ok():
    return True


async def _redis_down():
    return False


def test_health_ok_counts_active_promotions(client, make_promotion, monkeypatch):
    make_promotion("A")
    make_promotion("B", is_active=False)
    monkeypatch.setattr(health, "check_redis_connection", _redis_ok)

    resp = client.get("/api/health")

    assert resp.json() == {
        "status": "ok",
        "db": "connected",
        "redis": "connected",
        "activePromotions": 1,
    }


def test_health_degraded_without_redis(client, monkeypatch):
    monkeypatch.setattr(health, "check_redis_connection", _redis_down)

    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json()["status"] == "degraded"
    assert resp.json()["redis"] == "disconnected"
    assert resp.json()["activePromotions"] == 0


def test_health_degraded_without_promotions_table(client, db_session, monkeypatch):
    # 接続はできてもテーブルが読めなければdisconnected扱い
    Promotion.__table__.drop(bind=db_session.get_bind())
    monkeypatch.setattr(health, "check_redis_connection", _redis_ok)

    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json()["status"] == "degraded"
    assert resp.json()["db"] == "disconnected"
    assert resp.json()["activePromotions"] is None
