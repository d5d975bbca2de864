import os
import secrets

# storefront の import より前に設定する (settings / engine はimport時に生成)
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("DEBUG", "false")

from decimal import Decimal

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.core.database import Base, get_db
from storefront.core.redis import get_redis
from storefront.core.session import SESSION_PREFIX
from storefront.main import app
from storefront.models.promotion import Promotion
from storefront.routers.deps import require_admin

test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=test_engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def make_promotion(db_session):
    """DBにプロモーションを作成するファクトリ"""

    def _make(code: str = "SAVE15", **overrides) -> Promotion:
        values = {
            "code": code,
            "is_active": True,
            "valid_from": None,
            "valid_until": None,
            "min_order": Decimal("0"),
            "discount_percent": Decimal("15"),
            "usage_limit": None,
            "used_count": 0,
        }
        values.update(overrides)
        promo = Promotion(**values)
        db_session.add(promo)
        db_session.commit()
        db_session.refresh(promo)
        return promo

    return _make


@pytest.fixture
def client(db_session):
    """認証なしのクライアント (DBのみ差し替え)"""

    def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_client(client):
    """管理者セッション済みとして扱うクライアント"""
    app.dependency_overrides[require_admin] = lambda: {"user_id": "1", "role": "admin"}
    return client


@pytest.fixture
def redis_server():
    """テストごとに独立したfakeredisサーバー"""
    server = fakeredis.FakeServer()

    async def _get_redis():
        return fakeredis.FakeAsyncRedis(server=server, decode_responses=True)

    app.dependency_overrides[get_redis] = _get_redis
    yield server


@pytest.fixture
def login(redis_server):
    """ログイン済みセッションをfakeredisに直接書き込み、session_idを返す"""

    def _login(role: str = "admin") -> str:
        session_id = secrets.token_hex(32)
        r = fakeredis.FakeRedis(server=redis_server, decode_responses=True)
        r.hset(f"{SESSION_PREFIX}{session_id}", mapping={
            "user_id": "1",
            "role": role,
            "email": "staff@example.com",
        })
        return session_id

    return _login
