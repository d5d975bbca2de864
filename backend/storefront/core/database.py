from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from storefront.core.config import settings


def _engine_options(url: str) -> dict:
    """SQLiteはコネクションプール設定を受け付けないため分岐"""
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": 10,
        "max_overflow": 20,
        "pool_recycle": 3600,
        "pool_pre_ping": True,
    }


engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    **_engine_options(settings.DATABASE_URL),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    pass


def get_db():
    """FastAPI依存関数: DBセッション取得"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
