# 全モデルをインポート (Alembic autogenerate用)
from storefront.models.promotion import Promotion

__all__ = [
    "Promotion",
]
