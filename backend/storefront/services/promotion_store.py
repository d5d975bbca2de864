"""プロモーション参照ストア (読み取り専用)"""
from typing import Optional
from sqlalchemy.orm import Session

from storefront.models.promotion import Promotion


class PromotionStore:
    """コード検証時の参照先。キャッシュせず毎回DBから最新状態を読む"""

    def __init__(self, db: Session):
        self.db = db

    def find_by_code(self, code: str) -> Optional[Promotion]:
        return self.db.query(Promotion).filter(Promotion.code == code).first()
