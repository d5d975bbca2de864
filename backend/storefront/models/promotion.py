from sqlalchemy import Column, Integer, String, Boolean, DateTime, Numeric, func
from storefront.core.database import Base


class Promotion(Base):
    __tablename__ = "promotions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(100), unique=True, nullable=False, comment="プロモーションコード")
    is_active = Column(Boolean, nullable=False, default=True)
    valid_from = Column(DateTime, nullable=True, comment="適用開始日時 (UTC)")
    valid_until = Column(DateTime, nullable=True, comment="適用終了日時 (UTC)")
    min_order = Column(Numeric(10, 2), nullable=False, default=0, comment="最低注文金額")
    discount_percent = Column(Numeric(5, 2), nullable=False, comment="割引率 (%)")
    usage_limit = Column(Integer, nullable=True, comment="最大使用回数 (null=無制限)")
    used_count = Column(Integer, nullable=False, default=0, comment="使用済み回数")
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())
