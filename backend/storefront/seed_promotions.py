"""初期プロモーションコード投入スクリプト

python -m storefront.seed_promotions
既存コードは上書きしない。
"""
from storefront.core.database import SessionLocal
from storefront.models.promotion import Promotion

DEFAULT_PROMOTIONS = [
    {"code": "AN6810", "discount_percent": 10, "min_order": 200},
]


def seed(db) -> int:
    """未登録のコードのみ作成し、作成件数を返す"""
    created = 0
    for data in DEFAULT_PROMOTIONS:
        existing = db.query(Promotion).filter(Promotion.code == data["code"]).first()
        if existing:
            print(f"既に存在します: {data['code']}")
            continue
        db.add(Promotion(
            code=data["code"],
            discount_percent=data["discount_percent"],
            min_order=data["min_order"],
            is_active=True,
            valid_from=None,
            valid_until=None,
            usage_limit=None,
            used_count=0,
        ))
        created += 1
    db.commit()
    return created


def main():
    db = SessionLocal()
    try:
        created = seed(db)
        print(f"プロモーションコード投入完了: {created}件")
    finally:
        db.close()


if __name__ == "__main__":
    main()
