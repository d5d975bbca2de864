"""購入者向け: プロモーションコード検証"""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from storefront.core.database import get_db
from storefront.core.rate_limit import limiter, PROMOTION_VALIDATE_RATE_LIMIT
from storefront.schemas.promotion import PromotionValidateRequest
from storefront.services.promotion_store import PromotionStore
from storefront.services.promotion_validator import (
    InvalidPromotionInput, PromotionErrorKind, PromotionValidator, ValidationResult,
)

router = APIRouter(prefix="/api/promotions", tags=["promotions"])


def get_promotion_validator(db: Session = Depends(get_db)) -> PromotionValidator:
    """FastAPI依存関数: リクエストごとのバリデータ"""
    return PromotionValidator(PromotionStore(db))


def serialize_result(result: ValidationResult) -> dict:
    if result.valid:
        return {
            "valid": True,
            "promotion": {
                "id": result.promotion_id,
                "code": result.code,
                "discountPercent": float(result.discount_percent),
                "discountAmount": float(result.discount_amount),
                "minOrder": float(result.min_order),
            },
        }
    body = {
        "valid": False,
        "error": result.message,
        "reason": result.reason.value,
    }
    if result.reason == PromotionErrorKind.BELOW_MINIMUM:
        body["minOrder"] = float(result.min_order)
    return body


@router.post("/validate")
@limiter.limit(PROMOTION_VALIDATE_RATE_LIMIT)
async def validate_promotion(
    request: Request,
    payload: PromotionValidateRequest,
    validator: PromotionValidator = Depends(get_promotion_validator),
):
    """コードの適用可否と割引額を返す

    業務ルールによる不適用も200で返し、valid=false と理由を含める。
    """
    try:
        result = validator.validate(payload.code, payload.order_amount)
    except InvalidPromotionInput as e:
        return JSONResponse(
            status_code=400,
            content={"valid": False, "error": str(e), "reason": e.reason.value},
        )
    return serialize_result(result)
