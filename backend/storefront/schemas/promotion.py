from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_serializer, field_validator, model_validator
from pydantic.alias_generators import to_camel

from storefront.services.promotion_validator import to_naive_utc

# フロントエンド (Next.js) に合わせてJSONはcamelCase
CAMEL_CONFIG = {"alias_generator": to_camel, "populate_by_name": True}


def normalize_code(v: Optional[str]) -> Optional[str]:
    """前後の空白を除去 (検証時の照合と揃える)"""
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError("プロモーションコードを入力してください")
    return v


class PromotionValidateRequest(BaseModel):
    code: str = Field(min_length=1)
    # 文字列の "100" などは受け付けない
    order_amount: float = Field(ge=0, allow_inf_nan=False, strict=True)

    model_config = CAMEL_CONFIG


class PromotionCreate(BaseModel):
    code: str = Field(min_length=1, max_length=100)
    discount_percent: int = Field(ge=1, le=100)
    min_order: float = Field(ge=0, allow_inf_nan=False)
    is_active: Optional[bool] = None
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    usage_limit: Optional[int] = Field(default=None, gt=0)

    model_config = CAMEL_CONFIG

    @field_validator("code")
    @classmethod
    def validate_code(cls, v):
        return normalize_code(v)

    @model_validator(mode="after")
    def check_window(self):
        if self.valid_from and self.valid_until and to_naive_utc(self.valid_from) > to_naive_utc(self.valid_until):
            raise ValueError("validFromはvalidUntil以前の日時を指定してください")
        return self


class PromotionUpdate(BaseModel):
    """部分更新。未指定のフィールドは変更しない (nullは日時・上限のクリア)"""

    code: Optional[str] = Field(default=None, min_length=1, max_length=100)
    discount_percent: Optional[int] = Field(default=None, ge=1, le=100)
    min_order: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    is_active: Optional[bool] = None
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    usage_limit: Optional[int] = Field(default=None, gt=0)

    model_config = CAMEL_CONFIG

    @field_validator("code")
    @classmethod
    def validate_code(cls, v):
        return normalize_code(v)

    @model_validator(mode="after")
    def check_window(self):
        if self.valid_from and self.valid_until and to_naive_utc(self.valid_from) > to_naive_utc(self.valid_until):
            raise ValueError("validFromはvalidUntil以前の日時を指定してください")
        return self


class PromotionInfo(BaseModel):
    id: int
    code: str
    discount_percent: float
    min_order: float
    is_active: bool
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    usage_limit: Optional[int] = None
    used_count: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {**CAMEL_CONFIG, "from_attributes": True}

    @field_serializer("valid_from", "valid_until", "created_at", "updated_at")
    def serialize_utc(self, value: Optional[datetime]) -> Optional[str]:
        """DBのnaive UTCを "Z" 付きISO文字列で返す"""
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
