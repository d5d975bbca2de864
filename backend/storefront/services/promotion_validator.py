"""プロモーションコード検証

コードと注文金額を受け取り、適用可否と割引額を判定する。
判定は読み取りのみで、used_count の加算は注文確定処理側の責務。
"""
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from enum import Enum
from typing import Callable, Optional, Protocol

from storefront.models.promotion import Promotion
from storefront.core.logging import get_logger

logger = get_logger(__name__)

CENT = Decimal("0.01")


class PromotionErrorKind(str, Enum):
    INVALID_INPUT = "InvalidInput"
    NOT_FOUND = "NotFound"
    INACTIVE = "Inactive"
    EXPIRED = "Expired"
    NOT_YET_VALID = "NotYetValid"
    BELOW_MINIMUM = "BelowMinimum"
    USAGE_LIMIT_REACHED = "UsageLimitReached"


MESSAGES = {
    PromotionErrorKind.NOT_FOUND: "プロモーションコードが見つかりません",
    PromotionErrorKind.INACTIVE: "このプロモーションコードは無効です",
    PromotionErrorKind.EXPIRED: "このプロモーションコードは有効期限切れです",
    PromotionErrorKind.NOT_YET_VALID: "このプロモーションコードはまだ利用できません",
    PromotionErrorKind.USAGE_LIMIT_REACHED: "このプロモーションコードは使用回数の上限に達しています",
}


class InvalidPromotionInput(ValueError):
    """入力値不正 (業務ルールによる不適用とは区別する)"""

    reason = PromotionErrorKind.INVALID_INPUT


class PromotionLookup(Protocol):
    def find_by_code(self, code: str) -> Optional[Promotion]:
        ...


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    reason: Optional[PromotionErrorKind] = None
    message: Optional[str] = None
    promotion_id: Optional[int] = None
    code: Optional[str] = None
    discount_percent: Optional[Decimal] = None
    discount_amount: Optional[Decimal] = None
    min_order: Optional[Decimal] = None


def utcnow() -> datetime:
    """DB保存形式に合わせたnaive UTC現在時刻"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """aware datetimeはUTCに変換してtzinfoを外す"""
    if dt is None or dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def to_decimal(value) -> Decimal:
    """金額・割合をDecimalに変換。floatは表示値 (str) 経由で変換"""
    if isinstance(value, bool):
        raise InvalidPromotionInput("金額は数値で指定してください")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise InvalidPromotionInput("金額は有限の数値で指定してください")
        return Decimal(str(value))
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidPromotionInput("金額は数値で指定してください")


def calculate_discount(order_amount: Decimal, discount_percent: Decimal) -> Decimal:
    """割引額 = 注文金額 × 割引率 / 100 (小数第2位で四捨五入)

    桁数が既定精度 (28桁) を超える金額でもquantizeできるよう精度を広げて計算する
    """
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, order_amount.adjusted() + discount_percent.adjusted() + 8)
        return (order_amount * discount_percent / Decimal(100)).quantize(CENT, rounding=ROUND_HALF_UP)


class PromotionValidator:
    def __init__(self, store: PromotionLookup, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.clock = clock

    def validate(self, code: str, order_amount) -> ValidationResult:
        """コードの適用可否を判定する

        判定順序はユーザー向けメッセージに影響するため固定:
        存在 → 有効フラグ → 有効期限 → 開始日時 → 最低注文金額 → 使用回数上限

        Raises:
            InvalidPromotionInput: コード未入力、注文金額が負数・NaN・無限大
        """
        code, amount = self._check_input(code, order_amount)

        promo = self.store.find_by_code(code)
        if promo is None:
            return self._decline(code, PromotionErrorKind.NOT_FOUND)

        if not promo.is_active:
            return self._decline(code, PromotionErrorKind.INACTIVE)

        # 境界 (valid_until == now) は有効扱い
        now = to_naive_utc(self.clock())
        valid_until = to_naive_utc(promo.valid_until)
        if valid_until is not None and valid_until < now:
            return self._decline(code, PromotionErrorKind.EXPIRED)

        valid_from = to_naive_utc(promo.valid_from)
        if valid_from is not None and valid_from > now:
            return self._decline(code, PromotionErrorKind.NOT_YET_VALID)

        min_order = to_decimal(promo.min_order or 0)
        if amount < min_order:
            return self._decline(
                code,
                PromotionErrorKind.BELOW_MINIMUM,
                message=f"このプロモーションコードは{min_order:,.2f}以上のご注文で利用できます",
                min_order=min_order,
            )

        used_count = promo.used_count or 0
        if promo.usage_limit is not None and used_count >= promo.usage_limit:
            return self._decline(code, PromotionErrorKind.USAGE_LIMIT_REACHED)

        discount_percent = to_decimal(promo.discount_percent)
        discount_amount = calculate_discount(amount, discount_percent)
        logger.debug(f"プロモーション適用可: code={code}, discount={discount_amount}")
        return ValidationResult(
            valid=True,
            promotion_id=promo.id,
            code=promo.code,
            discount_percent=discount_percent,
            discount_amount=discount_amount,
            min_order=min_order,
        )

    @staticmethod
    def _check_input(code: str, order_amount) -> tuple[str, Decimal]:
        if not isinstance(code, str) or not code.strip():
            raise InvalidPromotionInput("プロモーションコードを入力してください")
        if order_amount is None:
            raise InvalidPromotionInput("注文金額を指定してください")
        amount = to_decimal(order_amount)
        if not amount.is_finite():
            raise InvalidPromotionInput("金額は有限の数値で指定してください")
        if amount < 0:
            raise InvalidPromotionInput("注文金額は0以上で指定してください")
        return code.strip(), amount

    @staticmethod
    def _decline(
        code: str,
        reason: PromotionErrorKind,
        message: Optional[str] = None,
        min_order: Optional[Decimal] = None,
    ) -> ValidationResult:
        logger.info(f"プロモーション適用不可: code={code}, reason={reason.value}")
        return ValidationResult(
            valid=False,
            reason=reason,
            message=message or MESSAGES[reason],
            min_order=min_order,
        )
