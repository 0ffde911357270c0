"""
Promo code eligibility and discount rules.

Order creation and apply-promo both go through ``find_valid_promo``, so a
code is rejected the same way on either path: inactive, outside its date
window, exhausted, below the minimum order amount, or already used by the
customer.
"""
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional

from plantshop.models import models
from plantshop.utils.exceptions import ValidationError
from plantshop.utils.helpers import money, parse_timestamp, utcnow
from plantshop.utils.logging import get_logger

log = get_logger(__name__)

PERCENTAGE = "percentage"
FIXED = "fixed"


class InvalidPromoCode(ValidationError):
    """The code cannot be used by anyone right now."""
    message = "Invalid promo code"


def normalize_code(code: Any) -> str:
    return str(code or "").strip().upper()


def discount_for(promo: models.PromoCode, items_total: Decimal) -> Decimal:
    """Discount on the item subtotal only, clamped to [0, items_total]."""
    if promo.discount_type == PERCENTAGE:
        discount = (items_total * money(promo.discount_value) / 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    else:
        discount = money(promo.discount_value)
    return max(Decimal("0"), min(discount, items_total))


def check_usable(promo: Optional[models.PromoCode], now: Optional[datetime] = None) -> models.PromoCode:
    if promo is None:
        raise InvalidPromoCode()
    if not promo.is_active:
        raise InvalidPromoCode("Promo code is not active")
    now = now or datetime.now(timezone.utc).replace(tzinfo=None)
    if now < parse_timestamp(promo.start_date):
        raise InvalidPromoCode("Promo code is not active yet")
    if now > parse_timestamp(promo.end_date):
        raise InvalidPromoCode("Promo code has expired")
    if promo.max_uses is not None and promo.current_uses >= promo.max_uses:
        raise InvalidPromoCode("Promo code usage limit reached")
    return promo


def check_minimum(promo: models.PromoCode, items_total: Decimal) -> None:
    if promo.min_order_amount and items_total < money(promo.min_order_amount):
        raise ValidationError(
            f"Minimum order amount for this promo code: {money(promo.min_order_amount)}",
            errors={"promoCode": "Order total below promo minimum"},
        )


def has_used(promo: models.PromoCode, user_id: int, cur: Any = None) -> bool:
    return models.PromoCodeUse.get_one(cur=cur, promo_code_id=promo.id, user_id=user_id) is not None


def find_valid_promo(code: Any, items_total: Decimal, user_id: Optional[int], cur: Any = None) -> models.PromoCode:
    promo = check_usable(models.PromoCode.get_one(cur=cur, code=normalize_code(code)))
    check_minimum(promo, items_total)
    if user_id is not None and has_used(promo, user_id, cur=cur):
        raise ValidationError("You have already used this promo code", errors={"promoCode": "Already used"})
    return promo


def record_use(promo: models.PromoCode, user_id: int, order_id: int, discount: Decimal, cur: Any) -> None:
    """Count the use and remember who used it; caller owns the transaction."""
    cur.execute(
        "UPDATE promo_code_table SET current_uses = current_uses + 1, updated_at = ? WHERE id = ?",
        (utcnow(), promo.id),
    )
    models.PromoCodeUse.new(
        cur=cur,
        promo_code_id=promo.id,
        user_id=user_id,
        order_id=order_id,
        discount_amount=float(discount),
        used_at=utcnow(),
    )
    log.info("Promo %s used by user %s on order %s (discount %s)", promo.code, user_id, order_id, discount)


def release_uses(order: models.Order, cur: Any) -> int:
    """Undo every promo use recorded for the order. Returns how many were released."""
    uses = models.PromoCodeUse.get(cur=cur, order_id=order.id)
    for use in uses:
        cur.execute(
            "UPDATE promo_code_table SET current_uses = MAX(current_uses - 1, 0), updated_at = ? WHERE id = ?",
            (utcnow(), use.promo_code_id),
        )
        use.delete(cur=cur)
        log.info("Released promo use %s for order %s", use.promo_code_id, order.id)
    return len(uses)


def preview(code: Any, cart_total: Decimal, user_id: Optional[int] = None) -> dict:
    promo = find_valid_promo(code, cart_total, user_id)
    return {
        "code": promo.code,
        "description": promo.description,
        "discount": float(discount_for(promo, cart_total)),
        "discountType": promo.discount_type,
        "discountValue": promo.discount_value,
    }
