"""
Order lifecycle: creation, status changes, deletion and late promo application.

Every operation here runs in one ``db.transaction()``; a raised error rolls
back the order row, stock changes, balance deduction and promo bookkeeping
together.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional

from plantshop.database import db
from plantshop.models import models
from plantshop.models.models import Order, OrderItem, OrderStatus, PaymentMethod, PaymentStatus
from plantshop.utils.exceptions import ConflictError, NotFoundError, PaymentError, ValidationError
from plantshop.utils.helpers import ensure_owner_or_admin, money, utcnow
from plantshop.utils.logging import get_logger

from . import inventory, promo

log = get_logger(__name__)


@dataclass
class OrderRequest:
    user_id: int
    lines: Dict[int, int]
    delivery_amount: Decimal
    payment_method: PaymentMethod
    full_name: str
    address: str
    phone: str
    delivery_type: str
    promo_code: Optional[str] = None
    payment_proof: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)


def merge_lines(items: Any) -> Dict[int, int]:
    """Cart payload -> {product_id: total quantity}; repeated products are summed."""
    if not isinstance(items, list) or not items:
        raise ValidationError("Cart is empty or malformed", errors={"items": "At least one item is required"})
    lines: Dict[int, int] = {}
    for entry in items:
        if not isinstance(entry, dict):
            raise ValidationError("Cart is empty or malformed", errors={"items": "Invalid cart line"})
        product_id = entry.get("productId", entry.get("id"))
        quantity = entry.get("quantity")
        if isinstance(product_id, bool) or not isinstance(product_id, int):
            raise ValidationError("Cart is empty or malformed", errors={"items": "Invalid product id"})
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError("Cart is empty or malformed", errors={"items": "Quantity must be a positive integer"})
        lines[product_id] = lines.get(product_id, 0) + quantity
    return lines


def snapshot_items(lines: Dict[int, int], cur: Any) -> List[OrderItem]:
    """Check stock for every line and freeze name and price at order time."""
    items = []
    for product_id, quantity in lines.items():
        product = models.Product.get_one(cur=cur, id=product_id)
        if product is None:
            raise ValidationError(f"Product with ID {product_id} not found")
        if quantity > (product.quantity or 0):
            raise ValidationError(
                f'Not enough "{product.name}" in stock (available: {product.quantity})'
            )
        items.append(OrderItem(product_id=product.id, name=product.name, price=money(product.price), quantity=quantity))
    return items


def create_order(request: OrderRequest) -> Order:
    with db.transaction() as cur:
        owner = models.User.get_one(cur=cur, id=request.user_id)
        if owner is None:
            raise ValidationError("User not found", errors={"userId": "Unknown user"})

        items = snapshot_items(request.lines, cur)
        items_total = sum((item.total for item in items), Decimal("0"))

        promo_code = None
        discount = Decimal("0")
        if request.promo_code:
            promo_code = promo.find_valid_promo(request.promo_code, items_total, owner.id, cur=cur)
            discount = promo.discount_for(promo_code, items_total)

        total = items_total - discount + request.delivery_amount

        paid_by_balance = request.payment_method == PaymentMethod.BALANCE
        if paid_by_balance:
            balance = owner.balance_amount
            if balance < total:
                raise PaymentError("Insufficient balance", balance=f"{balance:.2f}", required=f"{total:.2f}")
            owner.balance = f"{balance - total:.2f}"
            owner.update("balance", cur=cur)
            payment_status, order_status = PaymentStatus.COMPLETED, OrderStatus.PROCESSING
        elif request.payment_proof:
            payment_status, order_status = PaymentStatus.PENDING_VERIFICATION, OrderStatus.PENDING
        else:
            payment_status, order_status = PaymentStatus.PENDING, OrderStatus.PENDING

        now = utcnow()
        order = Order.new(
            cur=cur,
            user_id=owner.id,
            items=items,
            total_amount=float(total),
            delivery_amount=float(request.delivery_amount),
            full_name=request.full_name,
            address=request.address,
            phone=request.phone,
            delivery_type=request.delivery_type,
            payment_method=str(request.payment_method),
            payment_status=str(payment_status),
            order_status=str(order_status),
            payment_proof_url=request.payment_proof,
            promo_code=promo_code.code if promo_code else None,
            promo_code_discount=float(discount) if promo_code else None,
            last_status_change_at=now,
            status_history=[{"status": str(order_status), "at": now}],
            product_quantities_reduced=False,
            **request.extra,
        )

        if promo_code is not None:
            promo.record_use(promo_code, owner.id, order.id, discount, cur)

        if paid_by_balance or request.payment_proof:
            inventory.reduce_quantities(order, cur)

        models.notify(owner.id, "order_created", f"Order #{order.id} has been placed", order.id, cur=cur)

    log.info("Order %s created for user %s: items=%s discount=%s delivery=%s total=%s method=%s",
             order.id, owner.id, items_total, discount, request.delivery_amount, total, request.payment_method)
    return get_order(order.id)


def get_order(order_id: int, cur: Any = None) -> Order:
    order = Order.get_one(cur=cur, id=order_id)
    if order is None:
        raise NotFoundError("Order not found")
    return order


def parse_status(value: Any) -> OrderStatus:
    try:
        return OrderStatus(str(value))
    except ValueError:
        raise ValidationError(
            f"Unknown order status: {value}",
            errors={"orderStatus": f"Must be one of: {', '.join(s.value for s in OrderStatus)}"},
        )


def update_order(order_id: int, status: Optional[str] = None, **fields: Any) -> Order:
    """
    Admin update. A status change must follow ORDER_TRANSITIONS; entering
    paid/processing from any other state takes stock in the same transaction.
    """
    target = parse_status(status) if status is not None else None
    with db.transaction() as cur:
        order = get_order(order_id, cur=cur)
        keys = []
        for key, value in fields.items():
            setattr(order, key, value)
            keys.append(key)

        if target is not None:
            current = order.status
            if not current.can_become(target):
                raise ConflictError(f"Cannot change order status from {current} to {target}")
            if target != current:
                now = utcnow()
                order.order_status = str(target)
                order.last_status_change_at = now
                order.status_history = list(order.status_history or []) + [{"status": str(target), "at": now}]
                keys += ["order_status", "last_status_change_at", "status_history"]
                if target.is_payment_confirmed and not current.is_payment_confirmed:
                    inventory.reduce_quantities(order, cur)
                models.notify(order.user_id, "order_status",
                              f"Order #{order.id} status changed to {target}", order.id, cur=cur)
                log.info("Order %s status %s -> %s", order.id, current, target)

        if keys:
            order.update(*keys, cur=cur)
    return get_order(order_id)


def delete_order(order_id: int) -> None:
    with db.transaction() as cur:
        order = get_order(order_id, cur=cur)
        inventory.restore_quantities(order, cur)
        promo.release_uses(order, cur)
        cur.execute("DELETE FROM notification_table WHERE order_id = ?", (order.id,))
        order.delete(cur=cur)
    log.info("Order %s deleted", order_id)


def apply_promo(order_id: int, code: Any) -> Order:
    if not promo.normalize_code(code):
        raise ValidationError("Promo code is required", errors={"promoCode": "This field is required."})
    with db.transaction() as cur:
        order = get_order(order_id, cur=cur)
        ensure_owner_or_admin(order.user_id)
        if order.promo_code:
            raise ValidationError("A promo code has already been applied to this order")
        if order.payment_status == PaymentStatus.COMPLETED or order.status == OrderStatus.CANCELLED:
            raise ValidationError("Promo codes can only be applied to unpaid orders")

        items_total = order.items_total
        promo_code = promo.find_valid_promo(code, items_total, order.user_id, cur=cur)
        discount = promo.discount_for(promo_code, items_total)

        order.promo_code = promo_code.code
        order.promo_code_discount = float(discount)
        order.total_amount = float(money(order.total_amount) - discount)
        order.update("promo_code", "promo_code_discount", "total_amount", cur=cur)
        promo.record_use(promo_code, order.user_id, order.id, discount, cur)
    return get_order(order_id)


def attach_payment_proof(order_id: int, proof_url: str) -> Order:
    with db.transaction() as cur:
        order = get_order(order_id, cur=cur)
        ensure_owner_or_admin(order.user_id)
        order.payment_proof_url = proof_url
        order.payment_status = str(PaymentStatus.PENDING_VERIFICATION)
        order.update("payment_proof_url", "payment_status", cur=cur)
    log.info("Payment proof attached to order %s", order_id)
    return get_order(order_id)


def complete_order(order_id: int) -> Order:
    with db.transaction() as cur:
        order = get_order(order_id, cur=cur)
        ensure_owner_or_admin(order.user_id)
        if not order.payment_proof_url:
            raise ValidationError("Payment proof is missing")
        order.payment_status = str(PaymentStatus.PENDING_VERIFICATION)
        order.update("payment_status", cur=cur)
    return get_order(order_id)
