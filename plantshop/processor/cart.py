"""
Shopping cart storage: the session for guests, ``user_table.cart`` once
logged in. Lines are ``{"productId": int, "quantity": int}``, one per product.
"""
from decimal import Decimal
from typing import Any, Dict, Iterable, List

from flask import session
from flask_login import current_user

from plantshop.models import models
from plantshop.utils.logging import get_logger

log = get_logger(__name__)

SESSION_KEY = "cart"


def load() -> List[Dict[str, int]]:
    if current_user.is_authenticated:
        return list(current_user.cart or [])
    return list(session.get(SESSION_KEY, []))


def save(lines: List[Dict[str, int]]) -> None:
    if current_user.is_authenticated:
        current_user.cart = lines
        current_user.update("cart")
    else:
        session[SESSION_KEY] = lines
        session.modified = True


def merge(lines: List[Dict[str, int]], product_id: int, quantity: int) -> List[Dict[str, int]]:
    merged = []
    found = False
    for line in lines:
        if line["productId"] == product_id:
            line = {"productId": product_id, "quantity": line["quantity"] + quantity}
            found = True
        merged.append(line)
    if not found:
        merged.append({"productId": product_id, "quantity": quantity})
    return [line for line in merged if line["quantity"] > 0]


def set_quantity(lines: List[Dict[str, int]], product_id: int, quantity: int) -> List[Dict[str, int]]:
    kept = [line for line in lines if line["productId"] != product_id]
    if quantity > 0:
        kept.append({"productId": product_id, "quantity": quantity})
    return kept


def quantity_of(lines: List[Dict[str, int]], product_id: int) -> int:
    return sum(line["quantity"] for line in lines if line["productId"] == product_id)


def merge_session_cart(user: models.User) -> None:
    """Move a guest cart into the user's stored cart after login."""
    guest_lines = session.pop(SESSION_KEY, [])
    if not guest_lines:
        return
    lines = list(user.cart or [])
    for line in guest_lines:
        lines = merge(lines, line["productId"], line["quantity"])
    user.cart = lines
    user.update("cart")
    log.info("Merged %d guest cart line(s) for user %s", len(guest_lines), user.id)


def remove_products(user: models.User, product_ids: Iterable[int]) -> None:
    ordered = set(product_ids)
    remaining = [line for line in (user.cart or []) if line["productId"] not in ordered]
    if len(remaining) != len(user.cart or []):
        user.cart = remaining
        user.update("cart")


def to_client(lines: List[Dict[str, int]]) -> Dict[str, Any]:
    items = []
    items_total = Decimal("0")
    for line in lines:
        product = models.Product.get_one(id=line["productId"])
        if product is None:
            continue
        items.append({
            "productId": product.id,
            "quantity": line["quantity"],
            "product": product.to_client(),
        })
        items_total += Decimal(str(product.price)) * line["quantity"]
    return {"items": items, "itemsTotal": float(items_total)}
