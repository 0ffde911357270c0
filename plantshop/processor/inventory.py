"""
Stock bookkeeping for orders.

The order's ``product_quantities_reduced`` flag records whether its stock has
been taken. Reducing twice or restoring stock that was never taken are
no-ops. Both helpers run on the caller's transaction cursor, so a failure
rolls back the whole batch.
"""
from typing import Any

from plantshop.models import models
from plantshop.utils.helpers import utcnow
from plantshop.utils.logging import get_logger

log = get_logger(__name__)


def reduce_quantities(order: models.Order, cur: Any) -> bool:
    if order.product_quantities_reduced:
        log.info("Order %s stock already reduced, skipping", order.id)
        return False

    now = utcnow()
    for item in order.items:
        if item.quantity <= 0:
            log.warning("Order %s: skipping item %s with quantity %r", order.id, item.product_id, item.quantity)
            continue
        cur.execute(
            "UPDATE product_table SET quantity = MAX(quantity - ?, 0), updated_at = ? WHERE id = ?",
            (item.quantity, now, item.product_id),
        )
        if cur.rowcount == 0:
            log.warning("Order %s: product %s no longer exists", order.id, item.product_id)

    order.product_quantities_reduced = True
    order.update("product_quantities_reduced", cur=cur)
    log.info("Order %s: stock reduced for %d item(s)", order.id, len(order.items))
    return True


def restore_quantities(order: models.Order, cur: Any) -> bool:
    if not order.product_quantities_reduced:
        return False

    now = utcnow()
    for item in order.items:
        if item.quantity <= 0:
            continue
        cur.execute(
            "UPDATE product_table SET quantity = quantity + ?, updated_at = ? WHERE id = ?",
            (item.quantity, now, item.product_id),
        )

    order.product_quantities_reduced = False
    order.update("product_quantities_reduced", cur=cur)
    log.info("Order %s: stock restored", order.id)
    return True
