from datetime import datetime, timezone

from flask import Response

from . import bp
from plantshop.models import models
from plantshop.processor import exports
from plantshop.utils.helpers import admin_required
from plantshop.utils.logging import get_logger

log = get_logger(__name__)


def _csv_response(name: str, content: str) -> Response:
    stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    log.info("Exported %s", name)
    return Response(
        content.encode("utf-8"),
        mimetype="text/csv",
        headers={
            "Content-Disposition": f'attachment; filename="{name}-{stamp}.csv"',
        },
    )


@bp.route("/users")
@admin_required
def users() -> Response:
    return _csv_response("users", exports.users_csv(models.User.get(order_by="id")))


@bp.route("/products")
@admin_required
def products() -> Response:
    return _csv_response("products", exports.products_csv(models.Product.get(order_by="id")))


@bp.route("/orders")
@admin_required
def orders() -> Response:
    return _csv_response("orders", exports.orders_csv(models.Order.get(order_by="id")))


@bp.route("/statistics")
@admin_required
def statistics() -> Response:
    return _csv_response(
        "statistics",
        exports.statistics_csv(models.User.get(), models.Product.get(), models.Order.get()),
    )
