from typing import List

from flask import Response, jsonify, request
from flask_login import current_user, login_required

from . import bp
from . import forms
from plantshop.models import get_product_images, models
from plantshop.models.models import PaymentMethod
from plantshop.processor import cart, orders, receipts, save_image
from plantshop.utils.exceptions import AuthorizationError, ValidationError
from plantshop.utils.helpers import admin_required, ensure_owner_or_admin, format_timestamp, json_body, money, parse_timestamp
from plantshop.utils.logging import get_logger

log = get_logger(__name__)

DATE_FIELDS = ("estimated_delivery_date", "actual_delivery_date")


def _order_json(order: models.Order) -> dict:
    return order.to_client(get_product_images(item.product_id for item in order.items))


def _orders_json(found: List[models.Order]) -> List[dict]:
    images = get_product_images(item.product_id for order in found for item in order.items)
    return [order.to_client(images) for order in found]


def _delivery_amount(payload: dict):
    value = payload.get("deliveryAmount")
    if value is None:
        raise ValidationError("Delivery amount is required", errors={"deliveryAmount": "This field is required."})
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise ValidationError("Invalid data", errors={"deliveryAmount": "Must be a non-negative number"})
    return money(value)


def _owner_id(form: forms.OrderForm) -> int:
    user_id = form.user_id.data
    if user_id is None:
        return current_user.id
    if user_id != current_user.id and not current_user.is_admin:
        raise AuthorizationError("Orders can only be placed for your own account")
    return user_id


@bp.route("/orders", methods=["POST"])
@login_required
def create() -> tuple[Response, int]:
    form = forms.OrderForm(json_body()).validate_or_raise()
    lines = orders.merge_lines(form.payload.get("items"))
    order = orders.create_order(orders.OrderRequest(
        user_id=_owner_id(form),
        lines=lines,
        delivery_amount=_delivery_amount(form.payload),
        payment_method=PaymentMethod(form.payment_method.data),
        full_name=form.full_name.data,
        address=form.address.data,
        phone=form.phone.data,
        delivery_type=form.delivery_type.data,
        promo_code=form.promo_code.data or None,
        payment_proof=form.payment_proof.data or None,
        extra={
            "social_network": form.social_network.data or None,
            "social_username": form.social_username.data or None,
            "comment": form.comment.data or "",
            "need_insulation": form.need_insulation.data,
            "delivery_speed": form.delivery_speed.data or "standard",
        },
    ))
    owner = models.User.get_one(id=order.user_id)
    if owner is not None:
        cart.remove_products(owner, lines)
    return jsonify(_order_json(order)), 201


@bp.route("/orders")
@login_required
def list_orders() -> Response:
    filters = {} if current_user.is_admin else {"user_id": current_user.id}
    return jsonify(_orders_json(models.Order.get(order_by="created_at DESC, id DESC", **filters)))


@bp.route("/user/orders")
@login_required
def my_orders() -> Response:
    found = models.Order.get(order_by="created_at DESC, id DESC", user_id=current_user.id)
    return jsonify(_orders_json(found))


@bp.route("/orders/<int:order_id>")
@login_required
def get(order_id: int) -> Response:
    order = orders.get_order(order_id)
    ensure_owner_or_admin(order.user_id)
    return jsonify(_order_json(order))


def _status_response(order: models.Order) -> Response:
    return jsonify(success=True, message=f"Order #{order.id} updated", order=_order_json(order))


@bp.route("/orders/<int:order_id>", methods=["PUT"])
@admin_required
def update(order_id: int) -> Response:
    form = forms.OrderUpdateForm(json_body()).validate_or_raise()
    fields = form.submitted()
    status = fields.pop("order_status", None)
    for key in DATE_FIELDS:
        if key in fields:
            try:
                fields[key] = format_timestamp(parse_timestamp(fields[key]))
            except ValueError:
                raise ValidationError("Invalid data", errors={getattr(form, key).name: "Invalid date"})
    order = orders.update_order(order_id, status=status, **fields)
    return _status_response(order)


@bp.route("/orders/<int:order_id>/status", methods=["PUT"])
@admin_required
def update_status(order_id: int) -> Response:
    form = forms.OrderStatusForm(json_body()).validate_or_raise()
    order = orders.update_order(order_id, status=form.order_status.data)
    return _status_response(order)


@bp.route("/orders/<int:order_id>", methods=["DELETE"])
@admin_required
def delete(order_id: int) -> tuple[str, int]:
    orders.delete_order(order_id)
    return "", 204


@bp.route("/orders/<int:order_id>/payment-proof", methods=["POST"])
@login_required
def payment_proof(order_id: int) -> Response:
    ensure_owner_or_admin(orders.get_order(order_id).user_id)
    proof_url = save_image(request.files.get("proof"), prefix="proof")
    return jsonify(_order_json(orders.attach_payment_proof(order_id, proof_url)))


@bp.route("/orders/<int:order_id>/complete", methods=["POST"])
@login_required
def complete(order_id: int) -> Response:
    return jsonify(_order_json(orders.complete_order(order_id)))


@bp.route("/orders/<int:order_id>/apply-promo", methods=["POST"])
@login_required
def apply_promo(order_id: int) -> Response:
    form = forms.ApplyPromoForm(json_body()).validate_or_raise()
    order = orders.apply_promo(order_id, form.promo_code.data)
    log.info("Promo %s applied to order %s", order.promo_code, order.id)
    return jsonify(_order_json(order))


@bp.route("/orders/<int:order_id>/receipt", methods=["POST"])
@admin_required
def receipt(order_id: int) -> Response:
    return jsonify(receipts.generate_receipt(order_id))
