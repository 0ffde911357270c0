from flask import Response, jsonify
from flask_login import current_user

from . import bp
from . import forms
from plantshop.database import db
from plantshop.models import models
from plantshop.processor import promo
from plantshop.utils.exceptions import ConflictError, NotFoundError, ValidationError
from plantshop.utils.helpers import admin_required, format_timestamp, json_body, money, parse_timestamp
from plantshop.utils.logging import get_logger

log = get_logger(__name__)


@bp.route("/validate", methods=["POST"])
def validate() -> Response:
    form = forms.ValidatePromoForm(json_body()).validate_or_raise()
    user_id = current_user.id if current_user.is_authenticated else None
    try:
        result = promo.preview(form.code.data, money(form.cart_total.data), user_id)
    except promo.InvalidPromoCode as e:
        raise NotFoundError(e.message)
    return jsonify(valid=True, **result)


def _get_promo(promo_id: int) -> models.PromoCode:
    promo_code = models.PromoCode.get_one(id=promo_id)
    if promo_code is None:
        raise NotFoundError("Promo code not found")
    return promo_code


def _promo_values(form: forms.PromoCodeForm) -> dict:
    try:
        start = parse_timestamp(form.start_date.data)
        end = parse_timestamp(form.end_date.data)
    except ValueError:
        raise ValidationError("Invalid data", errors={"startDate": "Dates must be ISO-8601 timestamps"})
    if start >= end:
        raise ValidationError("Invalid data", errors={"endDate": "End date must be after start date"})
    return {
        "code": form.code.data,
        "description": form.description.data or "",
        "discount_type": form.discount_type.data,
        "discount_value": form.discount_value.data,
        "min_order_amount": form.min_order_amount.data,
        "start_date": format_timestamp(start),
        "end_date": format_timestamp(end),
        "max_uses": form.max_uses.data,
        "is_active": form.is_active.data,
    }


def _ensure_unique(code: str, promo_id: int | None = None) -> None:
    existing = models.PromoCode.get_one(code=code)
    if existing is not None and existing.id != promo_id:
        raise ConflictError("Promo code already exists", errors={"code": "Already exists"})


@bp.route("", methods=["GET"])
@admin_required
def list_promo_codes() -> Response:
    found = models.PromoCode.get(order_by="created_at DESC, id DESC")
    return jsonify([promo_code.to_client() for promo_code in found])


@bp.route("/<int:promo_id>", methods=["GET"])
@admin_required
def get_promo_code(promo_id: int) -> Response:
    return jsonify(_get_promo(promo_id).to_client())


@bp.route("", methods=["POST"])
@admin_required
def create_promo_code() -> tuple[Response, int]:
    form = forms.PromoCodeForm(json_body()).validate_or_raise()
    values = _promo_values(form)
    _ensure_unique(values["code"])
    try:
        promo_code = models.PromoCode.new(current_uses=0, **values)
    except db.IntegrityError as e:
        if db.is_duplicate(e, "code"):
            raise ConflictError("Promo code already exists", errors={"code": "Already exists"})
        raise
    log.info("Promo code %s created", promo_code.code)
    return jsonify(promo_code.to_client()), 201


@bp.route("/<int:promo_id>", methods=["PUT"])
@admin_required
def update_promo_code(promo_id: int) -> Response:
    promo_code = _get_promo(promo_id)
    form = forms.PromoCodeForm({**promo_code.to_client(), **json_body()}).validate_or_raise()
    values = _promo_values(form)
    _ensure_unique(values["code"], promo_id)
    for key, value in values.items():
        setattr(promo_code, key, value)
    promo_code.update(*values)
    log.info("Promo code %s updated", promo_code.code)
    return jsonify(_get_promo(promo_id).to_client())


@bp.route("/<int:promo_id>", methods=["DELETE"])
@admin_required
def delete_promo_code(promo_id: int) -> tuple[str, int]:
    promo_code = _get_promo(promo_id)
    with db.transaction() as cur:
        cur.execute("DELETE FROM promo_code_use_table WHERE promo_code_id = ?", (promo_code.id,))
        promo_code.delete(cur=cur)
    log.info("Promo code %s deleted", promo_code.code)
    return "", 204
