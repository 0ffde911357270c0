from flask import Response, jsonify
from wtforms import IntegerField
from wtforms.validators import InputRequired, NumberRange

from . import bp
from plantshop.models import models
from plantshop.processor import cart
from plantshop.utils.exceptions import NotFoundError, ValidationError
from plantshop.utils.forms import JSONForm
from plantshop.utils.helpers import json_body


class CartLineForm(JSONForm):
    product_id = IntegerField("Product", name="productId", validators=[InputRequired()])
    quantity = IntegerField("Quantity", default=1, validators=[NumberRange(min=1, max=999)])


class CartQuantityForm(JSONForm):
    quantity = IntegerField("Quantity", validators=[InputRequired(), NumberRange(min=0, max=999)])


def _in_stock(product_id: int, quantity: int) -> None:
    product = models.Product.get_one(id=product_id)
    if product is None:
        raise NotFoundError("Product not found")
    if quantity > (product.quantity or 0):
        raise ValidationError(f'Not enough "{product.name}" in stock (available: {product.quantity})')


@bp.route("", methods=["GET"])
def view() -> Response:
    return jsonify(cart.to_client(cart.load()))


@bp.route("", methods=["POST"])
def add() -> tuple[Response, int]:
    form = CartLineForm(json_body()).validate_or_raise()
    lines = cart.load()
    product_id = form.product_id.data
    _in_stock(product_id, cart.quantity_of(lines, product_id) + form.quantity.data)
    lines = cart.merge(lines, product_id, form.quantity.data)
    cart.save(lines)
    return jsonify(cart.to_client(lines)), 201


@bp.route("/<int:product_id>", methods=["PUT"])
def set_quantity(product_id: int) -> Response:
    form = CartQuantityForm(json_body()).validate_or_raise()
    if form.quantity.data:
        _in_stock(product_id, form.quantity.data)
    lines = cart.set_quantity(cart.load(), product_id, form.quantity.data)
    cart.save(lines)
    return jsonify(cart.to_client(lines))


@bp.route("/<int:product_id>", methods=["DELETE"])
def remove(product_id: int) -> Response:
    lines = cart.set_quantity(cart.load(), product_id, 0)
    cart.save(lines)
    return jsonify(cart.to_client(lines))


@bp.route("", methods=["DELETE"])
def clear() -> Response:
    cart.save([])
    return jsonify(cart.to_client([]))
