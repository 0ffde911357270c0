from flask import Response, jsonify, request
from flask_login import current_user, login_required

from . import bp
from . import forms
from plantshop.database import db
from plantshop.models import models
from plantshop.utils.exceptions import NotFoundError, ValidationError
from plantshop.utils.forms import string_list
from plantshop.utils.helpers import admin_required, json_body, money
from plantshop.utils.logging import get_logger

log = get_logger(__name__)

TRUE_ARGS = ("1", "true", "yes", "on")


def _flag(name: str) -> bool:
    return request.args.get(name, "").lower() in TRUE_ARGS


def _price_arg(name: str) -> float | None:
    raw = request.args.get(name)
    if raw in (None, ""):
        return None
    try:
        return float(money(raw))
    except ValidationError:
        raise ValidationError("Invalid filter", errors={name: "Must be a number"})


def _get_product(product_id: int) -> models.Product:
    product = models.Product.get_one(id=product_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product


def _product_values(form: forms.ProductForm) -> dict:
    return {
        "name": form.name.data.strip(),
        "description": form.description.data or "",
        "price": form.price.data,
        "original_price": form.original_price.data,
        "quantity": form.quantity.data,
        "category": (form.category.data or "").strip(),
        "is_available": form.is_available.data,
        "is_preorder": form.is_preorder.data,
        "is_rare": form.is_rare.data,
        "is_easy_to_care": form.is_easy_to_care.data,
        "delivery_cost": form.delivery_cost.data or 0,
        "images": string_list(form.payload, "images", limit=20),
        "labels": string_list(form.payload, "labels"),
    }


@bp.route("/products")
def products() -> Response:
    clauses, params = [], []
    category = request.args.get("category")
    if category:
        clauses.append("category = ?")
        params.append(category)
    if _flag("available"):
        clauses.append("is_available = 1 AND quantity > 0")
    if _flag("preorder"):
        clauses.append("is_preorder = 1")
    if _flag("rare"):
        clauses.append("is_rare = 1")
    if _flag("easy"):
        clauses.append("is_easy_to_care = 1")
    if _flag("discount"):
        clauses.append("original_price IS NOT NULL AND original_price > price")
    search = request.args.get("search", "").strip()
    if search:
        clauses.append("(LOWER(name) LIKE ? OR LOWER(description) LIKE ?)")
        params += [f"%{search.lower()}%"] * 2
    min_price = _price_arg("minPrice")
    if min_price is not None:
        clauses.append("price >= ?")
        params.append(min_price)
    max_price = _price_arg("maxPrice")
    if max_price is not None:
        clauses.append("price <= ?")
        params.append(max_price)

    query = "SELECT * FROM product_table"
    if clauses:
        query += " WHERE " + " AND ".join(clauses)
    query += " ORDER BY created_at DESC, id DESC"
    rows = db.execute(query, tuple(params))
    return jsonify([models.Product(**row).to_client() for row in rows])


@bp.route("/products/<int:product_id>")
def product(product_id: int) -> Response:
    return jsonify(_get_product(product_id).to_client())


@bp.route("/products", methods=["POST"])
@admin_required
def create_product() -> tuple[Response, int]:
    form = forms.ProductForm(json_body()).validate_or_raise()
    product = models.Product.new(**_product_values(form))
    log.info("Product %s created", product.id)
    return jsonify(product.to_client()), 201


@bp.route("/products/<int:product_id>", methods=["PUT"])
@admin_required
def update_product(product_id: int) -> Response:
    product = _get_product(product_id)
    form = forms.ProductForm({**product.to_client(), **json_body()}).validate_or_raise()
    for key, value in _product_values(form).items():
        setattr(product, key, value)
    product.update()
    log.info("Product %s updated", product.id)
    return jsonify(_get_product(product_id).to_client())


@bp.route("/products/<int:product_id>", methods=["DELETE"])
@admin_required
def delete_product(product_id: int) -> tuple[str, int]:
    _get_product(product_id).delete()
    log.info("Product %s deleted", product_id)
    return "", 204


@bp.route("/categories")
def categories() -> Response:
    rows = db.execute(
        "SELECT DISTINCT category FROM product_table "
        "WHERE category IS NOT NULL AND TRIM(category) != '' ORDER BY category"
    )
    return jsonify([row["category"] for row in rows])


def _is_admin() -> bool:
    return current_user.is_authenticated and current_user.is_admin


@bp.route("/reviews")
def reviews() -> Response:
    filters = {}
    product_id = request.args.get("productId", type=int)
    if product_id is not None:
        filters["product_id"] = product_id
    if not _is_admin():
        filters["is_approved"] = True
    found = models.Review.get(order_by="created_at DESC, id DESC", **filters)
    return jsonify([review.to_client() for review in found])


@bp.route("/reviews", methods=["POST"])
@login_required
def create_review() -> tuple[Response, int]:
    form = forms.ReviewForm(json_body()).validate_or_raise()
    _get_product(form.product_id.data)
    review = models.Review.new(
        user_id=current_user.id,
        product_id=form.product_id.data,
        rating=form.rating.data,
        text=form.text.data.strip(),
        images=string_list(form.payload, "images", limit=10),
        is_approved=False,
    )
    log.info("Review %s submitted for product %s", review.id, review.product_id)
    return jsonify(review.to_client()), 201


def _get_review(review_id: int) -> models.Review:
    review = models.Review.get_one(id=review_id)
    if review is None:
        raise NotFoundError("Review not found")
    return review


@bp.route("/reviews/<int:review_id>", methods=["PUT"])
@admin_required
def moderate_review(review_id: int) -> Response:
    review = _get_review(review_id)
    form = forms.ReviewModerationForm(json_body()).validate_or_raise()
    review.is_approved = form.is_approved.data
    review.update("is_approved")
    return jsonify(review.to_client())


@bp.route("/reviews/<int:review_id>", methods=["DELETE"])
@admin_required
def delete_review(review_id: int) -> tuple[str, int]:
    _get_review(review_id).delete()
    return "", 204
