from flask import Response, jsonify
from flask_login import current_user, login_required

from . import bp
from . import forms
from plantshop.database import db
from plantshop.models import models
from plantshop.utils.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from plantshop.utils.helpers import admin_required, ensure_owner_or_admin, json_body, money
from plantshop.utils.logging import get_logger

log = get_logger(__name__)


def _get_user(user_id: int, cur=None) -> models.User:
    user = models.User.get_one(cur=cur, id=user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


@bp.route("/users")
@admin_required
def list_users() -> Response:
    return jsonify([user.to_client() for user in models.User.get(order_by="created_at DESC, id DESC")])


@bp.route("/users/<int:user_id>")
@login_required
def get_user(user_id: int) -> Response:
    ensure_owner_or_admin(user_id)
    return jsonify(_get_user(user_id).to_client())


@bp.route("/users/<int:user_id>", methods=["PUT"])
@login_required
def update_user(user_id: int) -> Response:
    ensure_owner_or_admin(user_id)
    user = _get_user(user_id)
    form = forms.UserUpdateForm({**user.to_client(), **json_body()}).validate_or_raise()
    if form.is_admin.data != bool(user.is_admin) and not current_user.is_admin:
        raise AuthorizationError("Only administrators can change roles")

    existing = models.User.get_one(email=form.email.data)
    if existing is not None and existing.id != user.id:
        raise ConflictError("This email is already registered", errors={"email": "Already registered"})

    user.email = form.email.data
    user.username = form.username.data or user.username
    user.full_name = form.full_name.data
    user.phone = form.phone.data or None
    user.address = form.address.data or None
    user.is_admin = form.is_admin.data
    try:
        user.update("email", "username", "full_name", "phone", "address", "is_admin")
    except db.IntegrityError as e:
        if db.is_duplicate(e, "email"):
            raise ConflictError("This email is already registered", errors={"email": "Already registered"})
        raise
    log.info("User %s updated by %s", user.id, current_user.id)
    return jsonify(_get_user(user_id).to_client())


@bp.route("/users/<int:user_id>/password", methods=["PUT"])
@login_required
def change_password(user_id: int) -> Response:
    if user_id != current_user.id:
        raise AuthorizationError("You can only change your own password")
    form = forms.PasswordChangeForm(json_body()).validate_or_raise()
    if not current_user.update_password(form.old_password.data, form.new_password.data):
        raise ValidationError("Current password is incorrect", errors={"oldPassword": "Incorrect password"})
    log.info("Password changed for user %s", user_id)
    return jsonify(message="Password updated")


@bp.route("/users/<int:user_id>/add-balance", methods=["POST"])
@admin_required
def add_balance(user_id: int) -> Response:
    form = forms.BalanceForm(json_body()).validate_or_raise()
    amount = money(form.amount.data)
    with db.transaction() as cur:
        user = _get_user(user_id, cur=cur)
        user.balance = f"{user.balance_amount + amount:.2f}"
        user.update("balance", cur=cur)
        message = f"Your balance was topped up by {amount:.2f}"
        if form.description.data:
            message += f": {form.description.data}"
        models.notify(user.id, "balance", message, cur=cur)
    log.info("Balance of user %s increased by %s", user_id, amount)
    return jsonify(_get_user(user_id).to_client())


@bp.route("/user/notifications")
@login_required
def notifications() -> Response:
    found = models.Notification.get(order_by="created_at DESC, id DESC", user_id=current_user.id)
    return jsonify([notification.to_client() for notification in found])


@bp.route("/user/notifications/<int:notification_id>/read", methods=["PUT"])
@login_required
def mark_notification_read(notification_id: int) -> Response:
    notification = models.Notification.get_one(id=notification_id, user_id=current_user.id)
    if notification is None:
        raise NotFoundError("Notification not found")
    notification.is_read = True
    notification.update("is_read")
    return jsonify(notification.to_client())


@bp.route("/user/reviews")
@login_required
def my_reviews() -> Response:
    found = models.Review.get(order_by="created_at DESC, id DESC", user_id=current_user.id)
    return jsonify([review.to_client() for review in found])
