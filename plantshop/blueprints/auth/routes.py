from flask import Response, jsonify
from flask_login import current_user, login_required, login_user, logout_user

from . import bp
from . import forms
from plantshop.database import db
from plantshop.models import models
from plantshop.processor import cart
from plantshop.utils.exceptions import AuthenticationError, ConflictError
from plantshop.utils.helpers import json_body
from plantshop.utils.logging import get_logger

log = get_logger(__name__)


@bp.route("/register", methods=["POST"])
def register() -> tuple[Response, int]:
    form = forms.RegisterForm(json_body()).validate_or_raise()
    email = form.email.data
    if models.User.get_one(email=email):
        raise ConflictError("This email is already registered", errors={"email": "Already registered"})
    try:
        user = models.User.new(
            email=email,
            username=form.username.data or email.split("@")[0],
            password=models.User.hash_password(form.password.data),
            full_name=form.full_name.data,
            phone=form.phone.data,
            address=form.address.data,
            is_admin=False,
            balance="0.00",
        )
    except db.IntegrityError as e:
        if db.is_duplicate(e, "email"):
            raise ConflictError("This email is already registered", errors={"email": "Already registered"})
        raise
    login_user(user)
    cart.merge_session_cart(user)
    log.info("Registered user %s", user.id)
    return jsonify(user.to_client()), 201


@bp.route("/login", methods=["POST"])
def login() -> Response:
    form = forms.LoginForm(json_body()).validate_or_raise()
    user = models.User.get_one(email=form.email.data)
    if user is None or not user.check_password(form.password.data):
        log.warning("Failed login for %s", form.email.data)
        raise AuthenticationError("Invalid email or password")
    login_user(user)
    cart.merge_session_cart(user)
    return jsonify(user.to_client())


@bp.route("/logout", methods=["POST"])
def logout() -> Response:
    logout_user()
    return jsonify(message="Logged out")


@bp.route("/user")
@login_required
def user() -> Response:
    return jsonify(current_user.to_client())
