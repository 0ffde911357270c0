from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from functools import wraps
from typing import Any, Callable

from flask import request
from flask_login import current_user, login_required

from .exceptions import AuthorizationError, ValidationError

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
CENT = Decimal("0.01")


def utcnow() -> str:
    return datetime.now(timezone.utc).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    """Accepts stored timestamps and ISO-8601 input; returns naive UTC."""
    text = str(value).strip().replace("Z", "+00:00")
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        parsed = datetime.strptime(text, TIMESTAMP_FORMAT)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def format_timestamp(value: datetime) -> str:
    return value.strftime(TIMESTAMP_FORMAT)


def money(value: Any) -> Decimal:
    """Decimal with two places. Floats go through str() to avoid binary noise."""
    try:
        return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(f"Invalid amount: {value!r}") from e


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def admin_required(f: Callable[..., Any]) -> Callable[..., Any]:
    """current_user is reloaded from the store on every request, so a demoted admin loses access immediately."""
    @wraps(f)
    @login_required
    def decorated_view(*args: Any, **kwargs: Any) -> Any:
        if not current_user.is_admin:
            raise AuthorizationError("Admin access required")
        return f(*args, **kwargs)
    return decorated_view


def ensure_owner_or_admin(owner_id: int) -> None:
    if not current_user.is_admin and int(owner_id) != int(current_user.id):
        raise AuthorizationError("Access denied")
