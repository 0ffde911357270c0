"""
Flask-WTF forms fed from JSON bodies instead of HTML posts.

Scalars are passed to WTForms as strings (booleans stay booleans) so the
stock coercing fields and validators behave as they do for form posts.
Lists and objects are not form data; routes read them from ``form.payload``.
"""
from typing import Any, Dict, List

from flask_wtf import FlaskForm
from werkzeug.datastructures import MultiDict
from wtforms import BooleanField

from .exceptions import ValidationError


def _as_formdata(payload: Dict[str, Any]) -> MultiDict:
    items = []
    for key, value in payload.items():
        if value is None or isinstance(value, (list, dict)):
            continue
        if isinstance(value, bool):
            items.append((key, value))
        else:
            items.append((key, str(value)))
    return MultiDict(items)


class JSONForm(FlaskForm):
    class Meta:
        csrf = False

    def __init__(self, payload: Dict[str, Any], **kwargs: Any) -> None:
        super().__init__(formdata=_as_formdata(payload), **kwargs)
        self.payload = payload

    def validate_or_raise(self, message: str = "Invalid data") -> "JSONForm":
        if not self.validate():
            errors = {field.name: field.errors[0] for field in self if field.errors}
            raise ValidationError(message, errors=errors)
        return self

    def submitted(self) -> Dict[str, Any]:
        """Attribute name -> value for the fields present in the body (partial updates)."""
        return {
            attr: field.data
            for attr, field in self._fields.items()
            if field.name in self.payload and self.payload[field.name] is not None
        }


class JSONBooleanField(BooleanField):
    """BooleanField that reads JSON false / 0 as False and keeps its default when the key is absent."""
    false_values = (False, 0, "false", "False", "0", "")

    def process_formdata(self, valuelist):
        if valuelist:
            super().process_formdata(valuelist)


def string_list(payload: Dict[str, Any], key: str, limit: int | None = None) -> List[str]:
    value = payload.get(key) or []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValidationError("Invalid data", errors={key: "Must be a list of strings"})
    if limit is not None and len(value) > limit:
        raise ValidationError("Invalid data", errors={key: f"At most {limit} entries allowed"})
    return value
