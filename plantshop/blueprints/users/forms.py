from wtforms import EmailField, FloatField, PasswordField, StringField
from wtforms.validators import Email, InputRequired, Length, NumberRange, Optional

from plantshop.blueprints.auth.forms import password_validators
from plantshop.utils.forms import JSONBooleanField, JSONForm


def _strip(value):
    return value.strip() if isinstance(value, str) else value


class UserUpdateForm(JSONForm):
    email = EmailField(
        "Email",
        validators=[InputRequired(), Length(min=5, max=100), Email(message="Invalid email address")],
        filters=[lambda value: value.strip().lower() if isinstance(value, str) else value],
    )
    username = StringField("Username", validators=[Optional(), Length(min=3, max=50)], filters=[_strip])
    full_name = StringField("Full name", name="fullName", validators=[InputRequired(), Length(min=3, max=200)],
                            filters=[_strip])
    phone = StringField("Phone", validators=[Optional(), Length(min=10, max=30)], filters=[_strip])
    address = StringField("Address", validators=[Optional(), Length(min=5, max=500)], filters=[_strip])
    is_admin = JSONBooleanField("Admin", name="isAdmin", default=False)


class PasswordChangeForm(JSONForm):
    old_password = PasswordField("Current password", name="oldPassword", validators=[InputRequired()])
    new_password = PasswordField("New password", name="newPassword", validators=password_validators())


class BalanceForm(JSONForm):
    amount = FloatField("Amount", validators=[InputRequired(), NumberRange(min=0.01, message="Amount must be positive")])
    description = StringField("Description", validators=[Optional(), Length(max=500)])
