from wtforms import EmailField, PasswordField, StringField
from wtforms.validators import Email, InputRequired, Length, Optional, Regexp

from plantshop.utils.forms import JSONForm


def _strip(value):
    return value.strip() if isinstance(value, str) else value


def _lower(value):
    return value.strip().lower() if isinstance(value, str) else value


def password_validators():
    return [
        InputRequired(),
        Length(min=8, message="Password must be at least 8 characters"),
        Regexp(r".*[A-Z]", message="Password must contain an uppercase letter"),
        Regexp(r".*\d", message="Password must contain a digit"),
    ]


class LoginForm(JSONForm):
    email = EmailField("Email", validators=[InputRequired()], filters=[_lower])
    password = PasswordField("Password", validators=[InputRequired()])


class RegisterForm(JSONForm):
    email = EmailField(
        "Email",
        validators=[InputRequired(), Length(min=5, max=100), Email(message="Invalid email address")],
        filters=[_lower],
    )
    password = PasswordField("Password", validators=password_validators())
    username = StringField("Username", validators=[Optional(), Length(min=3, max=50)], filters=[_strip])
    full_name = StringField(
        "Full name",
        name="fullName",
        validators=[InputRequired(), Length(min=3, message="Full name must be at least 3 characters")],
        filters=[_strip],
    )
    phone = StringField(
        "Phone",
        validators=[InputRequired(), Length(min=10, message="Phone number must be at least 10 characters")],
        filters=[_strip],
    )
    address = StringField(
        "Address",
        validators=[InputRequired(), Length(min=5, message="Address must be at least 5 characters")],
        filters=[_strip],
    )
