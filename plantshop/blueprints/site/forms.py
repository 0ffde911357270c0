from wtforms import StringField
from wtforms.validators import InputRequired, Length, Optional, Regexp

from plantshop.utils.forms import JSONForm


class SettingForm(JSONForm):
    key = StringField(
        "Key",
        validators=[InputRequired(), Length(max=100), Regexp(r"^[a-zA-Z0-9_.-]+$", message="Invalid setting key")],
    )
    value = StringField("Value", validators=[Optional(), Length(max=5000)])
    description = StringField("Description", validators=[Optional(), Length(max=500)])


class PaymentDetailsForm(JSONForm):
    card_number = StringField(
        "Card number",
        name="cardNumber",
        validators=[Optional(), Regexp(r"^[0-9 ]{12,23}$", message="Card number must contain 12 to 19 digits")],
    )
    card_holder = StringField("Card holder", name="cardHolder", validators=[Optional(), Length(max=200)])
    bank_name = StringField("Bank", name="bankName", validators=[Optional(), Length(max=200)])
    instructions = StringField("Instructions", validators=[Optional(), Length(max=2000)])
    qr_code_url = StringField("QR code", name="qrCodeUrl", validators=[Optional(), Length(max=500)])
