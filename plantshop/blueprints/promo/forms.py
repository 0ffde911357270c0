from wtforms import FloatField, IntegerField, StringField
from wtforms.validators import AnyOf, InputRequired, Length, NumberRange, Optional, ValidationError

from plantshop.processor.promo import FIXED, PERCENTAGE, normalize_code
from plantshop.utils.forms import JSONBooleanField, JSONForm


class PromoCodeForm(JSONForm):
    code = StringField(
        "Code",
        validators=[InputRequired(), Length(min=3, max=50)],
        filters=[lambda value: normalize_code(value) if value is not None else value],
    )
    description = StringField("Description", validators=[Optional(), Length(max=500)])
    discount_type = StringField(
        "Discount type",
        name="discountType",
        validators=[InputRequired(), AnyOf([PERCENTAGE, FIXED], message="Must be percentage or fixed")],
    )
    discount_value = FloatField(
        "Discount value",
        name="discountValue",
        validators=[InputRequired(), NumberRange(min=0.01, message="Must be greater than 0")],
    )
    min_order_amount = FloatField("Minimum order", name="minOrderAmount", validators=[Optional(), NumberRange(min=0)])
    start_date = StringField("Start date", name="startDate", validators=[InputRequired()])
    end_date = StringField("End date", name="endDate", validators=[InputRequired()])
    max_uses = IntegerField("Max uses", name="maxUses", validators=[Optional(), NumberRange(min=1)])
    is_active = JSONBooleanField("Active", name="isActive", default=True)

    def validate_discount_value(self, field):
        if self.discount_type.data == PERCENTAGE and field.data is not None and field.data > 100:
            raise ValidationError("Percentage discount cannot exceed 100")


class ValidatePromoForm(JSONForm):
    code = StringField("Code", validators=[InputRequired(), Length(max=50)])
    cart_total = FloatField("Cart total", name="cartTotal", validators=[InputRequired(), NumberRange(min=0)])
