from wtforms import IntegerField, StringField
from wtforms.validators import AnyOf, InputRequired, Length, Optional

from plantshop.models.models import OrderStatus, PaymentMethod, PaymentStatus
from plantshop.utils.forms import JSONBooleanField, JSONForm


def _strip(value):
    return value.strip() if isinstance(value, str) else value


class OrderForm(JSONForm):
    user_id = IntegerField("User", name="userId", validators=[Optional()])
    full_name = StringField("Full name", name="fullName", validators=[InputRequired(), Length(min=2, max=200)],
                            filters=[_strip])
    address = StringField("Address", validators=[InputRequired(), Length(min=5, max=500)], filters=[_strip])
    phone = StringField("Phone", validators=[InputRequired(), Length(min=5, max=30)], filters=[_strip])
    delivery_type = StringField("Delivery type", name="deliveryType", validators=[InputRequired(), Length(max=50)])
    delivery_speed = StringField("Delivery speed", name="deliverySpeed", validators=[Optional(), Length(max=50)])
    payment_method = StringField(
        "Payment method",
        name="paymentMethod",
        validators=[InputRequired(), AnyOf([m.value for m in PaymentMethod], message="Unknown payment method")],
    )
    promo_code = StringField("Promo code", name="promoCode", validators=[Optional(), Length(max=50)])
    payment_proof = StringField("Payment proof", name="paymentProofUrl", validators=[Optional(), Length(max=500)])
    social_network = StringField("Social network", name="socialNetwork", validators=[Optional(), Length(max=50)])
    social_username = StringField("Social username", name="socialUsername", validators=[Optional(), Length(max=100)])
    comment = StringField("Comment", validators=[Optional(), Length(max=2000)])
    need_insulation = JSONBooleanField("Insulation", name="needInsulation", default=False)


class OrderUpdateForm(JSONForm):
    order_status = StringField("Order status", name="orderStatus", validators=[Optional()])
    payment_status = StringField(
        "Payment status",
        name="paymentStatus",
        validators=[Optional(), AnyOf([s.value for s in PaymentStatus], message="Unknown payment status")],
    )
    admin_comment = StringField("Admin comment", name="adminComment", validators=[Optional(), Length(max=2000)])
    tracking_number = StringField("Tracking number", name="trackingNumber", validators=[Optional(), Length(max=100)])
    estimated_delivery_date = StringField("Estimated delivery", name="estimatedDeliveryDate", validators=[Optional()])
    actual_delivery_date = StringField("Actual delivery", name="actualDeliveryDate", validators=[Optional()])


class OrderStatusForm(JSONForm):
    order_status = StringField(
        "Order status",
        name="orderStatus",
        validators=[InputRequired(message=f"One of: {', '.join(s.value for s in OrderStatus)}")],
    )


class ApplyPromoForm(JSONForm):
    promo_code = StringField("Promo code", name="promoCode", validators=[InputRequired(), Length(max=50)])
