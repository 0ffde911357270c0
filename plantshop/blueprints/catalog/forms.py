from wtforms import FloatField, IntegerField, StringField
from wtforms.validators import InputRequired, Length, NumberRange, Optional

from plantshop.utils.forms import JSONBooleanField, JSONForm


class ProductForm(JSONForm):
    name = StringField("Name", validators=[InputRequired(), Length(min=1, max=200)])
    description = StringField("Description", validators=[Optional(), Length(max=5000)])
    price = FloatField("Price", validators=[InputRequired(), NumberRange(min=0)])
    original_price = FloatField("Original price", name="originalPrice", validators=[Optional(), NumberRange(min=0)])
    quantity = IntegerField("Quantity", validators=[InputRequired(), NumberRange(min=0)])
    category = StringField("Category", validators=[Optional(), Length(max=100)])
    is_available = JSONBooleanField("Available", name="isAvailable", default=True)
    is_preorder = JSONBooleanField("Preorder", name="isPreorder", default=False)
    is_rare = JSONBooleanField("Rare", name="isRare", default=False)
    is_easy_to_care = JSONBooleanField("Easy to care", name="isEasyToCare", default=False)
    delivery_cost = FloatField("Delivery cost", name="deliveryCost", validators=[Optional(), NumberRange(min=0)])


class ReviewForm(JSONForm):
    product_id = IntegerField("Product", name="productId", validators=[InputRequired()])
    rating = IntegerField("Rating", validators=[InputRequired(), NumberRange(min=1, max=5)])
    text = StringField("Text", validators=[InputRequired(), Length(min=3, max=2000)])


class ReviewModerationForm(JSONForm):
    is_approved = JSONBooleanField("Approved", name="isApproved")
