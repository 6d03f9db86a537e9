"""
Product forms for business catalog management.
"""
from wtforms import StringField, TextAreaField, DecimalField, IntegerField, BooleanField
from wtforms.validators import DataRequired, NumberRange, Length, Optional

from marketplace.forms.auth_forms import ApiForm, Present


class ProductForm(ApiForm):
    """New product. Price positivity is enforced by the pricing engine."""

    name = StringField('Name', validators=[DataRequired(message='Name is required'), Length(max=255)])
    description = TextAreaField('Description', validators=[Optional()])
    business_price = DecimalField('Business price', validators=[Present(message='Business price is required')])
    category = StringField('Category', validators=[DataRequired(message='Category is required'), Length(max=100)])
    stock_quantity = IntegerField(
        'Stock',
        validators=[
            Present(message='Stock quantity is required'),
            NumberRange(min=0, message='Stock quantity cannot be negative')
        ]
    )
    min_order_quantity = IntegerField(
        'Minimum order',
        validators=[
            Present(message='Minimum order quantity is required'),
            NumberRange(min=1, message='Minimum order quantity must be at least 1')
        ]
    )


class ProductUpdateForm(ApiForm):
    """Partial update; only keys present in the request are applied."""

    name = StringField('Name', validators=[Optional(), Length(max=255)])
    description = TextAreaField('Description', validators=[Optional()])
    business_price = DecimalField('Business price', validators=[Optional()])
    category = StringField('Category', validators=[Optional(), Length(max=100)])
    stock_quantity = IntegerField(
        'Stock',
        validators=[Optional(), NumberRange(min=0, message='Stock quantity cannot be negative')]
    )
    min_order_quantity = IntegerField(
        'Minimum order',
        validators=[Optional(), NumberRange(min=1, message='Minimum order quantity must be at least 1')]
    )
    # JSON bodies carry real booleans
    is_active = BooleanField('Active', false_values=(False, 'false', 'False', '0', ''), validators=[Optional()])
