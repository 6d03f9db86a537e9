"""
Seller verification and admin forms.
"""
from wtforms import StringField, TextAreaField, SelectField, IntegerField
from wtforms.validators import DataRequired, Length, Optional

from marketplace.forms.auth_forms import ApiForm, Present
from marketplace.models import DocumentType, OrderStatus


class SellerDocumentForm(ApiForm):
    """Metadata of a document already uploaded to external storage."""

    document_type = SelectField(
        'Document type',
        choices=[(t.value, t.value) for t in DocumentType],
        validators=[DataRequired(message='Document type is required')]
    )
    file_url = StringField('File URL', validators=[DataRequired(message='File URL is required'), Length(max=500)])
    file_name = StringField('File name', validators=[DataRequired(message='File name is required'), Length(max=255)])


class VerificationDecisionForm(ApiForm):
    user_id = IntegerField('Seller', validators=[Present(message='user_id is required')])
    action = SelectField(
        'Action',
        choices=[('approve', 'Approve'), ('reject', 'Reject')],
        validators=[DataRequired(message='Action must be approve or reject')]
    )
    notes = TextAreaField('Notes', validators=[Optional()])


class OrderStatusForm(ApiForm):
    status = SelectField(
        'Status',
        choices=[(s.value, s.value) for s in OrderStatus],
        validators=[DataRequired(message='Status is required')]
    )
