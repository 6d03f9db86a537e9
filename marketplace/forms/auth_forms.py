"""
Account forms: registration and login.
"""
from flask_wtf import FlaskForm
from wtforms import StringField, PasswordField, SelectField
from wtforms.validators import DataRequired, Length, Optional, Regexp, ValidationError, StopValidation

EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'


class ApiForm(FlaskForm):
    """JSON API forms; the auth cookie is SameSite=Strict so no CSRF token is used."""

    class Meta:
        csrf = False


class Present:
    """
    InputRequired for JSON bodies: a literal 0 or false counts as input.
    """
    field_flags = {'required': True}

    def __init__(self, message=None):
        self.message = message

    def __call__(self, form, field):
        if field.raw_data and field.raw_data[0] is not None and field.raw_data[0] != '':
            return
        field.errors[:] = []
        raise StopValidation(self.message or field.gettext('This field is required.'))


class RegistrationForm(ApiForm):
    """Self-registration for consumers and businesses. Admins are created from the CLI."""

    email = StringField(
        'Email',
        validators=[
            DataRequired(message='Email is required'),
            Length(max=255),
            Regexp(EMAIL_PATTERN, message='Invalid email')
        ]
    )
    password = PasswordField(
        'Password',
        validators=[
            DataRequired(message='Password is required'),
            Length(min=6, message='Password must be at least 6 characters')
        ]
    )
    account_type = SelectField(
        'Account type',
        choices=[('consumer', 'Consumer'), ('business', 'Business')],
        validators=[DataRequired(message='Account type is required')]
    )
    first_name = StringField('First name', validators=[DataRequired(message='First name is required'), Length(max=100)])
    last_name = StringField('Last name', validators=[DataRequired(message='Last name is required'), Length(max=100)])
    address = StringField('Address', validators=[DataRequired(message='Address is required')])
    phone = StringField('Phone', validators=[Optional(), Length(max=20)])
    business_name = StringField('Business name', validators=[Length(max=255)])
    cedula_number = StringField('Cedula', validators=[Optional(), Length(max=20)])

    def validate_business_name(self, field):
        if self.account_type.data == 'business' and not (field.data or '').strip():
            raise ValidationError('Business name is required for business accounts')


class LoginForm(ApiForm):
    email = StringField('Email', validators=[DataRequired(message='Email is required')])
    password = PasswordField('Password', validators=[DataRequired(message='Password is required')])
