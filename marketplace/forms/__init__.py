"""Request forms (Flask-WTF), used for JSON bodies as well as form posts."""
from marketplace.exceptions import BusinessLogicError


def validate_or_raise(form):
    """Validate a submitted form; raise a 400 listing every field error."""
    if form.validate_on_submit():
        return form

    messages = []
    for field_errors in form.errors.values():
        messages.extend(str(error) for error in field_errors)
    raise BusinessLogicError(
        ", ".join(messages) or 'Invalid request data',
        payload={'errors': form.errors}
    )
