"""Forms for the events blueprint."""

from flask_wtf import FlaskForm  # type: ignore
from wtforms import SelectField
from wtforms.validators import DataRequired

from .models import EventStatus


class EventStatusForm(FlaskForm):
    """Move an event through its lifecycle."""

    class Meta:
        csrf = False

    status = SelectField(
        "Status",
        choices=[(s.value, s.value.title()) for s in EventStatus],
        validators=[DataRequired()],
    )
