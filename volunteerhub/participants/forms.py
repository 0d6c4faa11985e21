"""Forms for the participants blueprint."""

from flask_wtf import FlaskForm  # type: ignore
from wtforms import SelectField
from wtforms.validators import DataRequired

from volunteerhub.events.models import ParticipantStatus


class StatusUpdateForm(FlaskForm):
    """Record a participant's attendance."""

    class Meta:
        csrf = False

    status = SelectField(
        "Status",
        choices=[(s.value, s.value) for s in ParticipantStatus],
        validators=[DataRequired()],
    )
