"""Forms for the chat blueprint."""

from flask_wtf import FlaskForm  # type: ignore
from wtforms import SelectField, StringField
from wtforms.validators import DataRequired, Optional

from .models import AdminActionType


class ModerationForm(FlaskForm):
    """Payload of the moderation callable."""

    class Meta:
        csrf = False

    operation = SelectField(
        "Operation",
        choices=[(a.value, a.value) for a in AdminActionType],
        validators=[DataRequired()],
    )
    chatRoomId = StringField("Chat Room", validators=[DataRequired()])  # noqa: N815
    messageId = StringField("Message", validators=[Optional()])  # noqa: N815
    participantId = StringField("Participant", validators=[Optional()])  # noqa: N815
