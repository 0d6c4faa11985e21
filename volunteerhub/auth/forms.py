"""Forms for the auth blueprint."""

from flask_wtf import FlaskForm  # type: ignore
from wtforms import StringField
from wtforms.validators import DataRequired


class SessionLoginForm(FlaskForm):
    """Exchange a Firebase ID token for a server-side session."""

    class Meta:
        csrf = False

    idToken = StringField("ID Token", validators=[DataRequired()])  # noqa: N815
