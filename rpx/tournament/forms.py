"""Forms for the tournament blueprint.

The API receives JSON bodies; Flask-WTF binds them to these forms the same
way it binds submitted HTML forms.
"""

from typing import Any

from flask_wtf import FlaskForm
from wtforms import (
    BooleanField,
    DateTimeField,
    FloatField,
    IntegerField,
    SelectField,
    StringField,
    TextAreaField,
)
from wtforms.validators import URL, DataRequired, NumberRange, Optional, StopValidation

from rpx.core.constants import DATETIME_FORMATS

from .models import BracketType, ParticipantStatus, TournamentFormat, TournamentStatus


def value_required(form: Any, field: Any) -> None:
    """Like DataRequired, but accepts falsy values such as a score of 0."""
    if field.data is None:
        raise StopValidation("This field is required.")


class JSONValueMixin:
    """Field behaviour for values decoded from a JSON body.

    ``null`` counts as a missing key. Values of another JSON type are rejected
    instead of being coerced, so ``2.7`` or ``true`` never become an integer.
    """

    json_types: tuple = (str,)
    type_error = "Not a valid value."

    def process_formdata(self, valuelist):
        if valuelist and valuelist[0] is None:
            self.raw_data = []
            return
        if valuelist and (
            isinstance(valuelist[0], bool)
            or not isinstance(valuelist[0], self.json_types)
        ):
            self.data = None
            raise ValueError(self.gettext(self.type_error))
        super().process_formdata(valuelist)


class JSONStringField(JSONValueMixin, StringField):
    type_error = "Not a valid string."


class JSONTextAreaField(JSONValueMixin, TextAreaField):
    type_error = "Not a valid string."


class JSONIntegerField(JSONValueMixin, IntegerField):
    json_types = (int, str)
    type_error = "Not a valid integer value."


class JSONFloatField(JSONValueMixin, FloatField):
    json_types = (int, float, str)
    type_error = "Not a valid float value."


class JSONDateTimeField(JSONValueMixin, DateTimeField):
    type_error = "Not a valid datetime value."


class TournamentForm(FlaskForm):
    """Form for creating a tournament."""

    name = JSONStringField("Tournament Name", validators=[DataRequired()])

    description = JSONTextAreaField("Description", validators=[DataRequired()])

    start_date = JSONDateTimeField(
        "Start Date", format=DATETIME_FORMATS, validators=[DataRequired()]
    )
    end_date = JSONDateTimeField(
        "End Date", format=DATETIME_FORMATS, validators=[DataRequired()]
    )
    registration_start_date = JSONDateTimeField(
        "Registration Opens", format=DATETIME_FORMATS, validators=[DataRequired()]
    )
    registration_end_date = JSONDateTimeField(
        "Registration Closes", format=DATETIME_FORMATS, validators=[DataRequired()]
    )

    format = SelectField(
        "Format",
        choices=[(f, f) for f in TournamentFormat.ALL],
        validators=[DataRequired()],
    )

    bracket_type = SelectField(
        "Bracket Type",
        choices=[(b, b.replace("_", " ").title()) for b in BracketType.ALL],
        validators=[Optional()],
        default=BracketType.SINGLE_ELIMINATION,
    )

    status = SelectField(
        "Initial Status",
        choices=[
            (TournamentStatus.DRAFT, "Draft"),
            (TournamentStatus.PUBLISHED, "Published"),
            (TournamentStatus.REGISTRATION, "Registration"),
        ],
        validators=[Optional()],
        default=TournamentStatus.DRAFT,
    )

    game_rules = JSONTextAreaField("Game Rules", validators=[DataRequired()])

    entry_fee = JSONFloatField(
        "Entry Fee", validators=[Optional(), NumberRange(min=0)], default=0
    )
    prize_pool = JSONFloatField(
        "Prize Pool", validators=[Optional(), NumberRange(min=0)], default=0
    )

    min_participants = JSONIntegerField(
        "Minimum Participants", validators=[Optional(), NumberRange(min=2)], default=2
    )
    max_participants = JSONIntegerField(
        "Maximum Participants", validators=[DataRequired(), NumberRange(min=2)]
    )

    image = JSONStringField("Image", validators=[DataRequired()])
    banner_image = JSONStringField("Banner Image", validators=[Optional()])
    color = JSONStringField("Color", validators=[Optional()])
    stream_url = JSONStringField("Stream URL", validators=[Optional(), URL()])
    discord_url = JSONStringField("Discord URL", validators=[Optional(), URL()])

    featured = BooleanField("Featured")
    is_public = BooleanField("Public", default=True)

    def to_payload(self, raw: dict[str, Any]) -> dict[str, Any]:
        """Return the cleaned values, leaving absent flags to service defaults."""
        payload = {
            name: field.data for name, field in self._fields.items() if name != "csrf_token"
        }
        # A missing checkbox reads as False; only keep flags the client sent.
        for flag in ("featured", "is_public"):
            if flag not in raw:
                payload.pop(flag)
        payload["prizes"] = raw.get("prizes")
        return payload


class StatusForm(FlaskForm):
    """Form for an organizer-requested status change."""

    status = SelectField(
        "Status",
        choices=[
            (TournamentStatus.PUBLISHED, "Published"),
            (TournamentStatus.REGISTRATION, "Registration"),
            (TournamentStatus.CANCELLED, "Cancelled"),
        ],
        validators=[DataRequired()],
    )


class RegistrationForm(FlaskForm):
    """Form for registering in a tournament."""

    team_id = JSONStringField("Team", validators=[Optional()])


class ParticipantStatusForm(FlaskForm):
    """Form for confirming, declining or seeding a participant."""

    status = SelectField(
        "Status",
        choices=[(s, s.title()) for s in ParticipantStatus.ASSIGNABLE],
        validators=[DataRequired()],
    )
    seed = JSONIntegerField("Seed", validators=[Optional(), NumberRange(min=1)])


class MatchResultForm(FlaskForm):
    """Form for reporting a match result."""

    score1 = JSONIntegerField(
        "Score 1", validators=[value_required, NumberRange(min=0)]
    )
    score2 = JSONIntegerField(
        "Score 2", validators=[value_required, NumberRange(min=0)]
    )
    winner_id = JSONStringField("Winner", validators=[DataRequired()])


class StartMatchForm(FlaskForm):
    """Form for starting a match and sharing its room."""

    room_id = JSONStringField("Room ID", validators=[Optional()])
    room_password = JSONStringField("Room Password", validators=[Optional()])
