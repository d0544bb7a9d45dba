from wtforms import PasswordField, StringField
from wtforms.validators import Email, EqualTo, InputRequired, Length, Optional, ValidationError

from ..forms import ApiForm
from ..models import User

MIN_PASSWORD_LENGTH = 6


class RegistrationForm(ApiForm):
    display_name = StringField("Display name", validators=[InputRequired(), Length(max=120)])
    email = StringField("Email", validators=[InputRequired(), Email(), Length(max=255)])
    password = PasswordField(
        "Password",
        validators=[
            InputRequired(),
            Length(
                min=MIN_PASSWORD_LENGTH,
                max=128,
                message=f"Passwords must be at least {MIN_PASSWORD_LENGTH} characters long.",
            ),
        ],
    )
    confirm_password = PasswordField(
        "Confirm password",
        validators=[Optional(), EqualTo("password", message="Passwords must match.")],
    )

    def validate_email(self, field: StringField) -> None:
        if User.query.filter_by(email=field.data.strip().lower()).first():
            raise ValidationError("An account with that email already exists.")


class LoginForm(ApiForm):
    email = StringField("Email", validators=[InputRequired(), Email(), Length(max=255)])
    password = PasswordField("Password", validators=[InputRequired()])


class ProfileForm(ApiForm):
    display_name = StringField("Display name", validators=[Optional(), Length(max=120)])
    bio = StringField("Bio", validators=[Optional(), Length(max=2000)])
    website = StringField("Website", validators=[Optional(), Length(max=255)])
    location = StringField("Location", validators=[Optional(), Length(max=120)])
    avatar_url = StringField("Avatar URL", validators=[Optional(), Length(max=500)])


class ChangePasswordForm(ApiForm):
    current_password = PasswordField("Current password", validators=[InputRequired()])
    new_password = PasswordField(
        "New password",
        validators=[
            InputRequired(),
            Length(
                min=MIN_PASSWORD_LENGTH,
                max=128,
                message=f"Passwords must be at least {MIN_PASSWORD_LENGTH} characters long.",
            ),
        ],
    )
