from wtforms import StringField, TextAreaField
from wtforms.validators import DataRequired, Length, Optional

from ..forms import ApiForm


class ProjectForm(ApiForm):
    title = StringField("Project title", validators=[DataRequired(), Length(max=150)])
    genre = StringField("Genre", validators=[DataRequired(), Length(max=80)])
    description = TextAreaField("Short description", validators=[Optional(), Length(max=2000)])
    tone = TextAreaField("Tone and style", validators=[Optional(), Length(max=2000)])
