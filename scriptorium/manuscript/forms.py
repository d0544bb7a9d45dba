from wtforms import IntegerField, StringField, TextAreaField
from wtforms.validators import AnyOf, DataRequired, InputRequired, Length, NumberRange, Optional

from ..forms import ApiForm
from ..models import SCENE_STATUSES

_STATUS_MESSAGE = f"Status must be one of: {', '.join(SCENE_STATUSES)}."


class ChapterForm(ApiForm):
    title = StringField("Chapter title", validators=[DataRequired(), Length(max=200)])
    order = IntegerField("Position", validators=[Optional(), NumberRange(min=0)])


class SceneForm(ApiForm):
    title = StringField("Scene title", validators=[DataRequired(), Length(max=200)])
    content = TextAreaField("Content", validators=[Optional()])
    synopsis = TextAreaField("Synopsis", validators=[Optional(), Length(max=5000)])
    status = StringField("Status", validators=[Optional(), AnyOf(SCENE_STATUSES, message=_STATUS_MESSAGE)])
    order = IntegerField("Position", validators=[Optional(), NumberRange(min=0)])


class SceneMoveForm(ApiForm):
    status = StringField("Status", validators=[Optional(), AnyOf(SCENE_STATUSES, message=_STATUS_MESSAGE)])
    chapter_id = IntegerField("Chapter", validators=[Optional()])
    order = IntegerField("Position", validators=[Optional(), NumberRange(min=0)])


class SceneVersionForm(ApiForm):
    content = TextAreaField("Content", validators=[InputRequired(message="Version content is required.")])
