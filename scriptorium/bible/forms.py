from wtforms import StringField, TextAreaField
from wtforms.validators import AnyOf, DataRequired, Length, Optional

from ..forms import ApiForm
from ..models import WORLD_RULE_CATEGORIES


class CharacterForm(ApiForm):
    numeric_text_fields = ("age",)

    name = StringField("Name", validators=[DataRequired(), Length(max=120)])
    age = StringField("Age", validators=[Optional()])
    personality = TextAreaField("Personality", validators=[Optional()])
    backstory = TextAreaField("Backstory", validators=[Optional()])
    fears = TextAreaField("Fears", validators=[Optional()])
    motivations = TextAreaField("Motivations", validators=[Optional()])
    voice = TextAreaField("Voice", validators=[Optional()])
    notes = TextAreaField("Notes", validators=[Optional()])


class PlaceForm(ApiForm):
    name = StringField("Name", validators=[DataRequired(), Length(max=120)])
    description = TextAreaField("Description", validators=[Optional()])
    atmosphere = TextAreaField("Atmosphere", validators=[Optional()])
    notes = TextAreaField("Notes", validators=[Optional()])


class WorldRuleForm(ApiForm):
    category = StringField(
        "Category",
        validators=[
            Optional(),
            AnyOf(
                WORLD_RULE_CATEGORIES,
                message=f"Category must be one of: {', '.join(WORLD_RULE_CATEGORIES)}.",
            ),
        ],
    )
    title = StringField("Title", validators=[DataRequired(), Length(max=150)])
    description = TextAreaField("Description", validators=[Optional()])
