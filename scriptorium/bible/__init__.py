from flask import Blueprint

bp = Blueprint("bible", __name__)

from . import routes  # noqa: E402,F401
