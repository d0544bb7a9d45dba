from flask import Blueprint

bp = Blueprint("manuscript", __name__)

from . import routes  # noqa: E402,F401
