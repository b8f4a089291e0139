from flask import Blueprint

bp = Blueprint("images", __name__)

from . import routes  # noqa: E402,F401
