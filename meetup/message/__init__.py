"""The message blueprint."""

from flask import Blueprint

from meetup.core.constants import API_PREFIX

bp = Blueprint("message", __name__, url_prefix=API_PREFIX)

from . import routes  # noqa: E402

__all__ = ["routes"]
