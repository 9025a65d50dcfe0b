"""The user blueprint."""

from flask import Blueprint

from meetup.core.constants import API_PREFIX

bp = Blueprint("user", __name__, url_prefix=f"{API_PREFIX}/users")

from . import routes  # noqa: E402

__all__ = ["routes"]
