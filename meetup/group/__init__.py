"""The group blueprint."""

from flask import Blueprint

from meetup.core.constants import API_PREFIX

bp = Blueprint("group", __name__, url_prefix=f"{API_PREFIX}/groups")

from . import routes  # noqa: E402

__all__ = ["routes"]
