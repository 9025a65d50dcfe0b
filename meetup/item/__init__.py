"""The item blueprint."""

from flask import Blueprint

from meetup.core.constants import API_PREFIX

bp = Blueprint("item", __name__, url_prefix=f"{API_PREFIX}/items")

from . import routes  # noqa: E402

__all__ = ["routes"]
