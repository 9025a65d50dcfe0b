"""Decorators for API routes."""

from functools import wraps

from firebase_admin import firestore
from flask import g, request

from meetup.core.constants import INSTANCE_ID_HEADER
from meetup.errors import ValidationError
from meetup.user.services import IdentityDirectory


def identity_required(f=None):
    """Resolve the calling app instance before running the view.

    The resolved ``Identity`` is stored in ``g.identity`` and the directory
    used to resolve it in ``g.directory``, so views can look up other members
    without repeating queries. Unknown instances get a 403.

    Usage:
    @identity_required
    def protected_view():
        ...
    """

    def decorator(func):
        @wraps(func)
        def decorated_function(*args, **kwargs):
            instance_id = request.headers.get(INSTANCE_ID_HEADER, "")
            if not instance_id:
                raise ValidationError(f"The {INSTANCE_ID_HEADER} header is required.")
            directory = IdentityDirectory(firestore.client())
            g.identity = directory.require(instance_id)
            g.directory = directory
            return func(*args, **kwargs)

        return decorated_function

    if f:
        return decorator(f)
    return decorator
