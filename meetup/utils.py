"""Utility functions for the application."""

import datetime


def now_to_the_second() -> datetime.datetime:
    """Return the current UTC time truncated to whole seconds."""
    return datetime.datetime.now(datetime.timezone.utc).replace(microsecond=0)
