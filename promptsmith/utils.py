"""Utility functions shared across the engine."""

import os
import uuid
from datetime import datetime, timezone


def get_app_name() -> str:
    """Get the application name from environment variable.

    Returns:
        str: Application name from APP_NAME environment variable,
             defaults to "PromptSmith" if not set.
    """
    return os.getenv("APP_NAME", "PromptSmith")


def get_author() -> str:
    """Get the author recorded on new versions.

    PROMPTSMITH_AUTHOR wins, then the login name in USER, then "unknown".
    """
    return os.getenv("PROMPTSMITH_AUTHOR") or os.getenv("USER") or "unknown"


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> str:
    """Current UTC time as an ISO-8601 string with microseconds."""
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")
