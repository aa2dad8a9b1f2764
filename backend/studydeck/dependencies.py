from datetime import datetime

from studydeck.services.scheduler import utcnow


def get_now() -> datetime:
    """Request clock; overridden in tests to pin "now"."""
    return utcnow()
