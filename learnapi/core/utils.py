"""
Utility helpers shared across routers/services.
"""

from datetime import datetime, timezone
from typing import Optional


def isoformat(value: Optional[datetime]) -> Optional[str]:
    """Render a datetime as ISO-8601, treating naive values as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()
