"""
Time port.

All timestamps are stored in UTC. Services take a TimePort so tests can pin
"now" (scheduled blog posts, signed-URL expiry, cache TTLs).
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol


class TimePort(Protocol):
    """Time provider interface."""

    def now_utc(self) -> datetime:
        """Get current UTC time (timezone-aware)."""
        ...
