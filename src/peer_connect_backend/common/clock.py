'''
The single source of "now" for booking and matching rules.
Injected as a FastAPI dependency so tests can pin the calendar.
'''
from datetime import date, datetime
from zoneinfo import ZoneInfo

from .config import settings


class Clock:
    """
    Resolves the current date/time in the campus timezone (settings.TIMEZONE).
    """
    def __init__(self):
        self.tz = ZoneInfo(settings.TIMEZONE)

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()
