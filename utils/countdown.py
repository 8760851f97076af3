"""Deadline and countdown utilities."""
import datetime
import math
from typing import Optional

import pytz

from config.config import (
    DEADLINE_DISPLAY_FORMAT,
    DEADLINE_INPUT_FORMAT,
    EXPIRED_MARKER,
    INVALID_DEADLINE_MARKER,
    TODO_TIMEZONE,
)
from models.task import Task, TaskState


class Countdown:
    """Utility class deriving task state and time remaining from a deadline."""

    @staticmethod
    def get_timezone(name: Optional[str] = None) -> datetime.tzinfo:
        """Get the configured timezone, falling back to UTC for unknown names."""
        try:
            return pytz.timezone(name or TODO_TIMEZONE)
        except pytz.exceptions.UnknownTimeZoneError:
            return pytz.UTC

    @staticmethod
    def now(tz: Optional[datetime.tzinfo] = None) -> datetime.datetime:
        """Get the current aware time."""
        return datetime.datetime.now(tz or Countdown.get_timezone())

    @staticmethod
    def parse_deadline(deadline: str, tz: Optional[datetime.tzinfo] = None) -> Optional[datetime.datetime]:
        """Parse an ISO-8601 deadline into an aware datetime.

        Values without an offset (datetime picker input) are taken to be in
        the configured timezone. Returns None when the value cannot be parsed.
        """
        if not deadline or not deadline.strip():
            return None
        raw = deadline.strip()
        if raw.endswith('Z'):
            raw = raw[:-1] + '+00:00'
        try:
            parsed = datetime.datetime.fromisoformat(raw)
        except ValueError:
            return None
        if parsed.tzinfo is None:
            tz = tz or Countdown.get_timezone()
            if hasattr(tz, 'localize'):
                return tz.localize(parsed)
            return parsed.replace(tzinfo=tz)
        return parsed

    @staticmethod
    def derive_state(completed: bool, deadline: Optional[datetime.datetime], now: datetime.datetime) -> TaskState:
        """Completed dominates; otherwise expired once now reaches the deadline."""
        if completed:
            return TaskState.COMPLETED
        if deadline is not None and now >= deadline:
            return TaskState.EXPIRED
        return TaskState.ACTIVE

    @staticmethod
    def task_state(task: Task, now: datetime.datetime) -> TaskState:
        """Derive the state of a stored task."""
        return Countdown.derive_state(task.completed, Countdown.parse_deadline(task.deadline), now)

    @staticmethod
    def countdown_text(deadline: Optional[datetime.datetime], now: datetime.datetime) -> str:
        """Format the time remaining as '{h}h {m}m {s}s' or the expired marker."""
        if deadline is None:
            return INVALID_DEADLINE_MARKER
        remaining = math.floor((deadline - now).total_seconds())
        if remaining <= 0:
            return EXPIRED_MARKER
        hours = remaining // 3600
        minutes = (remaining % 3600) // 60
        seconds = remaining % 60
        return f"{hours}h {minutes}m {seconds}s"

    @staticmethod
    def time_remaining(task: Task, now: datetime.datetime) -> str:
        """Countdown text for a stored task."""
        return Countdown.countdown_text(Countdown.parse_deadline(task.deadline), now)

    @staticmethod
    def format_for_input(deadline: str) -> str:
        """Render a stored deadline as the modal default (YYYY-MM-DDTHH:MM).

        Aware values are converted to the configured timezone first. Values that
        cannot be parsed are returned unchanged so the user can fix them.
        """
        parsed = Countdown.parse_deadline(deadline)
        if parsed is None:
            return deadline
        return parsed.astimezone(Countdown.get_timezone()).strftime(DEADLINE_INPUT_FORMAT)

    @staticmethod
    def format_for_display(deadline: str) -> str:
        """Render a stored deadline for the board."""
        parsed = Countdown.parse_deadline(deadline)
        if parsed is None:
            return deadline or INVALID_DEADLINE_MARKER
        return parsed.astimezone(Countdown.get_timezone()).strftime(DEADLINE_DISPLAY_FORMAT)
