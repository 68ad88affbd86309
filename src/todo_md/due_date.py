"""
Due date evaluation for todo-md

This module turns the value of a ``{due:...}`` annotation into a schedule and
classifies it against an injected "now": absolute dates (optionally with a
time of day) and compact recurrence patterns such as ``ed``, ``mon,fri`` or
``2024-01-01|e2w``.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import List, Optional

from .utils.datetime import (
    add_months,
    align_to,
    days_between,
    months_between,
    parse_date_or_datetime,
    parse_iso_date,
    parse_iso_datetime,
)

logger = logging.getLogger(__name__)


class DueState(Enum):
    """Temporal classification of a due date"""
    INVALID = "invalid"
    OVERDUE = "overdue"
    DUE = "due"
    NOT_DUE = "notDue"


class RecurrenceType(Enum):
    """Types of recurrence patterns"""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


@dataclass
class RecurrencePattern:
    """Defines a recurrence pattern for a due date"""
    type: RecurrenceType
    interval: int = 1  # Every N days/weeks/months/years
    days_of_week: List[int] = field(default_factory=list)  # 0=Monday, 6=Sunday
    anchor: Optional[date] = None  # First occurrence for interval patterns

    def _step_days(self) -> int:
        return self.interval * (7 if self.type == RecurrenceType.WEEKLY else 1)

    def _step_months(self) -> int:
        return self.interval * (12 if self.type == RecurrenceType.YEARLY else 1)

    def previous_occurrence(self, day: date) -> Optional[date]:
        """Most recent occurrence on or before ``day`` (None before the anchor)"""
        if self.anchor is None:
            if self.type == RecurrenceType.DAILY:
                return day
            for back in range(7):
                candidate = day - timedelta(days=back)
                if candidate.weekday() in self.days_of_week:
                    return candidate
            return None

        if day < self.anchor:
            return None

        if self.type in (RecurrenceType.DAILY, RecurrenceType.WEEKLY):
            step = self._step_days()
            elapsed = days_between(self.anchor, day)
            return self.anchor + timedelta(days=(elapsed // step) * step)

        step = self._step_months()
        k = months_between(self.anchor, day) // step * step
        candidate = add_months(self.anchor, k)
        if candidate > day:
            candidate = add_months(self.anchor, k - step)
        return candidate

    def next_occurrence(self, day: date) -> Optional[date]:
        """First occurrence strictly after ``day``"""
        if self.anchor is None:
            if self.type == RecurrenceType.DAILY:
                return day + timedelta(days=1)
            for ahead in range(1, 8):
                candidate = day + timedelta(days=ahead)
                if candidate.weekday() in self.days_of_week:
                    return candidate
            return None

        if day < self.anchor:
            return self.anchor

        if self.type in (RecurrenceType.DAILY, RecurrenceType.WEEKLY):
            step = self._step_days()
            elapsed = days_between(self.anchor, day)
            return self.anchor + timedelta(days=(elapsed // step + 1) * step)

        step = self._step_months()
        k = months_between(self.anchor, day) // step * step
        candidate = add_months(self.anchor, k)
        while candidate <= day:
            k += step
            candidate = add_months(self.anchor, k)
        return candidate


class RecurrenceParser:
    """Parses compact recurrence specifiers"""

    DAY_NAMES = ['monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday']

    PATTERNS = {
        r'^(?:ed|daily|everyday)$': (RecurrenceType.DAILY, {'interval': 1}),
        r'^(?:weekdays|workdays)$': (RecurrenceType.WEEKLY, {'days_of_week': [0, 1, 2, 3, 4]}),
        r'^weekends$': (RecurrenceType.WEEKLY, {'days_of_week': [5, 6]}),
    }

    INTERVAL_RE = re.compile(r'^(\d{4}-\d{2}-\d{2})\|e(\d+)([dwmy])$')

    UNITS = {
        'd': RecurrenceType.DAILY,
        'w': RecurrenceType.WEEKLY,
        'm': RecurrenceType.MONTHLY,
        'y': RecurrenceType.YEARLY,
    }

    @classmethod
    def day_name_to_number(cls, day_name: str) -> Optional[int]:
        """Convert a full or 3-letter day name to a number (0=Monday)"""
        day_name = day_name.lower()
        for number, name in enumerate(cls.DAY_NAMES):
            if day_name == name or day_name == name[:3]:
                return number
        return None

    @classmethod
    def parse(cls, pattern_str: str) -> Optional[RecurrencePattern]:
        """Parse a recurrence specifier, returning None when it is not one"""
        pattern_str = pattern_str.lower().strip()

        for regex, (rec_type, params) in cls.PATTERNS.items():
            if re.match(regex, pattern_str):
                return RecurrencePattern(type=rec_type, **params)

        match = cls.INTERVAL_RE.match(pattern_str)
        if match:
            anchor = parse_iso_date(match.group(1))
            interval = int(match.group(2))
            if anchor is None or interval < 1:
                return None
            return RecurrencePattern(type=cls.UNITS[match.group(3)], interval=interval, anchor=anchor)

        return cls._parse_weekday_set(pattern_str)

    @classmethod
    def _parse_weekday_set(cls, pattern_str: str) -> Optional[RecurrencePattern]:
        days = []
        for name in pattern_str.split(','):
            number = cls.day_name_to_number(name.strip())
            if number is None:
                return None
            if number not in days:
                days.append(number)
        return RecurrencePattern(type=RecurrenceType.WEEKLY, days_of_week=sorted(days))


@dataclass(frozen=True)
class DueStatus:
    """Result of evaluating a due date at one moment"""
    is_due: DueState
    overdue_in_days: int = 0
    days_until_due: int = 0


class DueDate:
    """A parsed due date specifier.

    Holds only what was parsed from ``raw`` and the optional ``overdue``
    override. Every temporal property is computed from the ``now`` passed in,
    so one instance stays correct across day boundaries.
    """

    def __init__(self, raw: str, overdue: Optional[str] = None):
        self.raw = raw
        self.overdue = overdue
        self.moment: Optional[datetime] = None
        self.day: Optional[date] = None
        self.pattern: Optional[RecurrencePattern] = None

        self.moment = parse_iso_datetime(raw)
        if self.moment is None:
            self.day = parse_iso_date(raw)
        if self.moment is None and self.day is None:
            self.pattern = RecurrenceParser.parse(raw)
            if self.pattern is None:
                logger.debug(f"Unrecognized due date specifier: {raw!r}")

    def __repr__(self) -> str:
        if self.overdue is not None:
            return f"DueDate({self.raw!r}, overdue={self.overdue!r})"
        return f"DueDate({self.raw!r})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, DueDate):
            return NotImplemented
        return (self.raw, self.overdue) == (other.raw, other.overdue)

    def __hash__(self) -> int:
        return hash((self.raw, self.overdue))

    @property
    def is_recurring(self) -> bool:
        return self.pattern is not None

    @property
    def is_valid(self) -> bool:
        return self.moment is not None or self.day is not None or self.pattern is not None

    def status(self, now: datetime) -> DueStatus:
        """Classify this due date at ``now``.

        Args:
            now: The current moment, injected by the caller

        Returns:
            DueStatus with the state and aging metrics
        """
        computed = self._computed_status(now)
        if computed.is_due == DueState.INVALID or not self.overdue:
            return computed

        override_day = parse_date_or_datetime(self.overdue)
        if override_day is None:
            return computed
        aging = days_between(override_day, now.date())
        if aging < 0:
            return computed
        return DueStatus(DueState.OVERDUE, overdue_in_days=aging)

    def is_due(self, now: datetime) -> DueState:
        return self.status(now).is_due

    def overdue_in_days(self, now: datetime) -> int:
        return self.status(now).overdue_in_days

    def days_until_due(self, now: datetime) -> int:
        return self.status(now).days_until_due

    def _computed_status(self, now: datetime) -> DueStatus:
        today = now.date()

        if self.moment is not None:
            moment = align_to(self.moment, now)
            delta = days_between(moment.date(), today)
            if delta > 0:
                return DueStatus(DueState.OVERDUE, overdue_in_days=delta)
            if now >= moment:
                return DueStatus(DueState.DUE)
            return DueStatus(DueState.NOT_DUE, days_until_due=-delta)

        if self.day is not None:
            delta = days_between(self.day, today)
            if delta > 0:
                return DueStatus(DueState.OVERDUE, overdue_in_days=delta)
            if delta == 0:
                return DueStatus(DueState.DUE)
            return DueStatus(DueState.NOT_DUE, days_until_due=-delta)

        if self.pattern is not None:
            if self.pattern.previous_occurrence(today) == today:
                return DueStatus(DueState.DUE)
            upcoming = self.pattern.next_occurrence(today)
            until = days_between(today, upcoming) if upcoming is not None else 0
            return DueStatus(DueState.NOT_DUE, days_until_due=until)

        return DueStatus(DueState.INVALID)
