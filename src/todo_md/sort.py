"""Task ordering for todo-md.

All functions return new lists and never reorder their input. Every
comparator is expressed as a key for Python's stable sort, so tasks that
compare equal keep their relative order.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import List, Optional, Sequence

from .due_date import DueState
from .task import Task
from .utils.datetime import parse_date_or_datetime, parse_iso_datetime

logger = logging.getLogger(__name__)

# Sorts after every letter, so tasks without a priority come last.
NO_PRIORITY = '~'


class SortDirection(Enum):
    """Sorting direction"""
    DESC = "desc"
    ASC = "asc"


class SortProperty(Enum):
    """Sorting property"""
    DEFAULT = "default"
    PRIORITY = "priority"
    PROJECT = "project"
    NOT_DUE = "notDue"
    OVERDUE = "overdue"
    CREATION_DATE = "creationDate"
    COMPLETION_DATE = "completionDate"


class UnsupportedValueError(Exception):
    """Raised when a value outside of a known enumeration reaches a dispatcher."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"Unsupported value: {value!r}")


def _overdue_days(task: Task, now: datetime) -> int:
    return task.due.overdue_in_days(now) if task.due else 0


def _days_until(task: Task, now: datetime) -> int:
    return task.due.days_until_due(now) if task.due else 0


def _date_key(value: Optional[str]):
    """Missing (or unreadable) dates sort before every present date."""
    if value:
        moment = parse_iso_datetime(value)
        if moment is not None:
            return (1, moment.date(), moment.time())
        day = parse_date_or_datetime(value)
        if day is not None:
            return (1, day, datetime.min.time())
    return (0,)


def sort_tasks(tasks: Sequence[Task], sort_property: SortProperty, now: datetime,
               direction: SortDirection = SortDirection.DESC) -> List[Task]:
    """Sort tasks by one property.

    Args:
        tasks: Tasks to sort (not modified)
        sort_property: What to sort by
        now: The current moment, used by the due-date based orderings
        direction: ASC reverses the final sequence

    Returns:
        A new list holding the same tasks

    Raises:
        UnsupportedValueError: For a sort property this engine does not know
    """
    tasks_copy = list(tasks)

    if sort_property == SortProperty.DEFAULT:
        sorted_tasks = default_sort_tasks(tasks_copy, now)
    elif sort_property == SortProperty.PRIORITY:
        sorted_tasks = sorted(tasks_copy, key=lambda t: t.priority or NO_PRIORITY)
    elif sort_property == SortProperty.PROJECT:
        sorted_tasks = sort_by_project_similarity(tasks_copy)
    elif sort_property == SortProperty.CREATION_DATE:
        sorted_tasks = sorted(tasks_copy, key=lambda t: _date_key(t.creation_date))
    elif sort_property == SortProperty.COMPLETION_DATE:
        sorted_tasks = sorted(tasks_copy, key=lambda t: _date_key(t.completion_date))
    elif sort_property == SortProperty.OVERDUE:
        sorted_tasks = sorted(tasks_copy, key=lambda t: -_overdue_days(t, now))
    elif sort_property == SortProperty.NOT_DUE:
        sorted_tasks = sorted(tasks_copy, key=lambda t: _days_until(t, now))
    else:
        raise UnsupportedValueError(sort_property)

    if direction == SortDirection.ASC:
        sorted_tasks.reverse()

    logger.debug(f"Sorted {len(sorted_tasks)} tasks by {sort_property.value} ({direction.value})")
    return sorted_tasks


def default_sort_tasks(tasks: Sequence[Task], now: datetime) -> List[Task]:
    """Sort tasks by groups: invalid, overdue, due, no due date, not yet due.

    Priority order is applied first and carried into every group. Overdue
    tasks are then ordered by how long they are overdue, not-yet-due tasks
    by how soon they become due.
    """
    by_priority = sort_tasks(tasks, SortProperty.PRIORITY, now)

    buckets = {state: [] for state in DueState}
    no_due: List[Task] = []
    for task in by_priority:
        if task.due is None:
            no_due.append(task)
        else:
            buckets[task.due.is_due(now)].append(task)

    return [
        *buckets[DueState.INVALID],
        *sort_tasks(buckets[DueState.OVERDUE], SortProperty.OVERDUE, now),
        *buckets[DueState.DUE],
        *no_due,
        *sort_tasks(buckets[DueState.NOT_DUE], SortProperty.NOT_DUE, now),
    ]


def sort_by_project_similarity(tasks: Sequence[Task]) -> List[Task]:
    """Cluster tasks that share projects.

    Every ordered pair of tasks gets a similarity (the number of shared
    projects). Pairs are stably sorted by similarity, flattened into a
    sequence of positions, and each task is placed by its last appearance
    in that sequence. Quadratic in the number of tasks.
    """
    project_sets = [set(task.projects) for task in tasks]
    pairs = []
    for first in range(len(tasks)):
        for second in range(len(tasks)):
            similarity = len(project_sets[first] & project_sets[second])
            pairs.append((first, second, similarity))
    pairs.sort(key=lambda pair: pair[2])

    sequence = []
    for first, second, _ in pairs:
        sequence.extend((second, first))

    seen = set()
    order = []
    for position in reversed(sequence):
        if position not in seen:
            seen.add(position)
            order.append(position)
    order.reverse()

    return [tasks[position] for position in order]


def next_task(tasks: Sequence[Task], now: datetime) -> Optional[Task]:
    """Pick the task to work on next.

    Only open tasks are considered; when some of them are due or overdue the
    choice is restricted to those. The highest priority wins.
    """
    candidates = [task for task in tasks if not task.done]
    if not candidates:
        return None

    due_candidates = [
        task for task in candidates
        if task.due is not None and task.due.is_due(now) in (DueState.DUE, DueState.OVERDUE)
    ]
    if due_candidates:
        candidates = due_candidates

    return sort_tasks(candidates, SortProperty.PRIORITY, now)[0]
