"""Text edit producers for todo-md.

These functions translate a parsed task and its annotation ranges into edits
of the source text (marking done, bumping a counter, resetting recurring
tasks). They only describe edits; applying them to a buffer or a file is the
caller's business. ``apply_edits`` is provided for plain line lists.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence

from .config import ConfigModel
from .document import Document
from .due_date import DueState
from .sort import SortProperty, sort_tasks
from .task import Range, Task
from .utils.datetime import format_iso_date

logger = logging.getLogger(__name__)

COUNT_VALUE_OFFSET = len('{count:')


@dataclass(frozen=True)
class TextEdit:
    """Replace ``range`` with ``new_text`` (an empty range inserts)."""
    range: Range
    new_text: str


@dataclass(frozen=True)
class LineBlockEdit:
    """Replace lines ``first_line``..``last_line`` (inclusive) with ``lines``."""
    first_line: int
    last_line: int
    lines: List[str]


def _delete(line: int, start: int, end: int) -> TextEdit:
    return TextEdit(Range(line, start, end), '')


def _insert(line: int, column: int, text: str) -> TextEdit:
    return TextEdit(Range(line, column, column), text)


def _delete_annotation(task: Task, annotation: Range) -> TextEdit:
    """Delete an annotation together with the space in front of it."""
    start = annotation.start
    if start > 0 and task.raw_text[start - 1] == ' ':
        start -= 1
    return _delete(task.line_number, start, annotation.end)


def _undone_edits(task: Task, config: ConfigModel) -> List[TextEdit]:
    edits = []
    indent = task.first_non_whitespace_index
    if task.raw_text[indent:].startswith(config.done_symbol):
        edits.append(_delete(task.line_number, indent, indent + len(config.done_symbol)))
    if task.completion_date_range is not None:
        edits.append(_delete_annotation(task, task.completion_date_range))
    return edits


def _counter_edit(task: Task, new_value: int) -> TextEdit:
    start = task.count.range.start + COUNT_VALUE_OFFSET
    return TextEdit(Range(task.line_number, start, start + len(str(task.count.current))),
                    str(new_value))


def toggle_done_edits(task: Task, config: ConfigModel, now: datetime) -> List[TextEdit]:
    """Edits that flip the completion state of ``task``.

    A task with a counter has its current value incremented instead, wrapping
    to 0 once the counter is complete.
    """
    if task.count is not None:
        new_value = 0 if task.count.current == task.count.needed else task.count.current + 1
        return [_counter_edit(task, new_value)]

    if task.done:
        return _undone_edits(task, config)

    if config.add_completion_date:
        stamp = format_iso_date(now, config.completion_date_include_time)
        return [_insert(task.line_number, len(task.raw_text.rstrip()), f" {{cm:{stamp}}}")]
    return [_insert(task.line_number, task.first_non_whitespace_index, config.done_symbol)]


def needs_recurring_reset(last_visit: Optional[datetime], now: datetime) -> bool:
    """True on the first visit of a day (or the very first visit)."""
    if last_visit is None:
        return True
    return last_visit.date() != now.date()


def reset_recurring_edits(tasks: Sequence[Task], config: ConfigModel,
                          last_visit: Optional[datetime], now: datetime) -> List[TextEdit]:
    """Edits that start a new day for recurring tasks.

    Completed recurring tasks are reopened (and lose their overdue marker); a
    full counter is set back to 0.
    Open recurring tasks that were due at ``last_visit`` on an earlier day get
    an ``{overdue:...}`` annotation dated at that visit, unless they already
    carry one. A first visit (``last_visit`` None) counts as a visit at ``now``.
    """
    if last_visit is None:
        last_visit = now

    edits: List[TextEdit] = []
    for task in tasks:
        if not task.is_recurring:
            continue
        if task.done:
            edits.extend(_undone_edits(task, config))
            if task.count is not None and task.count.current and task.count.current == task.count.needed:
                edits.append(_counter_edit(task, 0))
            if task.overdue_range is not None:
                edits.append(_delete_annotation(task, task.overdue_range))
        elif task.overdue is None and last_visit.date() < now.date():
            if task.due.is_due(last_visit) in (DueState.DUE, DueState.OVERDUE):
                stamp = format_iso_date(last_visit)
                edits.append(_insert(task.line_number, len(task.raw_text.rstrip()),
                                     f" {{overdue:{stamp}}}"))
    logger.debug(f"Recurring reset produced {len(edits)} edits")
    return edits


def archivable_tasks(tasks: Sequence[Task]) -> List[Task]:
    """Completed tasks that can be moved to the archive (recurring ones stay)."""
    return [task for task in tasks if task.done and not task.is_recurring]


def sort_block_edit(document: Document, sort_property: SortProperty, now: datetime,
                    first_line: int, last_line: int) -> Optional[LineBlockEdit]:
    """Rewrite a block of lines with its tasks in sorted order.

    Only task lines are kept; comments and blank lines inside the block are
    dropped. Returns None when the block holds no task.
    """
    block = [task for task in document.tasks if first_line <= task.line_number <= last_line]
    if not block:
        return None
    ordered = sort_tasks(block, sort_property, now)
    return LineBlockEdit(first_line, last_line, [task.raw_text for task in ordered])


def apply_edits(lines: Sequence[str], edits: Sequence[TextEdit]) -> List[str]:
    """Apply non-overlapping edits to a list of lines."""
    result = list(lines)
    for edit in sorted(edits, key=lambda e: (e.range.line, e.range.start), reverse=True):
        line = result[edit.range.line]
        result[edit.range.line] = line[:edit.range.start] + edit.new_text + line[edit.range.end:]
    return result


def apply_block_edit(lines: Sequence[str], edit: LineBlockEdit) -> List[str]:
    """Apply a LineBlockEdit to a list of lines."""
    return list(lines[:edit.first_line]) + edit.lines + list(lines[edit.last_line + 1:])
