"""todo-md - parse, sort and filter plain-text task markup."""

__version__ = "0.1.0"

from .config import ConfigModel, load_config, save_config
from .document import Document, DocumentLink, TaskNode, parse_document, parse_text
from .due_date import DueDate, DueState, DueStatus
from .filter import FilterError, filter_tasks
from .parser import LineType, ParsedLine, parse_line
from .sort import (
    SortDirection,
    SortProperty,
    UnsupportedValueError,
    default_sort_tasks,
    next_task,
    sort_tasks,
)
from .task import Count, Link, Range, Task

__all__ = [
    "ConfigModel",
    "load_config",
    "save_config",
    "Document",
    "DocumentLink",
    "TaskNode",
    "parse_document",
    "parse_text",
    "DueDate",
    "DueState",
    "DueStatus",
    "FilterError",
    "filter_tasks",
    "LineType",
    "ParsedLine",
    "parse_line",
    "SortDirection",
    "SortProperty",
    "UnsupportedValueError",
    "default_sort_tasks",
    "next_task",
    "sort_tasks",
    "Count",
    "Link",
    "Range",
    "Task",
    "__version__",
]
