"""Task data model for todo-md."""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .due_date import DueDate


@dataclass(frozen=True)
class Range:
    """A character range on one line (end exclusive)."""
    line: int
    start: int
    end: int


@dataclass(frozen=True)
class Count:
    """Manual progress counter from a ``{count:current/needed}`` annotation."""
    current: int
    needed: int
    range: Range


@dataclass(frozen=True)
class Link:
    """A hyperlink found on the task's line."""
    character_range: Tuple[int, int]
    value: str
    scheme: str


@dataclass(frozen=True)
class Task:
    """One task line, fully tokenized.

    Instances are never mutated: the document assembler derives the final
    value (inherited tags, links, parent) with ``dataclasses.replace``.
    """

    # Source
    raw_text: str
    title: str
    line_number: int
    indent_level: int = 0

    # Completion
    done: bool = False
    completion_date: Optional[str] = None  # {cm:...}
    completion_date_range: Optional[Range] = None
    creation_date: Optional[str] = None  # {cr:...}

    # Priority (A-Z)
    priority: Optional[str] = None
    priority_range: Optional[Range] = None

    # Organization
    tags: List[str] = field(default_factory=list)
    tags_delimiter_ranges: List[Range] = field(default_factory=list)
    tags_range: List[Range] = field(default_factory=list)
    projects: List[str] = field(default_factory=list)  # +project
    project_ranges: List[Range] = field(default_factory=list)
    contexts: List[str] = field(default_factory=list)  # @context
    context_ranges: List[Range] = field(default_factory=list)

    # Scheduling
    due: Optional[DueDate] = None
    due_range: Optional[Range] = None
    overdue: Optional[str] = None
    overdue_range: Optional[Range] = None

    # Auxiliary annotations
    special_tag_ranges: List[Range] = field(default_factory=list)
    count: Optional[Count] = None
    threshold: Optional[str] = None
    is_hidden: Optional[bool] = None
    is_collapsed: Optional[bool] = None
    collapse_range: Optional[Range] = None

    # Filled in by the document assembler
    links: List[Link] = field(default_factory=list)
    parent_line_number: Optional[int] = None

    @property
    def is_recurring(self) -> bool:
        return self.due is not None and self.due.is_recurring

    @property
    def first_non_whitespace_index(self) -> int:
        return len(self.raw_text) - len(self.raw_text.lstrip())
