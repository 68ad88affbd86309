"""Document assembler for todo-md.

Runs the line classifier over a whole document and adds what needs more than
one line: tags inherited from ``## `` section headers, hyperlinks supplied by
the caller, the ``{overdue:...}`` override and the indentation hierarchy.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional, Sequence
from urllib.parse import urlsplit

from .config import ConfigModel
from .due_date import DueDate
from .parser import LineType, parse_line
from .task import Link, Range, Task

logger = logging.getLogger(__name__)

GROUP_KINDS = ('tag', 'project', 'context')


@dataclass(frozen=True)
class DocumentLink:
    """A hyperlink reported by the link resolver for one line."""
    line: int
    start_col: int
    end_col: int
    target: Optional[str]
    scheme: Optional[str] = None

    def to_link(self) -> Link:
        scheme = self.scheme if self.scheme is not None else urlsplit(self.target).scheme
        return Link((self.start_col, self.end_col), self.target, scheme)


@dataclass
class TaskNode:
    """A task in the tree view of a document."""
    task: Task
    subtasks: List["TaskNode"] = field(default_factory=list)


@dataclass
class Document:
    """One parse of a document.

    ``tasks`` is the flat list in source order. The hierarchy is kept as an
    adjacency map from a parent's line number to its children's line
    numbers, so the tasks themselves are never copied to build the tree.
    """
    tasks: List[Task] = field(default_factory=list)
    comment_lines: List[Range] = field(default_factory=list)
    children: Dict[int, List[int]] = field(default_factory=dict)
    roots: List[int] = field(default_factory=list)

    def task_at_line(self, line_number: int) -> Optional[Task]:
        for task in self.tasks:
            if task.line_number == line_number:
                return task
        return None

    def subtasks_of(self, task: Task) -> List[Task]:
        by_line = {t.line_number: t for t in self.tasks}
        return [by_line[ln] for ln in self.children.get(task.line_number, [])]

    @property
    def tasks_as_tree(self) -> List[TaskNode]:
        """Root tasks with their subtasks nested, in source order."""
        by_line = {task.line_number: task for task in self.tasks}

        def build(line_number: int) -> TaskNode:
            return TaskNode(
                by_line[line_number],
                [build(child) for child in self.children.get(line_number, [])],
            )

        return [build(line_number) for line_number in self.roots]

    @property
    def tags(self) -> List[str]:
        return sorted({tag for task in self.tasks for tag in task.tags})

    @property
    def projects(self) -> List[str]:
        return sorted({project for task in self.tasks for project in task.projects})

    @property
    def contexts(self) -> List[str]:
        return sorted({context for task in self.tasks for context in task.contexts})

    def group_by(self, kind: str) -> Dict[str, List[Task]]:
        """Group tasks by tag, project or context (a task may be in several groups)."""
        if kind not in GROUP_KINDS:
            raise ValueError(f"Unknown group kind: {kind}")
        attribute = {'tag': 'tags', 'project': 'projects', 'context': 'contexts'}[kind]

        groups: Dict[str, List[Task]] = {}
        for task in self.tasks:
            for name in dict.fromkeys(getattr(task, attribute)):
                groups.setdefault(name, []).append(task)
        return dict(sorted(groups.items()))


def _find_parent(tasks: List[Task], indent_level: int) -> Optional[int]:
    """Line number of the nearest preceding task with a smaller indent."""
    if not indent_level:
        return None
    for previous in reversed(tasks):
        if previous.indent_level < indent_level:
            return previous.line_number
    return None


def parse_document(lines: Sequence[str], config: ConfigModel,
                   links: Iterable[DocumentLink] = ()) -> Document:
    """Parse every line of a document.

    Args:
        lines: Raw line texts, without line breaks
        config: Parser configuration (tab size, done marker)
        links: Hyperlinks found in the document by the link resolver

    Returns:
        A fresh Document
    """
    links_by_line: Dict[int, List[Link]] = {}
    for link in links:
        if link.target is not None:
            links_by_line.setdefault(link.line, []).append(link.to_link())

    document = Document()
    additional_tags: List[str] = []

    for line_number, text in enumerate(lines):
        parsed = parse_line(text, line_number, config)

        if parsed.line_type == LineType.EMPTY:
            continue
        if parsed.line_type == LineType.COMMENT:
            document.comment_lines.append(Range(line_number, 0, 0))
            additional_tags = []
            continue
        if parsed.line_type == LineType.TAG_COMMENT:
            document.comment_lines.append(Range(line_number, 0, 0))
            additional_tags = parsed.tags
            continue

        task = parsed.task
        changes = {}
        if additional_tags:
            changes['tags'] = task.tags + additional_tags
        if line_number in links_by_line:
            changes['links'] = links_by_line[line_number]
        if task.overdue and task.due is not None:
            changes['due'] = DueDate(task.due.raw, overdue=task.overdue)
        parent = _find_parent(document.tasks, task.indent_level)
        if parent is not None:
            changes['parent_line_number'] = parent
        if changes:
            task = replace(task, **changes)

        if task.parent_line_number is None:
            document.roots.append(task.line_number)
        else:
            document.children.setdefault(task.parent_line_number, []).append(task.line_number)
        document.tasks.append(task)

    logger.debug(f"Parsed {len(document.tasks)} tasks, {len(document.comment_lines)} comment lines")
    return document


def parse_text(text: str, config: ConfigModel,
               links: Iterable[DocumentLink] = ()) -> Document:
    """Parse a whole document given as one string.

    Lines are split on line feeds only (a trailing carriage return is
    dropped), so line numbers match what an editor shows.
    """
    lines = [line[:-1] if line.endswith('\r') else line for line in text.split('\n')]
    return parse_document(lines, config, links)
