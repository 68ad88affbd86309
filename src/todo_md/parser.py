"""Line classifier and annotation tokenizer for todo-md.

One line of markup is one task. Annotations are words that start with a
sigil (``#tag``, ``+project``, ``@context``, ``(A)``) or are wrapped in
braces (``{due:2024-01-01}``). Anything the tokenizer does not recognize is
kept as title text; malformed annotations never raise.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional

from .config import ConfigModel
from .due_date import DueDate
from .task import Count, Range, Task

PRIORITY_RE = re.compile(r'^\([A-Z]\)$')
LEADING_INT_RE = re.compile(r'^\s*([+-]?\d+)')

COMMENT_PREFIX = '# '
TAG_COMMENT_PREFIX = '## '


class LineType(Enum):
    """Classification of one source line."""
    EMPTY = "empty"
    COMMENT = "comment"
    TAG_COMMENT = "tagComment"
    TASK = "task"


@dataclass
class ParsedLine:
    """Result of classifying one line."""
    line_type: LineType
    task: Optional[Task] = None
    tags: List[str] = field(default_factory=list)  # TAG_COMMENT only


def parse_tag_comment(text: str) -> List[str]:
    """Extract the ``#tags`` declared by a ``## `` line body."""
    tags = []
    for word in text.strip().split(' '):
        if word.startswith('#'):
            tags.extend(tag for tag in word.split('#') if tag)
    return tags


def _parse_int(value: str) -> Optional[int]:
    """Read a leading integer the lenient way (``"3x"`` is 3, ``"x"`` is nothing)."""
    match = LEADING_INT_RE.match(value)
    return int(match.group(1)) if match else None


class _TaskTokenizer:
    """Accumulates annotations while scanning the words of one task line.

    Each ``_word_*`` handler receives the word and its column and returns
    True when the word was consumed as an annotation, False when it is
    literal title text.
    """

    def __init__(self, raw_text: str, line_number: int, done: bool):
        self.raw_text = raw_text
        self.line_number = line_number
        self.done = done
        self.title_words: List[str] = []
        self.fields: Dict[str, object] = {}
        self.tags: List[str] = []
        self.tags_delimiter_ranges: List[Range] = []
        self.tags_range: List[Range] = []
        self.projects: List[str] = []
        self.project_ranges: List[Range] = []
        self.contexts: List[str] = []
        self.context_ranges: List[Range] = []
        self.special_tag_ranges: List[Range] = []

        self.dispatch: Dict[str, Callable[[str, int], bool]] = {
            '{': self._word_special,
            '#': self._word_tags,
            '@': self._word_context,
            '+': self._word_project,
            '(': self._word_priority,
        }

    def _range(self, start: int, end: int) -> Range:
        return Range(self.line_number, start, end)

    def scan(self, words: List[str], index: int) -> None:
        for word in words:
            handler = self.dispatch.get(word[:1])
            if handler is None or not handler(word, index):
                self.title_words.append(word)
            index += len(word) + 1

    def _word_special(self, word: str, index: int) -> bool:
        if len(word) < 2 or word[-1] != '}':
            return False

        name, _, value = word[1:-1].partition(':')
        word_range = self._range(index, index + len(word))

        if name == 'due':
            if value:
                self.fields['due'] = DueDate(value)
                self.fields['due_range'] = word_range
        elif name == 'overdue':
            self.fields['overdue'] = value
            self.fields['overdue_range'] = word_range
        elif name == 'cr':
            self.fields['creation_date'] = value or None
            self.special_tag_ranges.append(word_range)
        elif name == 'cm':
            self.done = True
            self.fields['completion_date'] = value or None
            self.fields['completion_date_range'] = word_range
            self.special_tag_ranges.append(word_range)
        elif name == 'count':
            current, _, needed = value.partition('/')
            current_value = _parse_int(current)
            needed_value = _parse_int(needed.split('/')[0])
            if current_value is None or needed_value is None:
                # Unparseable counter: the annotation is dropped entirely
                return True
            self.special_tag_ranges.append(word_range)
            if current_value == needed_value:
                self.done = True
            self.fields['count'] = Count(current_value, needed_value, word_range)
        elif name == 't':
            self.fields['threshold'] = value
            self.special_tag_ranges.append(word_range)
        elif name == 'h':
            self.fields['is_hidden'] = True
            self.special_tag_ranges.append(word_range)
        elif name == 'c':
            self.fields['is_collapsed'] = True
            self.fields['collapse_range'] = word_range
            self.special_tag_ranges.append(word_range)
        else:
            return False
        return True

    def _word_tags(self, word: str, index: int) -> bool:
        names = [tag for tag in word.split('#') if tag]
        if not names:
            return False
        position = index
        for tag in names:
            self.tags_delimiter_ranges.append(self._range(position, position + 1))
            self.tags_range.append(self._range(position + 1, position + 1 + len(tag)))
            self.tags.append(tag)
            position += len(tag) + 1
        return True

    def _word_context(self, word: str, index: int) -> bool:
        if len(word) == 1:
            return False
        self.contexts.append(word[1:])
        self.context_ranges.append(self._range(index, index + len(word)))
        return True

    def _word_project(self, word: str, index: int) -> bool:
        if len(word) == 1:
            return False
        self.projects.append(word[1:])
        self.project_ranges.append(self._range(index, index + len(word)))
        return True

    def _word_priority(self, word: str, index: int) -> bool:
        if not PRIORITY_RE.match(word):
            return False
        self.fields['priority'] = word[1]
        self.fields['priority_range'] = self._range(index, index + len(word))
        return True

    def build(self, indent_level: int) -> Task:
        return Task(
            raw_text=self.raw_text,
            title=' '.join(self.title_words),
            line_number=self.line_number,
            indent_level=indent_level,
            done=self.done,
            tags=self.tags,
            tags_delimiter_ranges=self.tags_delimiter_ranges,
            tags_range=self.tags_range,
            projects=self.projects,
            project_ranges=self.project_ranges,
            contexts=self.contexts,
            context_ranges=self.context_ranges,
            special_tag_ranges=self.special_tag_ranges,
            **self.fields,
        )


def parse_line(text: str, line_number: int, config: ConfigModel) -> ParsedLine:
    """Classify one line and tokenize it when it is a task.

    Args:
        text: The raw line, without its line break
        line_number: 0-based index of the line in its document
        config: Supplies ``tab_size`` and ``done_symbol``

    Returns:
        ParsedLine with the line type, and the task or inherited tags
    """
    line = text.strip()
    if not line:
        return ParsedLine(LineType.EMPTY)

    if line.startswith(COMMENT_PREFIX):
        return ParsedLine(LineType.COMMENT)
    if line.startswith(TAG_COMMENT_PREFIX):
        return ParsedLine(LineType.TAG_COMMENT, tags=parse_tag_comment(line[len(TAG_COMMENT_PREFIX):]))

    first_non_whitespace = len(text) - len(text.lstrip())
    indent_level = first_non_whitespace // config.tab_size
    index = first_non_whitespace

    done = line.startswith(config.done_symbol)
    if done:
        line = line[len(config.done_symbol):]
        index += len(config.done_symbol)

    tokenizer = _TaskTokenizer(text, line_number, done)
    tokenizer.scan(line.split(' '), index)
    return ParsedLine(LineType.TASK, task=tokenizer.build(indent_level))
