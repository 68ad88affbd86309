"""
Filter engine for todo-md

A small query language over parsed tasks:

    #tag  +project  @context      membership
    $due $overdue $done ...       state keywords
    $A .. $Z                      priority
    -term, NOT term               negation
    OR, ( )                       alternatives and grouping
    anything else                 case-insensitive title substring

Terms separated by whitespace are combined with AND.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence

from fuzzywuzzy import process

from .due_date import DueState
from .task import Task

logger = logging.getLogger(__name__)


class FilterError(ValueError):
    """Raised for a query that can not be parsed."""

    def __init__(self, message: str, suggestion: Optional[str] = None):
        self.suggestion = suggestion
        if suggestion:
            message = f"{message} (did you mean {suggestion}?)"
        super().__init__(message)


class TokenType(Enum):
    """Token types for query lexical analysis"""
    TERM = "TERM"            # #tag, +project, @context, $keyword, text
    OR = "OR"                # OR
    NOT = "NOT"              # NOT, -
    LPAREN = "LPAREN"        # (
    RPAREN = "RPAREN"        # )
    EOF = "EOF"              # End of input


@dataclass
class Token:
    """A token in the query"""
    type: TokenType
    value: str
    position: int


class FilterLexer:
    """Tokenizes query strings into tokens"""

    def __init__(self, query: str):
        self.query = query
        self.position = 0
        self.tokens: List[Token] = []

    def tokenize(self) -> List[Token]:
        """Convert query string to tokens"""
        self.position = 0
        self.tokens = []

        while self.position < len(self.query):
            self._skip_whitespace()

            if self.position >= len(self.query):
                break

            char = self.query[self.position]

            if char == '(':
                self.tokens.append(Token(TokenType.LPAREN, char, self.position))
                self.position += 1
            elif char == ')':
                self.tokens.append(Token(TokenType.RPAREN, char, self.position))
                self.position += 1
            elif char == '-' and self._peek_next() not in ('', ' ', '-'):
                self.tokens.append(Token(TokenType.NOT, char, self.position))
                self.position += 1
            else:
                start = self.position
                word = self._read_word()
                if word == 'OR':
                    self.tokens.append(Token(TokenType.OR, word, start))
                elif word == 'NOT':
                    self.tokens.append(Token(TokenType.NOT, word, start))
                else:
                    self.tokens.append(Token(TokenType.TERM, word, start))

        self.tokens.append(Token(TokenType.EOF, '', self.position))
        return self.tokens

    def _skip_whitespace(self):
        while self.position < len(self.query) and self.query[self.position].isspace():
            self.position += 1

    def _peek_next(self, offset: int = 1) -> str:
        pos = self.position + offset
        return self.query[pos] if pos < len(self.query) else ''

    def _read_word(self) -> str:
        start = self.position
        while (self.position < len(self.query) and
               not self.query[self.position].isspace() and
               self.query[self.position] not in '()'):
            self.position += 1
        return self.query[start:self.position]


class FilterNode(ABC):
    """Abstract base class for query AST nodes"""

    @abstractmethod
    def evaluate(self, task: Task, now: datetime) -> bool:
        """Evaluate this node against a task"""


def _due_state(task: Task, now: datetime) -> Optional[DueState]:
    return task.due.is_due(now) if task.due else None


SPECIAL_KEYWORDS: Dict[str, Callable[[Task, datetime], bool]] = {
    'due': lambda t, now: _due_state(t, now) in (DueState.DUE, DueState.OVERDUE),
    'overdue': lambda t, now: _due_state(t, now) == DueState.OVERDUE,
    'notDue': lambda t, now: _due_state(t, now) == DueState.NOT_DUE,
    'invalid': lambda t, now: _due_state(t, now) == DueState.INVALID,
    'hasDue': lambda t, now: t.due is not None,
    'noDue': lambda t, now: t.due is None,
    'done': lambda t, now: t.done,
    'recurring': lambda t, now: t.is_recurring,
    'noTag': lambda t, now: not t.tags,
    'noProject': lambda t, now: not t.projects,
    'noContext': lambda t, now: not t.contexts,
    'hidden': lambda t, now: bool(t.is_hidden),
    'collapsed': lambda t, now: bool(t.is_collapsed),
}


@dataclass
class TagFilter(FilterNode):
    name: str

    def evaluate(self, task: Task, now: datetime) -> bool:
        return self.name in task.tags


@dataclass
class ProjectFilter(FilterNode):
    name: str

    def evaluate(self, task: Task, now: datetime) -> bool:
        return self.name in task.projects


@dataclass
class ContextFilter(FilterNode):
    name: str

    def evaluate(self, task: Task, now: datetime) -> bool:
        return self.name in task.contexts


@dataclass
class PriorityFilter(FilterNode):
    letter: str

    def evaluate(self, task: Task, now: datetime) -> bool:
        return task.priority == self.letter


@dataclass
class SpecialFilter(FilterNode):
    """A ``$keyword`` state check"""
    keyword: str

    def evaluate(self, task: Task, now: datetime) -> bool:
        return SPECIAL_KEYWORDS[self.keyword](task, now)


@dataclass
class TextFilter(FilterNode):
    """A text search on the title"""
    text: str

    def evaluate(self, task: Task, now: datetime) -> bool:
        return self.text.lower() in task.title.lower()


@dataclass
class BinaryOp(FilterNode):
    """Binary operation (AND, OR)"""
    left: FilterNode
    operator: str  # 'AND', 'OR'
    right: FilterNode

    def evaluate(self, task: Task, now: datetime) -> bool:
        if self.operator == 'AND':
            return self.left.evaluate(task, now) and self.right.evaluate(task, now)
        return self.left.evaluate(task, now) or self.right.evaluate(task, now)


@dataclass
class UnaryOp(FilterNode):
    """Negation"""
    operand: FilterNode

    def evaluate(self, task: Task, now: datetime) -> bool:
        return not self.operand.evaluate(task, now)


class FilterParser:
    """Parses query tokens into an AST"""

    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.position = 0

    def parse(self) -> Optional[FilterNode]:
        """Parse tokens into a query AST (None for an empty query)"""
        if len(self.tokens) <= 1:
            return None

        node = self._parse_or()
        token = self._current_token()
        if token.type != TokenType.EOF:
            raise FilterError(f"Unexpected {token.value!r} at position {token.position}")
        return node

    def _current_token(self) -> Token:
        return self.tokens[self.position] if self.position < len(self.tokens) else self.tokens[-1]

    def _consume(self, expected_type: Optional[TokenType] = None) -> Token:
        token = self._current_token()
        if expected_type and token.type != expected_type:
            if expected_type == TokenType.RPAREN:
                raise FilterError(f"Missing ')' at position {token.position}")
            raise FilterError(f"Expected {expected_type.value}, got {token.type.value}")

        if self.position < len(self.tokens) - 1:
            self.position += 1

        return token

    def _parse_or(self) -> FilterNode:
        left = self._parse_and()

        while self._current_token().type == TokenType.OR:
            self._consume(TokenType.OR)
            right = self._parse_and()
            left = BinaryOp(left, 'OR', right)

        return left

    def _parse_and(self) -> FilterNode:
        left = self._parse_not()

        # Implicit AND between adjacent terms
        while self._current_token().type in (TokenType.TERM, TokenType.NOT, TokenType.LPAREN):
            right = self._parse_not()
            left = BinaryOp(left, 'AND', right)

        return left

    def _parse_not(self) -> FilterNode:
        if self._current_token().type == TokenType.NOT:
            self._consume(TokenType.NOT)
            return UnaryOp(self._parse_not())

        return self._parse_primary()

    def _parse_primary(self) -> FilterNode:
        token = self._current_token()

        if token.type == TokenType.LPAREN:
            self._consume(TokenType.LPAREN)
            node = self._parse_or()
            self._consume(TokenType.RPAREN)
            return node
        if token.type == TokenType.TERM:
            return self._parse_term(self._consume(TokenType.TERM).value)
        if token.type == TokenType.EOF:
            raise FilterError("Unexpected end of query")
        raise FilterError(f"Unexpected {token.value!r} at position {token.position}")

    def _parse_term(self, word: str) -> FilterNode:
        sigil, name = word[0], word[1:]
        if not name:
            return TextFilter(word)

        if sigil == '#':
            return TagFilter(name)
        if sigil == '+':
            return ProjectFilter(name)
        if sigil == '@':
            return ContextFilter(name)
        if sigil == '$':
            return self._parse_special(name)
        return TextFilter(word)

    def _parse_special(self, keyword: str) -> FilterNode:
        if len(keyword) == 1 and 'A' <= keyword <= 'Z':
            return PriorityFilter(keyword)
        if keyword in SPECIAL_KEYWORDS:
            return SpecialFilter(keyword)

        best = process.extractOne(keyword, list(SPECIAL_KEYWORDS), score_cutoff=60)
        raise FilterError(f"Unknown filter keyword: ${keyword}",
                          suggestion=f"${best[0]}" if best else None)


def compile_filter(query: str) -> Optional[FilterNode]:
    """Parse a query into an AST; None means "match everything"."""
    return FilterParser(FilterLexer(query).tokenize()).parse()


def filter_tasks(tasks: Sequence[Task], query: str, now: datetime) -> List[Task]:
    """Return the tasks matching ``query``, in their original order.

    Raises:
        FilterError: If the query can not be parsed
    """
    node = compile_filter(query)
    if node is None:
        return list(tasks)

    results = [task for task in tasks if node.evaluate(task, now)]
    logger.debug(f"Filter {query!r} matched {len(results)} of {len(tasks)} tasks")
    return results
