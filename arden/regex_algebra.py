import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

EPSILON = 'ε'
EMPTY_SET = '∅'

UNION_OPERATOR = '|'
STAR_OPERATOR = '*'


class RegexNode(ABC):
    """Base class for regular expression terms."""

    @abstractmethod
    def to_string(self) -> str:
        """Render the term using the |, implicit concatenation, * grammar."""
        pass

    @abstractmethod
    def to_pattern(self) -> str:
        """Translate the term into a Python `re` pattern."""
        pass

    def __str__(self) -> str:
        return self.to_string()


@dataclass(frozen=True)
class EmptySetNode(RegexNode):
    """The empty language (∅)."""

    def to_string(self) -> str:
        return EMPTY_SET

    def to_pattern(self) -> str:
        return '(?!)'


@dataclass(frozen=True)
class EpsilonNode(RegexNode):
    """The language containing only the empty string (ε)."""

    def to_string(self) -> str:
        return EPSILON

    def to_pattern(self) -> str:
        return '(?:)'


@dataclass(frozen=True)
class CharNode(RegexNode):
    """A single alphabet symbol."""
    symbol: str

    def to_string(self) -> str:
        return self.symbol

    def to_pattern(self) -> str:
        escaped = re.escape(self.symbol)
        return escaped if len(self.symbol) == 1 else f"(?:{escaped})"


@dataclass(frozen=True)
class UnionNode(RegexNode):
    """Union of two or more distinct, non-union terms."""
    terms: Tuple[RegexNode, ...]

    def to_string(self) -> str:
        return UNION_OPERATOR.join(term.to_string() for term in self.terms)

    def to_pattern(self) -> str:
        return '(?:' + '|'.join(term.to_pattern() for term in self.terms) + ')'


@dataclass(frozen=True)
class ConcatNode(RegexNode):
    """Concatenation of two or more non-concatenation factors."""
    factors: Tuple[RegexNode, ...]

    def to_string(self) -> str:
        return ''.join(render_factor(factor) for factor in self.factors)

    def to_pattern(self) -> str:
        return ''.join(factor.to_pattern() for factor in self.factors)


@dataclass(frozen=True)
class StarNode(RegexNode):
    """Kleene star of a term that is neither ∅, ε nor already starred."""
    inner: RegexNode

    def to_string(self) -> str:
        inner_str = self.inner.to_string()

        # Postfix * binds tighter than both union and concatenation
        if isinstance(self.inner, (UnionNode, ConcatNode)):
            inner_str = f"({inner_str})"
        elif isinstance(self.inner, CharNode) and len(self.inner.symbol) > 1:
            inner_str = f"({inner_str})"

        return f"{inner_str}{STAR_OPERATOR}"

    def to_pattern(self) -> str:
        return f"(?:{self.inner.to_pattern()})*"


EMPTY = EmptySetNode()
EPS = EpsilonNode()


def literal(symbol: str) -> RegexNode:
    """Build the term for a single transition symbol."""
    if symbol == EPSILON:
        return EPS
    if symbol == EMPTY_SET:
        return EMPTY
    return CharNode(symbol)


def render_factor(node: RegexNode) -> str:
    """Render a term that appears as one factor of a concatenation."""
    text = node.to_string()
    if isinstance(node, UnionNode):
        return f"({text})"
    return text


def render_term(coefficient: RegexNode, state: str) -> str:
    """Render `coefficient·state` as it appears in a language equation."""
    if isinstance(coefficient, EpsilonNode):
        return state
    return f"{render_factor(coefficient)}{state}"


def _iter_operands(parts) -> Iterator[RegexNode]:
    for part in parts:
        if part is None:
            continue
        if isinstance(part, RegexNode):
            yield part
        elif isinstance(part, str):
            yield literal(part)
        else:
            yield from _iter_operands(part)


def union(*parts) -> RegexNode:
    """
    Union of any number of terms.

    Operands may be nodes, symbols, or iterables of either. Nested unions are
    flattened, ∅ operands dropped and duplicates removed keeping the first
    occurrence.
    """
    operands: List[RegexNode] = []

    for part in _iter_operands(parts):
        candidates = part.terms if isinstance(part, UnionNode) else (part,)
        for candidate in candidates:
            if isinstance(candidate, EmptySetNode) or candidate in operands:
                continue
            operands.append(candidate)

    if not operands:
        return EMPTY
    if len(operands) == 1:
        return operands[0]
    return UnionNode(tuple(operands))


def concat(left: RegexNode, right: RegexNode) -> RegexNode:
    """Concatenation with ∅ absorption and ε identity."""
    if isinstance(left, EmptySetNode) or isinstance(right, EmptySetNode):
        return EMPTY
    if isinstance(left, EpsilonNode):
        return right
    if isinstance(right, EpsilonNode):
        return left

    left_factors = left.factors if isinstance(left, ConcatNode) else (left,)
    right_factors = right.factors if isinstance(right, ConcatNode) else (right,)
    return ConcatNode(left_factors + right_factors)


def star(node: RegexNode) -> RegexNode:
    """Kleene star; ∅* and ε* are ε, and (R*)* is R*."""
    if isinstance(node, (EmptySetNode, EpsilonNode)):
        return EPS
    if isinstance(node, StarNode):
        return node
    return StarNode(node)


def to_pattern(node: RegexNode) -> str:
    return node.to_pattern()


def matches(node: RegexNode, word: str) -> bool:
    """Check whether `word` belongs to the language of `node`."""
    return re.fullmatch(node.to_pattern(), word) is not None


class RegexTermParser:
    """Parses the textual form produced by `RegexNode.to_string` back into terms."""

    def __init__(self, regex: str):
        self.regex = ''.join(regex.split())
        self.pos = 0

    def peek(self) -> Optional[str]:
        """Look at current character without consuming."""
        return self.regex[self.pos] if self.pos < len(self.regex) else None

    def consume(self) -> Optional[str]:
        """Consume and return current character."""
        if self.pos < len(self.regex):
            char = self.regex[self.pos]
            self.pos += 1
            return char
        return None

    def parse(self) -> RegexNode:
        if not self.regex:
            return EPS

        result = self.parse_union()
        if self.pos < len(self.regex):
            raise ValueError(f"Unexpected character '{self.regex[self.pos]}' at position {self.pos}")
        return result

    def parse_union(self) -> RegexNode:
        """Parse union (|) - lowest precedence."""
        terms = [self.parse_concat()]
        while self.peek() == UNION_OPERATOR:
            self.consume()
            terms.append(self.parse_concat())
        return union(terms)

    def parse_concat(self) -> RegexNode:
        """Parse concatenation - implicit, higher precedence than union."""
        result = self.parse_postfix()
        while self.peek() is not None and self.peek() not in (UNION_OPERATOR, ')'):
            result = concat(result, self.parse_postfix())
        return result

    def parse_postfix(self) -> RegexNode:
        """Parse postfix star - highest precedence."""
        inner = self.parse_atom()
        while self.peek() == STAR_OPERATOR:
            self.consume()
            inner = star(inner)
        return inner

    def parse_atom(self) -> RegexNode:
        char = self.peek()

        if char == '(':
            self.consume()
            inner = self.parse_union()
            if self.peek() != ')':
                raise ValueError(f"Expected ')' at position {self.pos}")
            self.consume()
            return inner

        if char is None:
            raise ValueError("Unexpected end of expression")

        if char in (UNION_OPERATOR, ')', STAR_OPERATOR):
            raise ValueError(f"Unexpected '{char}' at position {self.pos}")

        self.consume()
        return literal(char)


def parse_regex(regex: str) -> RegexNode:
    """
    Parse a regular expression over single-character symbols.

    Supports `|` (lowest precedence), implicit concatenation, postfix `*`,
    parentheses, `ε` and `∅`. Raises ValueError on malformed input.
    """
    return RegexTermParser(regex).parse()
