"""
Requirements Module - Parse prerequisite/corequisite statements.
================================================================

Turns free text such as

    "Prerequisites: COMP 250 and one of MATH 240, MATH 235; or permission"

into course identifiers plus an AND/OR/NOT expression tree. Parsing is
lenient: anything that cannot be understood degrades to an empty identifier
list and a single text leaf holding the original statement.
"""

import re
from typing import Optional

from mcgill_courses.shared.logging import get_logger
from mcgill_courses.shared.schemas import ReqKind, ReqNode

logger = get_logger(__name__)

COURSE_PATTERN = r"\b[A-Z]{3}[A-Z0-9][\s\-]?\d{3}(?:[A-Z]\d)?\b"

LABEL_RE = re.compile(r"^\s*(?:pre|co)-?requisites?\s*(?:\(s\))?\s*:\s*", re.IGNORECASE)

TOKEN_RE = re.compile(
    rf"(?P<course>{COURSE_PATTERN})"
    r"|(?P<one_of>\b(?:one|any)\s+of\b|\beither\b)"
    r"|(?P<and>\band\b|&)"
    r"|(?P<or>\bor\b)"
    r"|(?P<not>\bnot\b)"
    r"|(?P<lparen>\()"
    r"|(?P<rparen>\))"
    r"|(?P<comma>,)"
    r"|(?P<semi>;)",
    re.IGNORECASE,
)

CONNECTIVES = ("and", "or", "semi")
OPERAND_START = ("course", "lparen", "not")
OPERAND_END = ("course", "rparen")

Token = tuple[str, str]


class _ParseError(Exception):
    pass


# ─────────────────────────────────────────────────────────────────────────────
# Tokenizing
# ─────────────────────────────────────────────────────────────────────────────


def _tokenize(text: str) -> list[Token]:
    tokens: list[Token] = []
    for match in TOKEN_RE.finditer(text):
        kind = match.lastgroup or ""
        value = match.group()
        # Course codes are matched case-insensitively by the combined
        # pattern, but only upper-case subjects are real codes.
        if kind == "course":
            if not re.fullmatch(COURSE_PATTERN, value):
                continue
            value = re.sub(r"[\s\-]", "", value)
        tokens.append((kind, value))
    return tokens


def _resolve_commas(tokens: list[Token]) -> list[Token]:
    """
    Replace commas with the connective that closes their run.

    "A, B, or C" reads as an OR list and "one of A, B, C" as well; any other
    comma is an AND.
    """
    resolved: list[Token] = []
    one_of = False

    for i, (kind, value) in enumerate(tokens):
        if kind == "one_of":
            one_of = True
            continue
        if kind in ("semi", "rparen", "and"):
            one_of = False
        if kind != "comma":
            resolved.append((kind, value))
            continue

        connective = "and"
        if one_of:
            connective = "or"
        else:
            for next_kind, _ in tokens[i + 1:]:
                if next_kind in ("and", "or"):
                    connective = next_kind
                    break
                if next_kind in ("semi", "rparen", "lparen"):
                    break
        resolved.append((connective, connective))

    return resolved


def _tidy(tokens: list[Token]) -> list[Token]:
    """Drop dangling connectives and empty groups, add implicit ANDs."""
    out: list[Token] = []

    for kind, value in tokens:
        if kind in CONNECTIVES:
            if not out or out[-1][0] in CONNECTIVES + ("lparen", "not"):
                continue
        elif kind == "rparen":
            while out and out[-1][0] in CONNECTIVES + ("not",):
                out.pop()
            if out and out[-1][0] == "lparen":
                out.pop()
                continue
        elif kind in OPERAND_START and out and out[-1][0] in OPERAND_END:
            out.append(("and", "and"))
        out.append((kind, value))

    while out and out[-1][0] in CONNECTIVES + ("not",):
        out.pop()

    return out


# ─────────────────────────────────────────────────────────────────────────────
# Recursive Descent
# ─────────────────────────────────────────────────────────────────────────────


class _Parser:
    """and_expr := or_expr (("and" | ";") or_expr)*, OR binding tighter."""

    def __init__(self, tokens: list[Token]):
        self.tokens = tokens
        self.pos = 0

    def peek(self) -> Optional[str]:
        return self.tokens[self.pos][0] if self.pos < len(self.tokens) else None

    def advance(self) -> Token:
        token = self.tokens[self.pos]
        self.pos += 1
        return token

    def parse(self) -> ReqNode:
        node = self.parse_and()
        if self.pos != len(self.tokens):
            raise _ParseError(f"unexpected token {self.tokens[self.pos]!r}")
        return node

    def parse_and(self) -> ReqNode:
        items = [self.parse_or()]
        while self.peek() in ("and", "semi"):
            self.advance()
            items.append(self.parse_or())
        return ReqNode.all_of(_flatten(items, ReqKind.AND))

    def parse_or(self) -> ReqNode:
        items = [self.parse_unary()]
        while self.peek() == "or":
            self.advance()
            items.append(self.parse_unary())
        return ReqNode.any_of(_flatten(items, ReqKind.OR))

    def parse_unary(self) -> ReqNode:
        kind = self.peek()
        if kind == "not":
            self.advance()
            return ReqNode.negate(self.parse_unary())
        if kind == "lparen":
            self.advance()
            node = self.parse_and()
            if self.peek() != "rparen":
                raise _ParseError("unbalanced parenthesis")
            self.advance()
            return node
        if kind == "course":
            return ReqNode.course(self.advance()[1])
        raise _ParseError(f"expected a course, got {kind!r}")


def _flatten(items: list[ReqNode], kind: ReqKind) -> list[ReqNode]:
    flat: list[ReqNode] = []
    for item in items:
        if item.kind == kind:
            flat.extend(item.children)
        else:
            flat.append(item)
    return flat


def _required_ids(node: ReqNode) -> list[str]:
    """Course identifiers in first-seen order, skipping negated subtrees."""
    ids: list[str] = []
    stack = [node]
    while stack:
        current = stack.pop()
        if current.kind == ReqKind.NOT:
            continue
        if current.kind == ReqKind.COURSE and current.value and current.value not in ids:
            ids.append(current.value)
        stack.extend(reversed(current.children))
    return ids


# ─────────────────────────────────────────────────────────────────────────────
# Public API
# ─────────────────────────────────────────────────────────────────────────────


def extract_requirements(text: str) -> tuple[list[str], ReqNode, str]:
    """
    Parse a requirement statement.

    Args:
        text: Statement as shown on the course page

    Returns:
        (course identifiers, expression tree, original text). Unparseable
        statements give ``([], ReqNode.text(raw), raw)``.

    Example:
        >>> ids, tree, _ = extract_requirements("Prerequisite: COMP 250 or COMP 206")
        >>> ids
        ['COMP250', 'COMP206']
    """
    raw = " ".join((text or "").split())
    body = LABEL_RE.sub("", raw)

    tokens = _tidy(_resolve_commas(_tokenize(body)))
    if not any(kind == "course" for kind, _ in tokens):
        return [], ReqNode.text(raw), raw

    try:
        tree = _Parser(tokens).parse()
    except _ParseError as e:
        logger.debug(f"Falling back to raw requirement text ({e}): {raw}")
        return [], ReqNode.text(raw), raw

    return _required_ids(tree), tree, raw
