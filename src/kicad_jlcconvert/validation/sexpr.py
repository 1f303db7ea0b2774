"""Recursive-descent reader for KiCad S-expressions.

Lists become Python lists; atoms and quoted strings become ``str``.
Quoted strings are unescaped, so a quoted ``""`` reads as an empty string.
"""
import re
from typing import Iterator, List, Optional, Union

Node = Union[str, list]

_TOKEN_RE = re.compile(r'\s*(?:(\()|(\))|"((?:[^"\\]|\\.)*)"|([^\s()"]+))', re.DOTALL)
_ESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)


class SexprError(ValueError):
    """Raised for text that is not a well-formed S-expression."""

    pass


def tokenize(text: str) -> Iterator[tuple]:
    """Yield ``(kind, value)`` tokens: "(", ")", "str" or "atom"."""
    pos = 0
    length = len(text)
    while pos < length:
        match = _TOKEN_RE.match(text, pos)
        if not match:
            if text[pos:].strip() == "":
                return
            raise SexprError(f"Unexpected character at offset {pos}: {text[pos]!r}")
        pos = match.end()
        if match.group(1):
            yield "(", "("
        elif match.group(2):
            yield ")", ")"
        elif match.group(3) is not None:
            yield "str", _ESCAPE_RE.sub(r"\1", match.group(3))
        elif match.group(4) is not None:
            yield "atom", match.group(4)


def parse(text: str) -> list:
    """Parse the first S-expression list in *text*."""
    stack: List[list] = []
    root: Optional[list] = None
    for kind, value in tokenize(text):
        if kind == "(":
            node: list = []
            if stack:
                stack[-1].append(node)
            stack.append(node)
        elif kind == ")":
            if not stack:
                raise SexprError("Unbalanced closing parenthesis")
            node = stack.pop()
            if not stack:
                root = node
                break
        else:
            if not stack:
                raise SexprError(f"Atom outside of list: {value}")
            stack[-1].append(value)
    if stack or root is None:
        raise SexprError("Unbalanced S-expression: missing closing parenthesis")
    return root


def head(node: Node) -> Optional[str]:
    if isinstance(node, list) and node and isinstance(node[0], str):
        return node[0]
    return None


def children(node: list, name: str) -> List[list]:
    """Direct child lists whose head is *name*."""
    return [child for child in node[1:] if head(child) == name]


def child(node: list, name: str) -> Optional[list]:
    for item in node[1:]:
        if head(item) == name:
            return item
    return None


def find_all(node: Node, name: str) -> Iterator[list]:
    """Depth-first walk yielding every list whose head is *name*."""
    if not isinstance(node, list):
        return
    if head(node) == name:
        yield node
    for item in node[1:]:
        yield from find_all(item, name)


def to_float(value: Node, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default
