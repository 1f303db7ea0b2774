"""Minimal SVG reader: a tag tokenizer that builds an element tree.

Only what the reference extractors need is supported: elements, attributes
and text content.  Comments, processing instructions and doctypes are
skipped and unclosed elements are closed at the end of input.
"""
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional

_TAG_RE = re.compile(
    r"<!--.*?-->"
    r"|<\?.*?\?>"
    r"|<!\[CDATA\[(?P<cdata>.*?)\]\]>"
    r"|<!.*?>"
    r"|<(?P<close>/)?(?P<name>[A-Za-z_][\w:.-]*)(?P<attrs>(?:\s+[^\s=/>]+(?:\s*=\s*(?:\"[^\"]*\"|'[^']*'|[^\s>]+))?)*)\s*(?P<self>/)?>",
    re.DOTALL,
)
_ATTR_RE = re.compile(r"([^\s=/>]+)(?:\s*=\s*(?:\"([^\"]*)\"|'([^']*)'|([^\s>]+)))?")

_ENTITIES = {"&lt;": "<", "&gt;": ">", "&quot;": '"', "&apos;": "'", "&amp;": "&"}
_ENTITY_RE = re.compile(r"&(?:lt|gt|quot|apos|amp);")


@dataclass
class Element:
    tag: str
    attrs: Dict[str, str] = field(default_factory=dict)
    children: List["Element"] = field(default_factory=list)
    text: str = ""

    def get(self, name: str, default: str = "") -> str:
        return self.attrs.get(name, default)

    def iter(self) -> Iterator["Element"]:
        """This element and all its descendants, document order."""
        yield self
        for item in self.children:
            yield from item.iter()

    def find_all(self, predicate: Callable[["Element"], bool]) -> List["Element"]:
        return [el for el in self.iter() if predicate(el)]

    def first(self, tag: str) -> Optional["Element"]:
        for el in self.iter():
            if el is not self and el.tag == tag:
                return el
        return None


def unescape(text: str) -> str:
    return _ENTITY_RE.sub(lambda m: _ENTITIES[m.group(0)], text)


def parse_attributes(text: str) -> Dict[str, str]:
    attrs = {}
    for match in _ATTR_RE.finditer(text):
        value = next((g for g in match.groups()[1:] if g is not None), "")
        attrs[match.group(1)] = unescape(value)
    return attrs


def parse_svg(svg: str) -> Element:
    """Parse SVG text into a tree under a synthetic ``#document`` root."""
    root = Element("#document")
    stack = [root]
    pos = 0
    for match in _TAG_RE.finditer(svg):
        text = svg[pos:match.start()]
        if text.strip():
            stack[-1].text += unescape(text)
        pos = match.end()

        if match.group("cdata") is not None:
            stack[-1].text += match.group("cdata")
            continue
        name = match.group("name")
        if name is None:
            continue

        if match.group("close"):
            # Pop back to the matching open element; ignore stray closers
            for depth in range(len(stack) - 1, 0, -1):
                if stack[depth].tag == name:
                    del stack[depth:]
                    break
            continue

        element = Element(name, parse_attributes(match.group("attrs") or ""))
        stack[-1].children.append(element)
        if not match.group("self"):
            stack.append(element)

    tail = svg[pos:]
    if tail.strip():
        stack[-1].text += unescape(tail)
    return root


def parse_number_pair(value: str):
    """Parse ``"x,y"`` (or space separated) into two floats, or None."""
    parts = [p for p in re.split(r"[\s,]+", value.strip()) if p]
    if len(parts) < 2:
        return None
    try:
        return float(parts[0]), float(parts[1])
    except ValueError:
        return None
