"""
Markup helpers for element re-identification.

Stored descriptors are serialized outer markup captured at detection time.
These helpers normalize markup the same way the in-page matcher does,
parse the opening tag back into a structural descriptor, and score text
similarity for disambiguation.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from difflib import SequenceMatcher
from typing import Iterable, List, Optional

_REF_ATTR_RE = re.compile(r'\sdata-a11y-ref="[^"]*"')
_WS_RE = re.compile(r"\s+")
_INTER_TAG_WS_RE = re.compile(r">\s+<")
_OPEN_TAG_RE = re.compile(r"^\s*<\s*([a-zA-Z][\w:-]*)((?:[^>\"']|\"[^\"]*\"|'[^']*')*)>")
_ATTR_RE = re.compile(
    r"""([^\s=/>"']+)(?:\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s>"']+)))?"""
)
_TAG_RE = re.compile(r"<[^>]*>")
_CSS_IDENT_UNSAFE_RE = re.compile(r"([^\w-])")

# Class names that usually only exist to toggle visibility per breakpoint.
RESPONSIVE_CLASS_RE = re.compile(
    r"(^|[-_])(hidden|visible|d-none|show-for|hide-for|mobile|tablet|desktop)"
    r"([-_]|$)"
    r"|^(d|hidden|visible|show|hide)-(xs|sm|md|lg|xl|xxl)\b"
    r"|^(xs|sm|md|lg|xl|2xl):",
    re.IGNORECASE,
)


def normalize_markup(markup: Optional[str]) -> str:
    """Collapse whitespace variation and drop auditor stamps."""
    if not markup:
        return ""
    text = _REF_ATTR_RE.sub("", markup)
    text = _WS_RE.sub(" ", text)
    text = _INTER_TAG_WS_RE.sub("><", text)
    return text.strip()


def normalize_text(text: Optional[str]) -> str:
    return _WS_RE.sub(" ", text or "").strip()


def css_escape(value: str) -> str:
    escaped = _CSS_IDENT_UNSAFE_RE.sub(r"\\\1", value)
    if escaped[:1].isdigit():
        escaped = "\\3%s " % escaped[0] + escaped[1:]
    return escaped


@dataclass(frozen=True)
class ParsedMarkup:
    """Structural view of a stored markup snippet."""

    tag: str
    element_id: Optional[str] = None
    classes: List[str] = field(default_factory=list)
    leading_text: str = ""

    def selector(self) -> str:
        """
        Selector reconstructed from the stored markup.

        The id alone when present, otherwise tag plus classes.
        """
        if self.element_id:
            return "#" + css_escape(self.element_id)
        return self.tag + "".join("." + css_escape(c) for c in self.classes)


def parse_markup(markup: Optional[str], text_length: int = 100) -> Optional[ParsedMarkup]:
    """
    Parse tag name, id, class list and leading text from stored markup.

    Returns None when the snippet does not start with an element tag.
    """
    if not markup:
        return None

    match = _OPEN_TAG_RE.match(markup)
    if match is None:
        return None

    tag = match.group(1).lower()
    element_id = None
    classes: List[str] = []

    for attr in _ATTR_RE.finditer(match.group(2)):
        name = attr.group(1).lower()
        value = next((g for g in attr.group(2, 3, 4) if g is not None), "")
        if name == "id" and value.strip():
            element_id = value.strip()
        elif name == "class":
            classes = value.split()

    rest = markup[match.end():]
    leading_text = normalize_text(_TAG_RE.sub(" ", rest))[:text_length]

    return ParsedMarkup(
        tag=tag,
        element_id=element_id,
        classes=classes,
        leading_text=leading_text,
    )


def text_similarity(expected: str, actual: str, length: int = 100) -> float:
    """Similarity ratio in [0, 1] of two leading-text samples."""
    a = normalize_text(expected).lower()[:length]
    b = normalize_text(actual).lower()[:length]
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0
    return SequenceMatcher(None, a, b).ratio()


def looks_responsive(classes: Iterable[str]) -> bool:
    """True if any class suggests breakpoint-only visibility."""
    return any(RESPONSIVE_CLASS_RE.search(c) for c in classes)


def short_description(tag: str, element_id: Optional[str], classes: Iterable[str]) -> str:
    """Compact ``tag#id.class1.class2.class3`` label used in messages."""
    label = tag
    if element_id:
        label += "#" + element_id
    class_list = [c for c in classes if c][:3]
    if class_list:
        label += "." + ".".join(class_list)
    return label
