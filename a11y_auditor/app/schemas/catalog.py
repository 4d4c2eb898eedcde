"""
WCAG 2.1 + 2.2 success-criterion catalog.

The catalog is built once per process (``load_catalog`` is cached) and
shared read-only by checks, the orchestrator and the scorer.
"""

from __future__ import annotations

from functools import lru_cache
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from a11y_auditor.app.schemas.criteria import Criterion, Level, Principle

UNKNOWN_CRITERION_ID = "unknown"

_PRINCIPLE_BY_DIGIT = {
    "1": Principle.PERCEIVABLE,
    "2": Principle.OPERABLE,
    "3": Principle.UNDERSTANDABLE,
    "4": Principle.ROBUST,
}

# (id, level, title, version)
_CRITERIA: Tuple[Tuple[str, str, str, str], ...] = (
    # 1. Perceivable
    ("1.1.1", "A", "Non-text Content", "2.0"),
    ("1.2.1", "A", "Audio-only and Video-only (Prerecorded)", "2.0"),
    ("1.2.2", "A", "Captions (Prerecorded)", "2.0"),
    ("1.2.3", "A", "Audio Description or Media Alternative (Prerecorded)", "2.0"),
    ("1.2.4", "AA", "Captions (Live)", "2.0"),
    ("1.2.5", "AA", "Audio Description (Prerecorded)", "2.0"),
    ("1.2.6", "AAA", "Sign Language (Prerecorded)", "2.0"),
    ("1.2.7", "AAA", "Extended Audio Description (Prerecorded)", "2.0"),
    ("1.2.8", "AAA", "Media Alternative (Prerecorded)", "2.0"),
    ("1.2.9", "AAA", "Audio-only (Live)", "2.0"),
    ("1.3.1", "A", "Info and Relationships", "2.0"),
    ("1.3.2", "A", "Meaningful Sequence", "2.0"),
    ("1.3.3", "A", "Sensory Characteristics", "2.0"),
    ("1.3.4", "AA", "Orientation", "2.1"),
    ("1.3.5", "AA", "Identify Input Purpose", "2.1"),
    ("1.3.6", "AAA", "Identify Purpose", "2.1"),
    ("1.4.1", "A", "Use of Color", "2.0"),
    ("1.4.2", "A", "Audio Control", "2.0"),
    ("1.4.3", "AA", "Contrast (Minimum)", "2.0"),
    ("1.4.4", "AA", "Resize Text", "2.0"),
    ("1.4.5", "AA", "Images of Text", "2.0"),
    ("1.4.6", "AAA", "Contrast (Enhanced)", "2.0"),
    ("1.4.7", "AAA", "Low or No Background Audio", "2.0"),
    ("1.4.8", "AAA", "Visual Presentation", "2.0"),
    ("1.4.9", "AAA", "Images of Text (No Exception)", "2.0"),
    ("1.4.10", "AA", "Reflow", "2.1"),
    ("1.4.11", "AA", "Non-text Contrast", "2.1"),
    ("1.4.12", "AA", "Text Spacing", "2.1"),
    ("1.4.13", "AA", "Content on Hover or Focus", "2.1"),
    # 2. Operable
    ("2.1.1", "A", "Keyboard", "2.0"),
    ("2.1.2", "A", "No Keyboard Trap", "2.0"),
    ("2.1.3", "AAA", "Keyboard (No Exception)", "2.0"),
    ("2.1.4", "A", "Character Key Shortcuts", "2.1"),
    ("2.2.1", "A", "Timing Adjustable", "2.0"),
    ("2.2.2", "A", "Pause, Stop, Hide", "2.0"),
    ("2.2.3", "AAA", "No Timing", "2.0"),
    ("2.2.4", "AAA", "Interruptions", "2.0"),
    ("2.2.5", "AAA", "Re-authenticating", "2.0"),
    ("2.2.6", "AAA", "Timeouts", "2.1"),
    ("2.3.1", "A", "Three Flashes or Below Threshold", "2.0"),
    ("2.3.2", "AAA", "Three Flashes", "2.0"),
    ("2.3.3", "AAA", "Animation from Interactions", "2.1"),
    ("2.4.1", "A", "Bypass Blocks", "2.0"),
    ("2.4.2", "A", "Page Titled", "2.0"),
    ("2.4.3", "A", "Focus Order", "2.0"),
    ("2.4.4", "A", "Link Purpose (In Context)", "2.0"),
    ("2.4.5", "AA", "Multiple Ways", "2.0"),
    ("2.4.6", "AA", "Headings and Labels", "2.0"),
    ("2.4.7", "AA", "Focus Visible", "2.0"),
    ("2.4.8", "AAA", "Location", "2.0"),
    ("2.4.9", "AAA", "Link Purpose (Link Only)", "2.0"),
    ("2.4.10", "AAA", "Section Headings", "2.0"),
    ("2.4.11", "AA", "Focus Not Obscured (Minimum)", "2.2"),
    ("2.4.12", "AAA", "Focus Not Obscured (Enhanced)", "2.2"),
    ("2.4.13", "AAA", "Focus Appearance", "2.2"),
    ("2.5.1", "A", "Pointer Gestures", "2.1"),
    ("2.5.2", "A", "Pointer Cancellation", "2.1"),
    ("2.5.3", "A", "Label in Name", "2.1"),
    ("2.5.4", "A", "Motion Actuation", "2.1"),
    ("2.5.5", "AAA", "Target Size (Enhanced)", "2.1"),
    ("2.5.6", "AAA", "Concurrent Input Mechanisms", "2.1"),
    ("2.5.7", "AA", "Dragging Movements", "2.2"),
    ("2.5.8", "AA", "Target Size (Minimum)", "2.2"),
    # 3. Understandable
    ("3.1.1", "A", "Language of Page", "2.0"),
    ("3.1.2", "AA", "Language of Parts", "2.0"),
    ("3.1.3", "AAA", "Unusual Words", "2.0"),
    ("3.1.4", "AAA", "Abbreviations", "2.0"),
    ("3.1.5", "AAA", "Reading Level", "2.0"),
    ("3.1.6", "AAA", "Pronunciation", "2.0"),
    ("3.2.1", "A", "On Focus", "2.0"),
    ("3.2.2", "A", "On Input", "2.0"),
    ("3.2.3", "AA", "Consistent Navigation", "2.0"),
    ("3.2.4", "AA", "Consistent Identification", "2.0"),
    ("3.2.5", "AAA", "Change on Request", "2.0"),
    ("3.2.6", "A", "Consistent Help", "2.2"),
    ("3.3.1", "A", "Error Identification", "2.0"),
    ("3.3.2", "A", "Labels or Instructions", "2.0"),
    ("3.3.3", "AA", "Error Suggestion", "2.0"),
    ("3.3.4", "AA", "Error Prevention (Legal, Financial, Data)", "2.0"),
    ("3.3.5", "AAA", "Help", "2.0"),
    ("3.3.6", "AAA", "Error Prevention (All)", "2.0"),
    ("3.3.7", "A", "Redundant Entry", "2.2"),
    ("3.3.8", "AA", "Accessible Authentication (Minimum)", "2.2"),
    ("3.3.9", "AAA", "Accessible Authentication (Enhanced)", "2.2"),
    # 4. Robust
    ("4.1.1", "A", "Parsing", "2.0"),
    ("4.1.2", "A", "Name, Role, Value", "2.0"),
    ("4.1.3", "AA", "Status Messages", "2.1"),
)


def principle_for(criterion_id: str) -> Optional[Principle]:
    """Return the principle encoded by the first digit of a dotted id."""
    return _PRINCIPLE_BY_DIGIT.get(criterion_id[:1])


@lru_cache(maxsize=1)
def load_catalog() -> Mapping[str, Criterion]:
    """
    Build the criterion catalog.

    The result is cached for the lifetime of the process and exposed as a
    read-only mapping keyed by dotted id.
    """
    catalog = {}
    for criterion_id, level, title, version in _CRITERIA:
        catalog[criterion_id] = Criterion(
            id=criterion_id,
            principle=_PRINCIPLE_BY_DIGIT[criterion_id[0]],
            level=Level(level),
            title=title,
            wcag_version=version,
        )
    return MappingProxyType(catalog)


def get_criterion(criterion_id: str) -> Optional[Criterion]:
    return load_catalog().get(criterion_id)
