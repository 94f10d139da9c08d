"""
swcforge.extraction.patterns - Pattern families for requirement extraction.

Each entity family is an ordered tuple of pure ``(text) -> list[Candidate]``
functions. The extractor runs every function of a family, unions the
candidates in order of position and deduplicates them; filtering and
canonicalization live in the extractor so each rule here can be tested
on its own.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, List, Optional

from swcforge.core.models import (
    Direction,
    InterfaceType,
    Priority,
    RequirementCategory,
    Timing,
    TimingType,
)


@dataclass(frozen=True)
class Candidate:
    """A raw token matched in requirement text.

    Attributes:
        value: The matched token
        position: Offset of the token in the text
        type: Base type for typed data elements
    """

    value: str
    position: int
    type: Optional[str] = None


CandidateExtractor = Callable[[str], List[Candidate]]

_ARTICLE = r"(?:(?:a|an|the)\s+)?"
BASE_TYPE_PATTERN = r"(?:uint\d+|int\d+|boolean|float|double)"
_BASE_TYPE_RE = re.compile(rf"^{BASE_TYPE_PATTERN}$", re.IGNORECASE)


def _finditer(pattern: re.Pattern, text: str, group: int = 1) -> list[Candidate]:
    return [Candidate(m.group(group), m.start(group)) for m in pattern.finditer(text)]


def is_base_type(token: str) -> bool:
    """Check if a token is a base type keyword (uint16, boolean, ...)."""
    return bool(_BASE_TYPE_RE.match(token))


# ─────────────────────────────────────────────────────────────────────────────
# Components
# ─────────────────────────────────────────────────────────────────────────────

SWC_TOKEN_RE = re.compile(r"\b([A-Za-z]\w*?_swc)\b", re.IGNORECASE)
CONTROLLER_TOKEN_RE = re.compile(r"\b([A-Za-z]\w*?[Cc]ontroller)\b")
SOFTWARE_COMPONENT_RE = re.compile(r"\bsoftware\s+component\s+(\w+)", re.IGNORECASE)
MODAL_SUBJECT_RE = re.compile(r"\b(\w+)\s+(?:shall|must|will)\b", re.IGNORECASE)
IMPLEMENT_RE = re.compile(rf"\bimplements?\s+{_ARTICLE}(\w+)", re.IGNORECASE)


def swc_suffix_tokens(text: str) -> list[Candidate]:
    """``sensor_swc``"""
    return _finditer(SWC_TOKEN_RE, text)


def controller_tokens(text: str) -> list[Candidate]:
    """``BrakeController``"""
    return _finditer(CONTROLLER_TOKEN_RE, text)


def software_component_tokens(text: str) -> list[Candidate]:
    """``software component <name>``"""
    return _finditer(SOFTWARE_COMPONENT_RE, text)


def modal_subject_tokens(text: str) -> list[Candidate]:
    """``<name> shall|must|will``"""
    return _finditer(MODAL_SUBJECT_RE, text)


def implement_tokens(text: str) -> list[Candidate]:
    """``implement <name>``"""
    return _finditer(IMPLEMENT_RE, text)


COMPONENT_EXTRACTORS: tuple[CandidateExtractor, ...] = (
    swc_suffix_tokens,
    controller_tokens,
    software_component_tokens,
    modal_subject_tokens,
    implement_tokens,
)

# ─────────────────────────────────────────────────────────────────────────────
# Interfaces
# ─────────────────────────────────────────────────────────────────────────────

# Hyphenated words ("client-server interface") are communication models, not names
NAMED_INTERFACE_RE = re.compile(r"(?<![-\w])(\w+)\s+interface\b", re.IGNORECASE)
VIA_RE = re.compile(rf"\bvia\s+{_ARTICLE}(\w+)", re.IGNORECASE)
USING_INTERFACE_RE = re.compile(rf"\busing\s+{_ARTICLE}(\w+)\s+interface\b", re.IGNORECASE)


def named_interface_tokens(text: str) -> list[Candidate]:
    """``<name> interface``"""
    return _finditer(NAMED_INTERFACE_RE, text)


def via_tokens(text: str) -> list[Candidate]:
    """``via <name>``"""
    return _finditer(VIA_RE, text)


def using_interface_tokens(text: str) -> list[Candidate]:
    """``using <name> interface``"""
    return _finditer(USING_INTERFACE_RE, text)


INTERFACE_EXTRACTORS: tuple[CandidateExtractor, ...] = (
    named_interface_tokens,
    via_tokens,
    using_interface_tokens,
)

# ─────────────────────────────────────────────────────────────────────────────
# Signals
# ─────────────────────────────────────────────────────────────────────────────

SIGNAL_RE = re.compile(r"\b(\w+)\s+signals?\b", re.IGNORECASE)
SEND_RECEIVE_OBJECT_RE = re.compile(
    rf"\b(?:send|sends|receive|receives)\s+{_ARTICLE}(\w+)", re.IGNORECASE
)
DATA_RE = re.compile(r"\b(\w+)\s+data\b", re.IGNORECASE)
VALUE_RE = re.compile(r"\b(\w+)\s+values?\b", re.IGNORECASE)
MEASUREMENT_VOCABULARY = ("temperature", "pressure", "speed", "voltage", "current")
MEASUREMENT_RE = re.compile(
    r"\b(" + "|".join(MEASUREMENT_VOCABULARY) + r")\b", re.IGNORECASE
)


def signal_tokens(text: str) -> list[Candidate]:
    """``<name> signal``"""
    return _finditer(SIGNAL_RE, text)


def send_receive_tokens(text: str) -> list[Candidate]:
    """``send (a) <name>`` / ``receive (the) <name>``"""
    return _finditer(SEND_RECEIVE_OBJECT_RE, text)


def data_tokens(text: str) -> list[Candidate]:
    """``<name> data``"""
    return _finditer(DATA_RE, text)


def value_tokens(text: str) -> list[Candidate]:
    """``<name> value``"""
    return _finditer(VALUE_RE, text)


def measurement_tokens(text: str) -> list[Candidate]:
    """Closed vocabulary of measurement nouns."""
    return _finditer(MEASUREMENT_RE, text)


SIGNAL_EXTRACTORS: tuple[CandidateExtractor, ...] = (
    signal_tokens,
    send_receive_tokens,
    data_tokens,
    value_tokens,
    measurement_tokens,
)

# ─────────────────────────────────────────────────────────────────────────────
# Typed data elements
# ─────────────────────────────────────────────────────────────────────────────

TYPE_DECLARATION_RE = re.compile(
    rf"\b(\w+)\s+(?:shall\s+be\s+of\s+type|type)\s+({BASE_TYPE_PATTERN})\b",
    re.IGNORECASE,
)
TYPE_PAREN_RE = re.compile(
    rf"\b(\w+)\s*\(\s*({BASE_TYPE_PATTERN})\s*\)", re.IGNORECASE
)
TYPE_PREFIX_RE = re.compile(rf"\b({BASE_TYPE_PATTERN})\s+(\w+)", re.IGNORECASE)


def _typed(pattern: re.Pattern, text: str, name_group: int, type_group: int) -> list[Candidate]:
    return [
        Candidate(m.group(name_group), m.start(name_group), m.group(type_group).lower())
        for m in pattern.finditer(text)
    ]


def declared_type_elements(text: str) -> list[Candidate]:
    """``<name> shall be of type <baseType>`` / ``<name> type <baseType>``"""
    return _typed(TYPE_DECLARATION_RE, text, 1, 2)


def parenthesized_type_elements(text: str) -> list[Candidate]:
    """``<name>(<baseType>)``"""
    return _typed(TYPE_PAREN_RE, text, 1, 2)


def prefixed_type_elements(text: str) -> list[Candidate]:
    """``<baseType> <name>``"""
    return _typed(TYPE_PREFIX_RE, text, 2, 1)


TYPED_ELEMENT_EXTRACTORS: tuple[CandidateExtractor, ...] = (
    declared_type_elements,
    parenthesized_type_elements,
    prefixed_type_elements,
)

# Substring of the signal name -> inferred base type, first hit wins
SIGNAL_TYPE_TABLE: tuple[tuple[tuple[str, ...], str], ...] = (
    (("status", "flag"), "boolean"),
    (("speed", "rpm", "temperature", "pressure"), "uint16"),
)
DEFAULT_SIGNAL_TYPE = "uint16"


def infer_signal_type(signal: str) -> str:
    """Infer a base type from a signal name."""
    lower = signal.lower()
    for keywords, base_type in SIGNAL_TYPE_TABLE:
        if any(keyword in lower for keyword in keywords):
            return base_type
    return DEFAULT_SIGNAL_TYPE


# ─────────────────────────────────────────────────────────────────────────────
# Communication
# ─────────────────────────────────────────────────────────────────────────────

INTERFACE_TYPE_TABLE: tuple[tuple[InterfaceType, re.Pattern], ...] = (
    (InterfaceType.SENDER_RECEIVER, re.compile(r"sender[\s-]*receiver", re.IGNORECASE)),
    (
        InterfaceType.CLIENT_SERVER,
        re.compile(r"\bclient|\bserver|\bcalls?\b|\bcalled\b", re.IGNORECASE),
    ),
    (InterfaceType.MODE_SWITCH, re.compile(r"\bmodes?\b|\bmode[\s-]?switch", re.IGNORECASE)),
    (InterfaceType.PARAMETER, re.compile(r"\bparameters?\b", re.IGNORECASE)),
    (InterfaceType.TRIGGER, re.compile(r"\btrigger", re.IGNORECASE)),
)

# Any inflection counts (sender, received, sending). The interface type
# phrase "Sender-Receiver" is removed before the verbs are looked up.
SEND_VERB_RE = re.compile(r"\bsend\w*", re.IGNORECASE)
RECEIVE_VERB_RE = re.compile(r"\breceiv\w*", re.IGNORECASE)
SENDER_RECEIVER_RE = re.compile(r"\bsender[\s_-]*receiver\b", re.IGNORECASE)


def _verbs(text: str) -> tuple[bool, bool]:
    text = SENDER_RECEIVER_RE.sub(" ", text)
    return bool(SEND_VERB_RE.search(text)), bool(RECEIVE_VERB_RE.search(text))


def interface_type(text: str) -> InterfaceType:
    """Interface type from the keyword table (default SenderReceiver)."""
    for kind, pattern in INTERFACE_TYPE_TABLE:
        if pattern.search(text):
            return kind
    return InterfaceType.SENDER_RECEIVER


def direction(text: str) -> Optional[Direction]:
    """Direction from the send/receive verbs present in the text."""
    sends, receives = _verbs(text)
    if sends and receives:
        return Direction.BOTH
    if sends:
        return Direction.SENDER
    if receives:
        return Direction.RECEIVER
    return None


def mentions_communication(text: str) -> bool:
    """True if the text uses a send or receive verb."""
    return any(_verbs(text))


# ─────────────────────────────────────────────────────────────────────────────
# Timing
# ─────────────────────────────────────────────────────────────────────────────

_UNIT = r"(ms|msec|milliseconds?|s|secs?|seconds?)\b"
TIMING_PATTERNS: tuple[re.Pattern, ...] = (
    re.compile(rf"\bevery\s+(\d+)\s*{_UNIT}", re.IGNORECASE),
    re.compile(rf"\b(\d+)\s*{_UNIT}\s+period\b", re.IGNORECASE),
    # also covers "transmission period of N ..."
    re.compile(rf"\bperiod\s+of\s+(\d+)\s*{_UNIT}", re.IGNORECASE),
)
EVENT_RE = re.compile(r"\b(?:event|trigger)", re.IGNORECASE)
INIT_RE = re.compile(r"\b(?:init\w*|start[\s-]?up)\b", re.IGNORECASE)


def _normalize_unit(unit: str) -> str:
    lower = unit.lower()
    return "ms" if lower.startswith("m") else "s"


def timing(text: str) -> Optional[Timing]:
    """First periodic match, else event, else init, else None."""
    for pattern in TIMING_PATTERNS:
        match = pattern.search(text)
        if match:
            return Timing(
                type=TimingType.PERIODIC,
                period=int(match.group(1)),
                unit=_normalize_unit(match.group(2)),
            )
    if EVENT_RE.search(text):
        return Timing(type=TimingType.EVENT)
    if INIT_RE.search(text):
        return Timing(type=TimingType.INIT)
    return None


# ─────────────────────────────────────────────────────────────────────────────
# ECU behavior
# ─────────────────────────────────────────────────────────────────────────────

ECU_PATTERNS: tuple[re.Pattern, ...] = (
    re.compile(r"\bECU\s+(\w+)", re.IGNORECASE),
    re.compile(r"\b(\w+)\s+ECU\b", re.IGNORECASE),
    re.compile(r"\b([A-Za-z]\w*?)(?:ControlUnit|Controller)\b"),
)


def ecu_name_candidates(text: str) -> list[Candidate]:
    """ECU name candidates, grouped by pattern in priority order."""
    return [c for pattern in ECU_PATTERNS for c in _finditer(pattern, text)]


# ─────────────────────────────────────────────────────────────────────────────
# Classification
# ─────────────────────────────────────────────────────────────────────────────

CATEGORY_KEYWORDS: tuple[tuple[RequirementCategory, tuple[str, ...]], ...] = (
    (RequirementCategory.INTERFACE, ("interface", "communication")),
    (RequirementCategory.NON_FUNCTIONAL, ("timing", "performance")),
    (RequirementCategory.CONSTRAINT, ("shall not", "must not")),
)

PRIORITY_KEYWORDS: tuple[tuple[Priority, tuple[str, ...]], ...] = (
    (Priority.HIGH, ("critical", "safety", "emergency")),
    (Priority.LOW, ("optional", "nice to have")),
)


def classify_category(text: str) -> RequirementCategory:
    lower = text.lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in lower for keyword in keywords):
            return category
    return RequirementCategory.FUNCTIONAL


def classify_priority(text: str) -> Priority:
    lower = text.lower()
    for priority, keywords in PRIORITY_KEYWORDS:
        if any(keyword in lower for keyword in keywords):
            return priority
    return Priority.MEDIUM
