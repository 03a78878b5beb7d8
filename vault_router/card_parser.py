"""
Card detection and field extraction.

A Card is a markdown/text document written from one of two templates:

- CodexCard: an active task record (Loop Number, Task Reference, Date Issued)
- CompletionCard: a closed task record (Completed Task, Loop Number,
  Task Reference, Date Completed, optional Filing Location)

Authors decorate these templates freely (emoji glyphs, bold labels,
bracketed or backticked values), so every pattern here tolerates that
markup. Extraction never raises; absent fields stay ``None``.
"""
from __future__ import annotations

import re
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Pattern

logger = logging.getLogger(__name__)


class CardKind(str, Enum):
    CODEX = "CodexCard"
    COMPLETION = "CompletionCard"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class Card:
    """Parsed view of one document; built per request, never persisted."""
    kind: CardKind
    loop: Optional[str] = None
    task_ref: Optional[str] = None
    date_issued: Optional[str] = None
    date_completed: Optional[str] = None
    completed_task: Optional[str] = None
    filing_location: Optional[str] = None

    @property
    def is_known(self) -> bool:
        return self.kind is not CardKind.UNKNOWN


def _label(words: str) -> str:
    """Regex for a field label: words separated by same-line whitespace."""
    return r'[^\S\r\n]*'.join(re.escape(w) for w in words.split())


def _line_pattern(label: str) -> Pattern[str]:
    # <anything on the line> Label [**] : [**] value
    return re.compile(
        r'^[^\r\n]*?\b' + _label(label) + r'[*_]*[^\S\r\n]*:[*_]*[^\S\r\n]*(?P<value>[^\r\n]*)',
        re.IGNORECASE | re.MULTILINE,
    )


@dataclass(frozen=True)
class FieldPattern:
    """One extractable Card field: primary label plus tolerated alternates."""
    name: str
    primary: Pattern[str]
    fallbacks: List[Pattern[str]] = field(default_factory=list)

    def patterns(self) -> List[Pattern[str]]:
        return [self.primary] + list(self.fallbacks)


# Order within each entry is priority order; new labels are additive.
CARD_FIELDS: List[FieldPattern] = [
    FieldPattern('loop', _line_pattern('Loop Number'),
                 [_line_pattern('Loop No.'), _line_pattern('Loop #'), _line_pattern('Loop ID')]),
    FieldPattern('task_ref', _line_pattern('Task Reference'),
                 [_line_pattern('Task Ref'), _line_pattern('Task ID')]),
    FieldPattern('date_issued', _line_pattern('Date Issued'), [_line_pattern('Issued On')]),
    FieldPattern('date_completed', _line_pattern('Date Completed'), [_line_pattern('Completed On')]),
    FieldPattern('completed_task', _line_pattern('Completed Task')),
]

FIELDS_BY_NAME = {f.name: f for f in CARD_FIELDS}

# "# 🗂️ CodexCard" -- any marker glyph between the hashes and the word
_HEADER_PATTERNS = [
    (CardKind.CODEX, re.compile(r'^[^\S\r\n]*#+[^\w\r\n]*CodexCard\b', re.IGNORECASE | re.MULTILINE)),
    (CardKind.COMPLETION, re.compile(r'^[^\S\r\n]*#+[^\w\r\n]*CompletionCard\b', re.IGNORECASE | re.MULTILINE)),
]

# Field sets that identify a template when no header is present
_REQUIRED_FOR_DETECTION = [
    (CardKind.CODEX, ('loop', 'task_ref', 'date_issued')),
    (CardKind.COMPLETION, ('completed_task', 'loop', 'task_ref', 'date_completed')),
]

_FILING_LABEL = _label('Filing Location')
_FILING_FENCE_RE = re.compile(
    r'\b' + _FILING_LABEL + r'\b[*_]*[^\S\r\n]*:?[*_]*\s*```[^\r\n]*\r?\n(?P<body>.*?)```',
    re.IGNORECASE | re.DOTALL,
)
_FILING_SECTION_RE = re.compile(
    r'\b' + _FILING_LABEL + r'\b(?P<section>.*?)(?=^[^\S\r\n]*#|\Z)',
    re.IGNORECASE | re.DOTALL | re.MULTILINE,
)
_INLINE_CODE_RE = re.compile(r'`(?P<value>[^`\r\n]+)`')
# "__x__" or "_x_"; a lone trailing "_" belongs to the value
_UNDERSCORE_EMPHASIS_RE = re.compile(r'^(__?)(?P<inner>.+?)\1$')
_FILING_LINE_RE = _line_pattern('Filing Location')


def clean_value(raw: Optional[str]) -> Optional[str]:
    """Trim whitespace, emphasis markers and one layer of bracket/backtick wrapping."""
    if raw is None:
        return None
    value = raw.strip().strip('*').strip()
    emphasis = _UNDERSCORE_EMPHASIS_RE.match(value)
    if emphasis:
        value = emphasis.group('inner').strip()
    value = re.sub(r'^`?\[?', '', value)
    value = re.sub(r'\]?`?$', '', value)
    value = value.strip()
    return value or None


def extract_field(text: str, name: str) -> Optional[str]:
    """Return the first non-empty value for a Card field, trying fallbacks in order."""
    field_pattern = FIELDS_BY_NAME[name]
    for pattern in field_pattern.patterns():
        for match in pattern.finditer(text):
            value = clean_value(match.group('value'))
            if value:
                return value
    return None


def has_labelled_value(text: str, name: str) -> bool:
    """Raw-text presence check: a labelled line with any non-blank text after the colon."""
    field_pattern = FIELDS_BY_NAME[name]
    return any(m.group('value').strip() for p in field_pattern.patterns() for m in p.finditer(text))


def extract_filing_location(text: str) -> Optional[str]:
    """
    Extract the Filing Location using three fallback tiers.

    1. fenced block directly after the label (first non-empty line)
    2. first inline `code` value within the label's section
    3. plain ``Filing Location: value`` line
    """
    fence = _FILING_FENCE_RE.search(text)
    if fence:
        for line in fence.group('body').splitlines():
            value = clean_value(line)
            if value:
                return value

    section = _FILING_SECTION_RE.search(text)
    if section:
        inline = _INLINE_CODE_RE.search(section.group('section'))
        if inline:
            value = clean_value(inline.group('value'))
            if value:
                return value

    for match in _FILING_LINE_RE.finditer(text):
        value = clean_value(match.group('value'))
        if value:
            return value
    return None


def detect_card_kind(text: str) -> CardKind:
    """
    Detect which Card template a document follows.

    An explicit header wins; otherwise the complete required-field set of a
    template must be present.
    """
    text = text or ''
    for kind, pattern in _HEADER_PATTERNS:
        if pattern.search(text):
            return kind
    for kind, names in _REQUIRED_FOR_DETECTION:
        if all(extract_field(text, name) for name in names):
            return kind
    return CardKind.UNKNOWN


def parse_card(text: str) -> Card:
    text = text or ''
    card = Card(
        kind=detect_card_kind(text),
        loop=extract_field(text, 'loop'),
        task_ref=extract_field(text, 'task_ref'),
        date_issued=extract_field(text, 'date_issued'),
        date_completed=extract_field(text, 'date_completed'),
        completed_task=extract_field(text, 'completed_task'),
        filing_location=extract_filing_location(text),
    )
    logger.debug(f"Parsed card kind={card.kind.value} loop={card.loop} task_ref={card.task_ref}")
    return card
