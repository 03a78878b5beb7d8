"""
Card validation against the CodexCard / CompletionCard templates.

The result always carries an ordered ``explains`` trace: one entry per
required-field check (found value on pass, template requirement on fail),
so callers can show the full rationale whether or not validation passed.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from .card_parser import Card, CardKind, parse_card, has_labelled_value

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    kind: CardKind
    explains: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    card: Optional[Card] = None

    def explains_payload(self) -> List[Dict[str, str]]:
        return [{'reason': reason} for reason in self.explains]


# A check returns the found-value echo, or None when the field is missing.
Check = Callable[[Card, str], Optional[str]]


def _parsed(attr: str, label: str) -> Check:
    def check(card: Card, text: str) -> Optional[str]:
        value = getattr(card, attr)
        return f"{label} found: {value}" if value else None
    return check


def _raw(name: str, label: str) -> Check:
    # Presence is checked on the raw text so unusual value formats still pass.
    def check(card: Card, text: str) -> Optional[str]:
        return f"{label} found." if has_labelled_value(text, name) else None
    return check


# Requirement text mirrors the Card templates; order is the template order.
CARD_TEMPLATES: Dict[CardKind, List[Tuple[str, Check]]] = {
    CardKind.CODEX: [
        ("Loop Number", _parsed('loop', "Loop Number")),
        ("Task Reference", _parsed('task_ref', "Task Reference")),
        ("Date Issued", _raw('date_issued', "Date Issued")),
    ],
    CardKind.COMPLETION: [
        ("Completed Task", _raw('completed_task', "Completed Task")),
        ("Loop Number", _parsed('loop', "Loop Number")),
        ("Task Reference", _parsed('task_ref', "Task Reference")),
        ("Date Completed", _raw('date_completed', "Date Completed")),
    ],
}


def requirement_text(kind: CardKind, label: str) -> str:
    return f"{label} is required (per {kind.value} template)."


def validate(text: str) -> ValidationResult:
    """
    Parse ``text`` and check it against the template for its detected kind.

    Unknown documents always pass; they are routed by filename heuristics.
    """
    card = parse_card(text)
    kind = card.kind

    if kind is CardKind.UNKNOWN:
        return ValidationResult(
            ok=True,
            kind=kind,
            explains=["Not a recognised Card, using filename & structure heuristics."],
            card=card,
        )

    explains: List[str] = []
    errors: List[str] = []
    for label, check in CARD_TEMPLATES[kind]:
        found = check(card, text)
        if found:
            explains.append(found)
        else:
            requirement = requirement_text(kind, label)
            errors.append(requirement)
            explains.append(requirement)

    if kind is CardKind.COMPLETION:
        if card.filing_location:
            explains.append(f"Card includes Filing Location: {card.filing_location}")
        else:
            explains.append("No Filing Location, rules will determine destination.")

    explains.append(f"Detected {kind.value} via header or required fields.")

    if errors:
        logger.info(f"{kind.value} failed validation: {len(errors)} missing field(s)")
    return ValidationResult(ok=not errors, kind=kind, explains=explains, errors=errors, card=card)
