"""
Filename-based document type classification.

The classifier is an ordered rule table evaluated top to bottom against the
lower-cased filename; the first matching rule wins. System cues come before
business cues so that, for example, ``sop-training-guide.md`` is an SOP and
not a generic guide. Keep new rules in the block they belong to.
"""

import re
import logging
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, List, Optional, Pattern

logger = logging.getLogger(__name__)


class DocType(str, Enum):
    LOOP_TASK = "LoopTask"
    SOP = "SOP"
    OPS_INTEL = "OpsIntel"
    SYSTEM_HEALTH = "SystemHealth"
    CONTROL_DECK = "ControlDeck"
    OPERATIONS = "Operations"
    MARKETING = "Marketing"
    PEOPLE_HR = "PeopleHR"
    AI_AUTOMATION = "AIAutomation"
    FINANCE = "Finance"
    STRATEGY = "Strategy"
    CONTENT_CREATIVE = "ContentCreative"
    ARCHIVE = "Archive"
    GENERIC = "Generic"


class Target(str, Enum):
    OPERATION_HARMONY = "operationHarmony"
    RUNTIME_CODEX = "runtimeCodex"
    CONFIG_CODEX = "configCodex"

    @classmethod
    def parse(cls, value) -> Optional['Target']:
        """Return the Target for a raw request value, or None if unrecognised."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


SYSTEM_DOC_TYPES = frozenset({
    DocType.LOOP_TASK,
    DocType.SOP,
    DocType.OPS_INTEL,
    DocType.SYSTEM_HEALTH,
    DocType.CONTROL_DECK,
})


@dataclass(frozen=True)
class ClassifierRule:
    pattern: Pattern[str]
    doc_type: DocType
    targets: Optional[FrozenSet[Target]] = None  # None = any target

    def matches(self, name: str, target: Optional[Target]) -> bool:
        if self.targets is not None and target not in self.targets:
            return False
        return bool(self.pattern.search(name))


def _rule(pattern: str, doc_type: DocType, targets=None) -> ClassifierRule:
    return ClassifierRule(re.compile(pattern), doc_type, frozenset(targets) if targets else None)


# Short tokens require a non-letter on the left (e.g. "ad" must not hit "upload").
_W = r'(?<![a-z])'

CLASSIFIER_RULES: List[ClassifierRule] = [
    # System cues
    _rule(r'sop|standard|policy|procedure', DocType.SOP),
    _rule(r'loop|codexcard|task|ticket', DocType.LOOP_TASK),
    _rule(r'intel|guide|training|how[- _]?to|playbook', DocType.OPS_INTEL),
    _rule(r'health|audit|monitor|' + _W + r'logs?', DocType.SYSTEM_HEALTH),
    _rule(r'directive|governance|admin|' + _W + r'rules?(?![a-z])', DocType.CONTROL_DECK),
    # Business cues
    _rule(r'campaign|asset|brand|creative|logo|social|' + _W + r'ads?(?![a-z])', DocType.MARKETING),
    _rule(r'invoice|' + _W + r'bill|budget|forecast|p&l|profit|loss|balance', DocType.FINANCE),
    _rule(r'hiring|onboard|manager|' + _W + r'hr(?![a-z])', DocType.PEOPLE_HR),
    _rule(r'prompt|automation|script|workflow', DocType.AI_AUTOMATION),
    _rule(_W + r'okr|strategy|plan|review|decision', DocType.STRATEGY),
    _rule(_W + r'form(s)?(?![a-z])|checklist|process', DocType.OPERATIONS, {Target.OPERATION_HARMONY}),
    _rule(r'content|video|blog|' + _W + r'copy', DocType.CONTENT_CREATIVE),
    _rule(_W + r'(archived?|legacy)(?![a-z])', DocType.ARCHIVE),
]

DEFAULT_BY_TARGET = {
    Target.RUNTIME_CODEX: DocType.OPS_INTEL,
    Target.OPERATION_HARMONY: DocType.OPERATIONS,
}


def classify(filename: str, target) -> DocType:
    """
    Infer a DocType from filename tokens alone.

    Args:
        filename: Original upload filename
        target: Target enum or raw target string (unknown values allowed)

    Returns:
        First matching rule's DocType, else the target's default bucket
    """
    name = (filename or '').lower()
    parsed = Target.parse(target)
    for rule in CLASSIFIER_RULES:
        if rule.matches(name, parsed):
            logger.debug(f"Classified {filename!r} as {rule.doc_type.value} via /{rule.pattern.pattern}/")
            return rule.doc_type
    return DEFAULT_BY_TARGET.get(parsed, DocType.GENERIC)
