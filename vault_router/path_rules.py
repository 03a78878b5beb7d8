"""
Path resolution rules for Vault uploads.

``PathResolver.resolve`` turns a target area plus a filename (and optional
brand, loop, SOP status and Card content) into one canonical primary path,
advisory suggestions and governance warnings.

Precedence, first applicable rule wins:

1. Card-aware routing (known Card kind parsed from the content)
2. Heuristic routing (filename classifier, then per-target folder tables)
3. Clamping of the primary path to the allowed Vault roots (always)

Only high-volume categories get dated buckets: System Health logs by day,
Finance reports by year/month. Everything else files flat so low-volume
folders are not split into one-file-per-day subfolders.
"""
from __future__ import annotations

import re
import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Callable, Dict, List, Optional

from .card_parser import Card, CardKind, parse_card
from .doc_classifier import DocType, Target, SYSTEM_DOC_TYPES, classify
from .exceptions import MalformedRequestError
from .utils.helpers import join_vault_path, sanitize_segment, sanitize_vault_path, split_vault_path
from .vault_structure import AllowedRoots, clamp

logger = logging.getLogger(__name__)


class SopStatus(str, Enum):
    DRAFT = "Draft"
    FINAL = "Final"
    SUPERSEDED = "Superseded"

    @classmethod
    def parse(cls, value) -> Optional['SopStatus']:
        if value is None or isinstance(value, cls):
            return value
        for status in cls:
            if status.value.lower() == str(value).strip().lower():
                return status
        return None


class Bucket(str, Enum):
    DAILY = "daily"
    MONTHLY = "monthly"


@dataclass(frozen=True)
class AreaRule:
    folder: str
    bucket: Optional[Bucket] = None


@dataclass(frozen=True)
class Suggestion:
    path: str
    reason: str

    def to_dict(self) -> Dict[str, str]:
        return {'path': self.path, 'reason': self.reason}


@dataclass(frozen=True)
class Detected:
    doc_type: DocType
    sop_status: Optional[SopStatus] = None
    loop_name: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        out = {'docType': self.doc_type.value}
        if self.sop_status:
            out['sopStatus'] = self.sop_status.value
        if self.loop_name:
            out['loopName'] = self.loop_name
        return out


@dataclass
class RuleResult:
    primary_path: str
    detected: Detected
    suggestions: List[Suggestion] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            'primaryPath': self.primary_path,
            'suggestions': [s.to_dict() for s in self.suggestions],
            'warnings': list(self.warnings),
            'detected': self.detected.to_dict(),
        }


CODEX_ROOT = "CODEX"
HARMONY_ROOT = "Operation Harmony"
CONFIG_ROOT = "codex"
UNROUTED_ROOT = "UNROUTED"

# Operation Harmony folders, relative to "<vault>/Operation Harmony/<brand>"
BUSINESS_AREAS: Dict[DocType, AreaRule] = {
    DocType.OPERATIONS: AreaRule("Operations/Processes & Forms"),
    DocType.MARKETING: AreaRule("Marketing & Branding/Assets"),
    DocType.PEOPLE_HR: AreaRule("People & HR/Hiring & Onboarding"),
    DocType.AI_AUTOMATION: AreaRule("AI & Automation/Prompts & Playbooks"),
    DocType.FINANCE: AreaRule("Finance/Reports", Bucket.MONTHLY),
    DocType.STRATEGY: AreaRule("Strategy & Leadership/Plans & OKRs"),
    DocType.CONTENT_CREATIVE: AreaRule("Content & Creative"),
    DocType.ARCHIVE: AreaRule("Archive"),
    DocType.GENERIC: AreaRule("Operations/Processes & Forms"),
}
BUSINESS_DEFAULT = BUSINESS_AREAS[DocType.GENERIC]

# CODEX folders, relative to "<vault>/CODEX"; LoopTask and SOP are resolved separately
SYSTEM_AREAS: Dict[DocType, AreaRule] = {
    DocType.OPS_INTEL: AreaRule("Ops Intelligence/Training & Guides"),
    DocType.SYSTEM_HEALTH: AreaRule("System Health/Automation Logs", Bucket.DAILY),
    DocType.CONTROL_DECK: AreaRule("Control Deck/Admin Directives"),
    DocType.FINANCE: AreaRule("Ops Intelligence/Finance Reports", Bucket.MONTHLY),
    DocType.ARCHIVE: AreaRule("Ops Intelligence/Archive"),
}
SYSTEM_DEFAULT = SYSTEM_AREAS[DocType.OPS_INTEL]

SOP_FOLDERS: Dict[SopStatus, str] = {
    SopStatus.FINAL: "Standards & SOPs/SOP Library",
    SopStatus.SUPERSEDED: "Standards & SOPs/Superseded & Archive",
    SopStatus.DRAFT: "Standards & SOPs/Drafts Under Review",
}

BUSINESS_DOC_TYPES = frozenset({
    DocType.OPERATIONS,
    DocType.MARKETING,
    DocType.PEOPLE_HR,
    DocType.AI_AUTOMATION,
    DocType.FINANCE,
    DocType.STRATEGY,
    DocType.CONTENT_CREATIVE,
})

LOOP_ACTIVE_FOLDER = "Active Tasks"
LOOP_WRAP_UP_FOLDER = "Wrap-Up"

# "genesis_01-notes.md" -> Genesis_01 (two or three digits, so dates are not loops)
LOOP_NAME_RE = re.compile(r'(?<![A-Za-z0-9])([A-Za-z][A-Za-z0-9]*)[_-](\d{2,3})(?!\d)')


def infer_loop_name(filename: str) -> Optional[str]:
    match = LOOP_NAME_RE.search(filename or '')
    if not match:
        return None
    word, number = match.groups()
    return f"{word[0].upper()}{word[1:]}_{number}"


def bucket_segments(bucket: Optional[Bucket], today: date) -> List[str]:
    if bucket is Bucket.DAILY:
        return [today.isoformat()]
    if bucket is Bucket.MONTHLY:
        return [f"{today:%Y}", f"{today:%m}"]
    return []


class PathResolver:
    """
    Resolve upload destinations inside the governed Vault tree.

    The allowed roots are injected at construction so alternate structures
    can be used in tests; the clock is injectable for the same reason.
    """

    def __init__(self, allowed_roots: AllowedRoots, vault_root: str = "Command Vault",
                 default_loop: str = "Genesis_01", unspecified_brand: str = "UNSPECIFIED_BRAND",
                 clock: Callable[[], date] = date.today):
        self.allowed_roots = allowed_roots
        self.vault_root = vault_root.rstrip('/')
        self.default_loop = default_loop
        self.unspecified_brand = unspecified_brand
        self._clock = clock

    # ---- public API

    def resolve(self, target, filename: str, brand: Optional[str] = None,
                loop_name: Optional[str] = None, sop_status=None,
                content: Optional[str] = None, card: Optional[Card] = None,
                prefer_filing: bool = True) -> RuleResult:
        """
        Compute the governed destination for one upload.

        Raises:
            MalformedRequestError: If ``target`` or ``filename`` is missing
        """
        result = self.compute(target, filename, brand=brand, loop_name=loop_name,
                              sop_status=sop_status, content=content, card=card,
                              prefer_filing=prefer_filing)
        clamped = clamp(result.primary_path, self.allowed_roots)
        if clamped != result.primary_path:
            logger.warning(f"Clamped {result.primary_path!r} to {clamped!r}")
            result.warnings.append(
                f'Path "{result.primary_path}" is outside the allowed Vault roots; clamped to "{clamped}".'
            )
            result.primary_path = clamped
        return result

    def compute(self, target, filename: str, brand: Optional[str] = None,
                loop_name: Optional[str] = None, sop_status=None,
                content: Optional[str] = None, card: Optional[Card] = None,
                prefer_filing: bool = True) -> RuleResult:
        """Same as ``resolve`` without the final clamp (used for advisory alternates)."""
        if not target or not str(target).strip():
            raise MalformedRequestError("target is required")
        fn = sanitize_segment(filename)
        if not fn:
            raise MalformedRequestError("filename is required")

        parsed_target = Target.parse(target)
        today = self._clock()

        if card is None and content:
            card = parse_card(content)
        if card is not None and card.is_known and parsed_target is not Target.CONFIG_CODEX:
            routed = self._route_card(card, fn, loop_name, prefer_filing)
            if routed is not None:
                return routed

        return self._route_heuristic(parsed_target, filename, fn, brand, loop_name, sop_status, today)

    def system_folder(self, doc_type: DocType, sop_status: Optional[SopStatus] = None,
                      loop_name: Optional[str] = None) -> str:
        """CODEX folder for a DocType, without date bucket or filename."""
        if doc_type is DocType.LOOP_TASK:
            return self._loop_folder(loop_name or self.default_loop, LOOP_ACTIVE_FOLDER)
        if doc_type is DocType.SOP:
            return join_vault_path(self.vault_root, CODEX_ROOT, SOP_FOLDERS[sop_status or SopStatus.DRAFT])
        area = SYSTEM_AREAS.get(doc_type, SYSTEM_DEFAULT)
        return join_vault_path(self.vault_root, CODEX_ROOT, area.folder)

    def business_folder(self, doc_type: DocType, brand: str) -> str:
        """Operation Harmony folder for a DocType under ``brand``."""
        area = BUSINESS_AREAS.get(doc_type, BUSINESS_DEFAULT)
        return join_vault_path(self.vault_root, HARMONY_ROOT, brand, area.folder)

    # ---- card-aware routing

    def _loop_folder(self, loop: str, leaf: str) -> str:
        return join_vault_path(self.vault_root, CODEX_ROOT, "Loops", sanitize_segment(loop), leaf)

    def _route_card(self, card: Card, fn: str, loop_name: Optional[str],
                    prefer_filing: bool) -> Optional[RuleResult]:
        if card.kind is CardKind.CODEX:
            if not card.loop:
                return None
            path = join_vault_path(self._loop_folder(card.loop, LOOP_ACTIVE_FOLDER), fn)
            logger.debug(f"CodexCard for loop {card.loop} -> {path}")
            return RuleResult(path, Detected(DocType.LOOP_TASK, loop_name=sanitize_segment(card.loop)))

        warnings: List[str] = []
        suggestions: List[Suggestion] = []
        loop = card.loop or loop_name

        if card.filing_location:
            location = sanitize_vault_path(card.filing_location)
            if not prefer_filing:
                suggestions.append(Suggestion(location + '/', "Filing Location from CompletionCard."))
            elif self.allowed_roots.contains(location + '/'):
                parts = split_vault_path(location)
                path = location if parts and parts[-1] == fn else join_vault_path(location, fn)
                logger.debug(f"CompletionCard filing location honoured -> {path}")
                return RuleResult(path, Detected(DocType.LOOP_TASK, loop_name=loop and sanitize_segment(loop)))
            else:
                logger.info(f"Filing location outside allowed roots: {card.filing_location!r}")
                warnings.append(
                    f'Filing Location "{card.filing_location}" is outside the allowed Vault roots; '
                    'using loop wrap-up folder.'
                )
        else:
            warnings.append("CompletionCard has no Filing Location; filed under loop wrap-up.")

        if not loop:
            loop = self.default_loop
            warnings.append(f"CompletionCard has no Loop Number; using default loop {loop}.")

        path = join_vault_path(self._loop_folder(loop, LOOP_WRAP_UP_FOLDER), fn)
        return RuleResult(path, Detected(DocType.LOOP_TASK, loop_name=sanitize_segment(loop)),
                          suggestions=suggestions, warnings=warnings)

    # ---- heuristic routing

    def _route_heuristic(self, target: Optional[Target], filename: str, fn: str,
                         brand: Optional[str], loop_name: Optional[str], sop_status,
                         today: date) -> RuleResult:
        doc_type = classify(filename, target)
        status = SopStatus.parse(sop_status)
        if doc_type is DocType.SOP and status is None:
            status = SopStatus.DRAFT
        loop = sanitize_segment(loop_name) if loop_name else None
        if doc_type is DocType.LOOP_TASK and not loop:
            loop = infer_loop_name(filename) or self.default_loop

        detected = Detected(
            doc_type,
            sop_status=status if doc_type is DocType.SOP else None,
            loop_name=loop if doc_type is DocType.LOOP_TASK else None,
        )
        warnings: List[str] = []
        suggestions: List[Suggestion] = []

        if target is Target.OPERATION_HARMONY:
            brand_segment = sanitize_segment(brand) if brand else ''
            if not brand_segment:
                warnings.append("Brand is required for Operation Harmony.")
                brand_segment = self.unspecified_brand
            area = BUSINESS_AREAS.get(doc_type, BUSINESS_DEFAULT)
            path = join_vault_path(self.business_folder(doc_type, brand_segment),
                                   *bucket_segments(area.bucket, today), fn)
            if doc_type in SYSTEM_DOC_TYPES:
                suggestions.append(Suggestion(
                    self.system_folder(doc_type, status, loop) + '/',
                    f'Detected a system doc ("{doc_type.value}"). Consider routing to CODEX.',
                ))
            return RuleResult(path, detected, suggestions, warnings)

        if target is Target.RUNTIME_CODEX:
            area = SYSTEM_AREAS.get(doc_type, SYSTEM_DEFAULT)
            bucket = area.bucket if doc_type not in (DocType.LOOP_TASK, DocType.SOP) else None
            path = join_vault_path(self.system_folder(doc_type, status, loop),
                                   *bucket_segments(bucket, today), fn)
            if doc_type in BUSINESS_DOC_TYPES:
                brand_segment = (sanitize_segment(brand) if brand else '') or self.unspecified_brand
                suggestions.append(Suggestion(
                    self.business_folder(doc_type, brand_segment) + '/',
                    f'Detected a business doc ("{doc_type.value}"). Consider routing to Operation Harmony.',
                ))
            return RuleResult(path, detected, suggestions, warnings)

        if target is Target.CONFIG_CODEX:
            path = join_vault_path(self.vault_root, CONFIG_ROOT, "Schema Incoming", fn)
            warnings.append("codex (config) is read-only to operators; this path is a preview only.")
            return RuleResult(path, Detected(DocType.GENERIC), suggestions, warnings)

        logger.info(f"Unrecognized target; routing {fn!r} to {UNROUTED_ROOT}")
        path = join_vault_path(self.vault_root, UNROUTED_ROOT, fn)
        warnings.append("Unrecognized target; using fallback.")
        return RuleResult(path, Detected(DocType.GENERIC), suggestions, warnings)
