"""
Rethink proposals and the PIN-gated human override.

When an operator disagrees with a preview, the proposer recomputes a small
ranked list of plausible destinations from the filename (and brand) alone.
Card content is not consulted and alternates are not clamped: they are
display text for a human to pick from, never applied automatically.

The PIN registry is a placeholder gate, not authentication. Applied
overrides are not re-checked against the allowed roots.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .doc_classifier import DocType, Target, classify
from .exceptions import MalformedRequestError
from .path_rules import PathResolver, CODEX_ROOT, SOP_FOLDERS, SYSTEM_AREAS, SopStatus
from .utils.helpers import join_vault_path, sanitize_segment

logger = logging.getLogger(__name__)

PIN_REFUSED_REASON = "Override refused: PIN not recognised."
INDEX_REFUSED_REASON = "Selected alternate is out of range."


@dataclass(frozen=True)
class Alternate:
    path: str
    reason: str

    def to_dict(self) -> Dict[str, str]:
        return {'path': self.path, 'reason': self.reason}


@dataclass(frozen=True)
class RethinkProposal:
    primary: Alternate
    others: List[Alternate] = field(default_factory=list)

    def alternates(self) -> List[Alternate]:
        """Selectable list as shown to the operator: primary first."""
        return [self.primary] + list(self.others)


@dataclass(frozen=True)
class OverrideResult:
    applied: bool
    reason: str
    path: Optional[str] = None
    pin_owner: Optional[str] = None


class RethinkProposer:
    def __init__(self, resolver: PathResolver, pin_registry: Dict[str, str]):
        self.resolver = resolver
        self._pins = dict(pin_registry)

    def lookup_pin_owner(self, pin) -> Optional[str]:
        if pin is None:
            return None
        return self._pins.get(str(pin).strip())

    def propose_alternates(self, filename: str, brand: Optional[str] = None) -> RethinkProposal:
        """
        Build the ranked alternates for ``filename``.

        Order: general non-loop fallback, Ops Intelligence archive, SOP
        drafts, and (only when a brand is given) the brand-scoped business area.
        """
        resolver = self.resolver
        fn = sanitize_segment(filename)
        if not fn:
            raise MalformedRequestError("filename is required")

        doc_type = classify(filename, Target.RUNTIME_CODEX)
        if doc_type is DocType.LOOP_TASK:
            primary_path = join_vault_path(resolver.system_folder(DocType.OPS_INTEL), fn)
        else:
            primary_path = resolver.compute(Target.RUNTIME_CODEX, filename).primary_path
        primary = Alternate(primary_path, "System re-evaluation (best alternate)")

        others = [
            Alternate(
                join_vault_path(resolver.vault_root, CODEX_ROOT, SYSTEM_AREAS[DocType.ARCHIVE].folder, fn),
                "Ops Intelligence archive",
            ),
            Alternate(
                join_vault_path(resolver.vault_root, CODEX_ROOT, SOP_FOLDERS[SopStatus.DRAFT], fn),
                "SOP drafts under review",
            ),
        ]
        if brand and sanitize_segment(brand):
            business = resolver.compute(Target.OPERATION_HARMONY, filename, brand=brand)
            others.append(Alternate(business.primary_path, f"Brand-scoped business area ({brand})"))

        logger.debug(f"Rethink for {fn!r}: {len(others) + 1} alternates")
        return RethinkProposal(primary, others)

    def apply_override(self, proposal: RethinkProposal, selected_index, pin) -> OverrideResult:
        """
        Apply the operator's chosen alternate if the PIN maps to an owner.

        Malformed and unassigned PINs are refused identically. A missing,
        boolean or non-integer index is refused like an out-of-range one.
        """
        owner = self.lookup_pin_owner(pin)
        if owner is None:
            logger.info("Override refused: unrecognised PIN")
            return OverrideResult(applied=False, reason=PIN_REFUSED_REASON)

        choices = proposal.alternates()
        if (isinstance(selected_index, bool) or not isinstance(selected_index, int)
                or not 0 <= selected_index < len(choices)):
            return OverrideResult(applied=False, reason=INDEX_REFUSED_REASON, pin_owner=owner)

        chosen = choices[selected_index]
        logger.info(f"Override applied by {owner}: {chosen.path}")
        return OverrideResult(
            applied=True,
            reason=f"Override selected by {owner} (PIN), using alternate: {chosen.path}",
            path=chosen.path,
            pin_owner=owner,
        )
