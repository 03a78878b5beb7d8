"""
Routing Service Layer

Glue between the HTTP blueprint and the routing engine. Route handlers
hand over the decoded JSON body; this layer checks required fields, runs
Card validation before path resolution and assembles the caller-facing
``why`` trace.
"""

import logging
from typing import Any, Dict, List, Optional

from ..card_parser import Card
from ..card_validator import validate
from ..config_manager import AppConfig
from ..doc_classifier import Target
from ..exceptions import CardValidationError, MalformedRequestError, OverrideRefusedError
from ..path_rules import PathResolver
from ..rethink import RethinkProposer
from ..vault_structure import AllowedRoots, load_allowed_roots

logger = logging.getLogger(__name__)


def _require_str(payload: Dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value.strip():
        raise MalformedRequestError(f"{key} is required")
    return value


def _optional_str(payload: Dict[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in ('true', '1', 't', 'yes')
    return bool(value)


def card_summary(card: Optional[Card]) -> Optional[Dict[str, Optional[str]]]:
    if card is None:
        return None
    return {
        'kind': card.kind.value,
        'loop': card.loop,
        'taskRef': card.task_ref,
        'filingLocation': card.filing_location,
    }


class RoutingService:
    """Service class for preview, rethink and override operations."""

    def __init__(self, resolver: PathResolver, proposer: RethinkProposer):
        self.resolver = resolver
        self.proposer = proposer

    def preview(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Resolve the governed destination for one upload.

        Raises:
            MalformedRequestError: If filename or target is missing
            CardValidationError: If content is a Card missing required fields
        """
        target = _require_str(payload, 'target')
        filename = _require_str(payload, 'filename')
        brand = _optional_str(payload, 'brand')
        content = payload.get('content') if isinstance(payload.get('content'), str) else None
        prefer_filing = _as_bool(payload.get('preferFiling'), True)

        explains: List[str] = []
        card = None
        if content and content.strip():
            validation = validate(content)
            explains = list(validation.explains)
            if not validation.ok:
                raise CardValidationError(validation)
            card = validation.card

        result = self.resolver.resolve(
            target, filename, brand=brand,
            loop_name=_optional_str(payload, 'loopName'),
            sop_status=_optional_str(payload, 'sopStatus'),
            card=card, prefer_filing=prefer_filing,
        )

        why = explains + [f"Detected type: {result.detected.doc_type.value}"]
        if Target.parse(target) is Target.OPERATION_HARMONY and not brand:
            why.append("Brand missing, please choose a brand.")
        why.extend(result.warnings)

        response = result.to_dict()
        response['why'] = why
        response['card'] = card_summary(card)
        logger.info(f"Preview {filename!r} ({target}) -> {result.primary_path}")
        return response

    def rethink(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        filename = _require_str(payload, 'filename')
        proposal = self.proposer.propose_alternates(filename, _optional_str(payload, 'brand'))
        return {
            'primary': {'primaryPath': proposal.primary.path, 'reason': proposal.primary.reason},
            'others': [alt.to_dict() for alt in proposal.others],
            'override': {'pinOwner': self.proposer.lookup_pin_owner(payload.get('pin'))},
        }

    def override(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply a PIN-gated override to one of the rethink alternates.

        Raises:
            OverrideRefusedError: If the PIN is not recognised or the index is invalid
        """
        filename = _require_str(payload, 'filename')
        proposal = self.proposer.propose_alternates(filename, _optional_str(payload, 'brand'))
        # passed through as-is; apply_override refuses anything but a plain int
        outcome = self.proposer.apply_override(proposal, payload.get('selectedIndex'), payload.get('pin'))
        if not outcome.applied:
            raise OverrideRefusedError(outcome.reason)
        return {'path': outcome.path, 'pinOwner': outcome.pin_owner, 'why': [outcome.reason]}


def build_routing_service(config: AppConfig, allowed_roots: Optional[AllowedRoots] = None) -> RoutingService:
    """Wire resolver and proposer from configuration (allowed roots loaded once per process)."""
    if allowed_roots is None:
        allowed_roots = load_allowed_roots(config.STRUCTURE_FILE_PATH, config.VAULT_ROOT)
    resolver = PathResolver(
        allowed_roots,
        vault_root=config.VAULT_ROOT,
        default_loop=config.DEFAULT_LOOP,
        unspecified_brand=config.UNSPECIFIED_BRAND,
    )
    return RoutingService(resolver, RethinkProposer(resolver, config.OVERRIDE_PINS))
