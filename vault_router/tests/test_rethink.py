import pytest

from vault_router.exceptions import MalformedRequestError
from vault_router.path_rules import PathResolver
from vault_router.rethink import (
    INDEX_REFUSED_REASON,
    PIN_REFUSED_REASON,
    RethinkProposer,
)
from vault_router.vault_structure import AllowedRoots

from .samples import FIXED_DAY


def test_alternates_without_brand(proposer):
    proposal = proposer.propose_alternates('how-to-rotate-keys.md')
    assert proposal.primary.path == 'Command Vault/CODEX/Ops Intelligence/Training & Guides/how-to-rotate-keys.md'
    assert proposal.primary.reason == "System re-evaluation (best alternate)"
    assert [alt.to_dict() for alt in proposal.others] == [
        {'path': 'Command Vault/CODEX/Ops Intelligence/Archive/how-to-rotate-keys.md',
         'reason': 'Ops Intelligence archive'},
        {'path': 'Command Vault/CODEX/Standards & SOPs/Drafts Under Review/how-to-rotate-keys.md',
         'reason': 'SOP drafts under review'},
    ]


def test_brand_adds_business_alternate(proposer):
    proposal = proposer.propose_alternates('spring-campaign-brief.docx', brand='Acme')
    assert len(proposal.others) == 3
    last = proposal.others[-1]
    assert last.path == 'Command Vault/Operation Harmony/Acme/Marketing & Branding/Assets/spring-campaign-brief.docx'
    assert last.reason == "Brand-scoped business area (Acme)"


def test_blank_brand_is_ignored(proposer):
    assert len(proposer.propose_alternates('notes.md', brand='  ').others) == 2


def test_primary_never_targets_a_loop(proposer):
    proposal = proposer.propose_alternates('genesis_02-task-notes.md')
    assert '/Loops/' not in proposal.primary.path
    assert proposal.primary.path == (
        'Command Vault/CODEX/Ops Intelligence/Training & Guides/genesis_02-task-notes.md'
    )


def test_primary_keeps_date_bucket(proposer):
    proposal = proposer.propose_alternates('nightly_health_check.txt')
    assert proposal.primary.path == (
        'Command Vault/CODEX/System Health/Automation Logs/2024-03-15/nightly_health_check.txt'
    )


def test_alternates_are_not_clamped():
    roots = AllowedRoots.from_prefixes('Command Vault', ['Command Vault/UNROUTED/'])
    narrow = PathResolver(roots, clock=lambda: FIXED_DAY)
    proposal = RethinkProposer(narrow, {}).propose_alternates('campaign.png', brand='Acme')
    assert proposal.others[-1].path.startswith('Command Vault/Operation Harmony/Acme/')
    assert proposal.primary.path.startswith('Command Vault/CODEX/')


def test_rethink_requires_filename(proposer):
    with pytest.raises(MalformedRequestError):
        proposer.propose_alternates('')


def test_override_with_known_pin(proposer):
    proposal = proposer.propose_alternates('notes.md')
    outcome = proposer.apply_override(proposal, 1, '1066')
    assert outcome.applied
    assert outcome.pin_owner == 'Vault Owner'
    assert outcome.path == 'Command Vault/CODEX/Ops Intelligence/Archive/notes.md'
    assert outcome.reason == (
        "Override selected by Vault Owner (PIN), using alternate: "
        "Command Vault/CODEX/Ops Intelligence/Archive/notes.md"
    )


def test_override_index_zero_is_primary(proposer):
    proposal = proposer.propose_alternates('notes.md')
    outcome = proposer.apply_override(proposal, 0, 4791)
    assert outcome.path == proposal.primary.path
    assert outcome.pin_owner == 'Operations Lead'


@pytest.mark.parametrize("pin", ['0000', 'abcd', '', None, '10 66'])
def test_unknown_and_malformed_pins_are_refused_alike(proposer, pin):
    proposal = proposer.propose_alternates('notes.md')
    outcome = proposer.apply_override(proposal, 0, pin)
    assert not outcome.applied
    assert outcome.reason == PIN_REFUSED_REASON
    assert outcome.path is None
    assert outcome.pin_owner is None


@pytest.mark.parametrize("index", [-1, 3, 99])
def test_out_of_range_index(proposer, index):
    proposal = proposer.propose_alternates('notes.md')
    outcome = proposer.apply_override(proposal, index, '1066')
    assert not outcome.applied
    assert outcome.reason == INDEX_REFUSED_REASON


def test_pin_is_checked_before_index(proposer):
    proposal = proposer.propose_alternates('notes.md')
    assert proposer.apply_override(proposal, 99, 'nope').reason == PIN_REFUSED_REASON


def test_pin_lookup_strips_whitespace(proposer):
    assert proposer.lookup_pin_owner(' 1066 ') == 'Vault Owner'
    assert proposer.lookup_pin_owner(None) is None


@pytest.mark.parametrize("index", [True, False, 1.0, '1', None])
def test_non_integer_index_is_refused(proposer, index):
    proposal = proposer.propose_alternates('notes.md')
    outcome = proposer.apply_override(proposal, index, '1066')
    assert not outcome.applied
    assert outcome.reason == INDEX_REFUSED_REASON
