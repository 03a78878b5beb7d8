import pytest

from vault_router.config_manager import DEFAULT_STRUCTURE_FILE
from vault_router.exceptions import ConfigurationError
from vault_router.vault_structure import (
    AllowedRoots,
    clamp,
    load_allowed_roots,
    parse_structure_document,
)

from .samples import VAULT_PREFIXES


def test_packaged_structure_document_lists_governed_roots():
    roots = load_allowed_roots(DEFAULT_STRUCTURE_FILE, 'Command Vault')
    assert list(roots) == VAULT_PREFIXES
    assert roots.master_root == 'Command Vault/'


def test_roots_are_cached_per_document(tmp_path):
    doc = tmp_path / 'structure.md'
    doc.write_text("- `Command Vault/CODEX/`\n", encoding='utf-8')
    first = load_allowed_roots(str(doc), 'Command Vault')
    doc.write_text("- `Command Vault/Other/`\n", encoding='utf-8')
    second = load_allowed_roots(str(doc), 'Command Vault')
    # loaded once per process; edits need a restart
    assert first is second
    assert list(second) == ['Command Vault/CODEX/']


def test_missing_structure_document(tmp_path):
    with pytest.raises(ConfigurationError):
        load_allowed_roots(str(tmp_path / 'missing.md'), 'Command Vault')


def test_structure_document_without_roots():
    with pytest.raises(ConfigurationError):
        parse_structure_document("# Nothing here\n- Command Vault/\n", 'Command Vault')


def test_parse_ignores_nested_entries_and_duplicates():
    text = (
        "* Command Vault/CODEX/\n"
        "  - Loops/<Loop>/Active Tasks\n"
        "1. `Command Vault/CODEX/`\n"
        "Command Vault/Operation Harmony/\n"
        "Command Vault/no-trailing-slash\n"
    )
    roots = parse_structure_document(text, 'Command Vault')
    assert roots.prefixes == ('Command Vault/CODEX/', 'Command Vault/Operation Harmony/')


def test_from_prefixes_normalizes_separators():
    roots = AllowedRoots.from_prefixes('Command Vault/', ['Command Vault\\CODEX', 'Command Vault/CODEX/'])
    assert roots.prefixes == ('Command Vault/CODEX/',)
    assert roots.vault_root == 'Command Vault'


def test_clamp_keeps_paths_inside_allowed_roots(allowed_roots):
    path = 'Command Vault/CODEX/Ops Intelligence/Training & Guides/notes.md'
    assert clamp(path, allowed_roots) == path


def test_clamp_normalizes_backslashes(allowed_roots):
    assert clamp('Command Vault\\CODEX\\x.md', allowed_roots) == 'Command Vault/CODEX/x.md'


def test_clamp_walks_up_to_allowed_ancestor(allowed_roots):
    assert clamp('Command Vault/CODEX', allowed_roots) == 'Command Vault/CODEX/'
    assert clamp('Command Vault//CODEX/Loops', allowed_roots) == 'Command Vault/CODEX/Loops/'


def test_clamp_falls_back_to_master_root(allowed_roots):
    assert clamp('Command Vault/Bogus/file.md', allowed_roots) == 'Command Vault/'
    assert clamp('Other/Place/file.md', allowed_roots) == 'Command Vault/'
    assert clamp('', allowed_roots) == 'Command Vault/'


@pytest.mark.parametrize("path", [
    'Command Vault/CODEX/Loops/Genesis_01/Archive/report.md',
    'Command Vault/CODEX',
    'Command Vault/Bogus/deeper/file.md',
    'Other/Place',
    'Command Vault/',
    '',
])
def test_clamp_is_idempotent(allowed_roots, path):
    once = clamp(path, allowed_roots)
    assert clamp(once, allowed_roots) == once
