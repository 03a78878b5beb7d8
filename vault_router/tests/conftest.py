import sys
from pathlib import Path

import pytest

# Ensure project root is on path
ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from vault_router.config_manager import AppConfig
from vault_router.path_rules import PathResolver
from vault_router.rethink import RethinkProposer
from vault_router.vault_structure import AllowedRoots

from .samples import FIXED_DAY, TEST_PINS, VAULT_PREFIXES


@pytest.fixture()
def allowed_roots():
    return AllowedRoots.from_prefixes('Command Vault', VAULT_PREFIXES)


@pytest.fixture()
def resolver(allowed_roots):
    """Resolver pinned to a fixed calendar day."""
    return PathResolver(allowed_roots, clock=lambda: FIXED_DAY)


@pytest.fixture()
def proposer(resolver):
    return RethinkProposer(resolver, TEST_PINS)


@pytest.fixture()
def test_config(tmp_path):
    return AppConfig(
        LOG_FILE_PATH=str(tmp_path / 'logs' / 'app.log'),
        OVERRIDE_PINS=dict(TEST_PINS),
    )


@pytest.fixture()
def app(test_config, allowed_roots):
    from vault_router.app import create_app  # imported late
    application = create_app(test_config, allowed_roots)
    application.config['TESTING'] = True
    yield application


@pytest.fixture()
def client(app):
    """Flask test client fixture."""
    return app.test_client()
