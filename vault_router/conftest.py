import os
import tempfile

# Keep this conftest small: it only sets the global test environment before
# config_manager is imported. Test-local fixtures (resolver, app, client)
# live in `vault_router/tests/conftest.py`.
os.environ.setdefault(
    'LOG_FILE_PATH',
    os.path.join(tempfile.gettempdir(), f'vault_router_pytest_{os.getpid()}', 'app.log'),
)
