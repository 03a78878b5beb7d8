"""
Flask Vault Router Application

Thin HTTP shell around the routing engine. The engine itself (card parsing
and validation, filename classification, path rules, structure gate,
rethink proposals) has no Flask dependency; this module wires it up.

Architecture:
- routes/: Blueprint modules (JSON API)
- services/: request orchestration on top of the engine
- utils/: shared helpers
"""

from flask import Flask, jsonify
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from .config_manager import AppConfig, app_config
from .exceptions import ConfigurationError
from .routes import api
from .services.routing_service import build_routing_service
from .utils.helpers import create_error_response
from .vault_structure import AllowedRoots

# Global flag to prevent duplicate logging setup
_logging_configured = False


def setup_logging(config: AppConfig = app_config):
    """Configure logging with rotation based on app config."""
    global _logging_configured

    if _logging_configured:
        return logging.getLogger(__name__)

    log_file_path = config.LOG_FILE_PATH
    if not os.path.isabs(log_file_path):
        # Make relative paths relative to this file's directory
        log_file_path = os.path.join(os.path.dirname(__file__), log_file_path)

    log_dir = os.path.dirname(log_file_path)
    os.makedirs(log_dir, exist_ok=True)

    formatter = logging.Formatter('%(asctime)s [%(levelname)s] %(name)s: %(message)s')

    file_handler = RotatingFileHandler(
        log_file_path,
        maxBytes=config.LOG_MAX_BYTES,
        backupCount=config.LOG_BACKUP_COUNT
    )
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    log_level = getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)
    root_logger.setLevel(log_level)

    # Clear any existing handlers to prevent duplicates
    root_logger.handlers.clear()
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    # Let root logger handle werkzeug output
    werkzeug_logger = logging.getLogger('werkzeug')
    werkzeug_logger.propagate = True
    werkzeug_logger.setLevel(log_level)

    _logging_configured = True
    return logging.getLogger(__name__)


logger = logging.getLogger(__name__)


def create_app(config: Optional[AppConfig] = None, allowed_roots: Optional[AllowedRoots] = None):
    """
    Application factory pattern for creating Flask app.

    Args:
        config: Configuration to use (defaults to the environment-derived app_config)
        allowed_roots: Pre-built allowed roots (defaults to the structure document)

    Returns:
        Flask: Configured Flask application instance
    """
    config = config or app_config
    setup_logging(config)

    app = Flask(__name__)
    app.config['MAX_CONTENT_LENGTH'] = config.MAX_CONTENT_LENGTH

    try:
        app.routing_service = build_routing_service(config, allowed_roots)
    except ConfigurationError as e:
        logger.critical(f"Cannot start routing engine: {e.message} ({e.details})")
        raise

    register_error_handlers(app)
    app.register_blueprint(api.bp)
    register_core_routes(app)

    logger.info("Flask application created and configured successfully")
    return app


def register_core_routes(app):
    @app.route("/health")
    def health():
        roots = app.routing_service.resolver.allowed_roots
        return jsonify({'status': 'ok', 'allowedRoots': len(roots)})


def register_error_handlers(app):
    @app.errorhandler(404)
    def not_found(error):
        return jsonify(create_error_response("Not found", 404)), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify(create_error_response("Method not allowed", 405)), 405

    @app.errorhandler(413)
    def too_large(error):
        return jsonify(create_error_response("Upload too large", 413)), 413
