"""
Utility functions shared by the routing engine and the Flask layer.

Path helpers keep every Vault path a plain ``/``-joined string of sanitized
segments, independent of the host OS separator.
"""

import re
import logging
from typing import List, Dict, Any, Optional

_PARENT_REF_RE = re.compile(r'\.\.')


def sanitize_segment(name: str) -> str:
    """
    Make a single path segment safe to embed in a Vault path.

    Separators and parent-directory references become underscores so a
    filename, brand or loop name can never introduce extra segments.

    Args:
        name: Raw filename, brand or loop identifier

    Returns:
        Sanitized segment (may be empty if the input was blank)
    """
    cleaned = re.sub(r'[/\\]', '_', name or '')
    cleaned = _PARENT_REF_RE.sub('_', cleaned)
    return cleaned.strip()


def split_vault_path(path: str) -> List[str]:
    """Split a Vault path into non-empty segments, accepting either separator."""
    return [part for part in (path or '').replace('\\', '/').split('/') if part.strip()]


def join_vault_path(*parts: str) -> str:
    """Join path fragments with ``/``, dropping empty fragments and duplicate separators."""
    segments: List[str] = []
    for part in parts:
        segments.extend(split_vault_path(part))
    return '/'.join(segments)


def sanitize_vault_path(path: str) -> str:
    """Sanitize every segment of a multi-segment path (e.g. a Card filing location)."""
    return '/'.join(s for s in (sanitize_segment(p) for p in split_vault_path(path)) if s)


def log_route_access(route_name: str, extra_data: Optional[Dict[str, Any]] = None):
    """
    Log route access for debugging.

    Args:
        route_name: Name of the route being accessed
        extra_data: Optional additional data to log
    """
    log_data = {'route': route_name}
    if extra_data:
        log_data.update(extra_data)
    logging.getLogger(__name__).info(f"Route access: {log_data}")


def create_error_response(error_message: str, status_code: int = 500) -> Dict[str, Any]:
    """
    Create standardized error response format.

    Args:
        error_message: Error message to return
        status_code: HTTP status code

    Returns:
        Dictionary with error response data
    """
    return {
        'error': error_message,
        'success': False,
        'status_code': status_code
    }
