"""
Vault structure gate: the governed set of allowed path roots.

Allowed roots are read once from the structure document and cached for the
lifetime of the process (a change to the document needs a restart). Every
resolved path is passed through ``clamp`` so it always lands inside
governed territory.
"""
from __future__ import annotations

import re
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, Tuple

from .exceptions import ConfigurationError
from .utils.helpers import split_vault_path

logger = logging.getLogger(__name__)

# "- `Command Vault/CODEX/`" -> "Command Vault/CODEX/"
_LIST_MARKER_RE = re.compile(r'^\s*(?:[-*+]|\d+\.)?\s*')


@dataclass(frozen=True)
class AllowedRoots:
    """Immutable, ordered set of allowed path prefixes (each ending in ``/``)."""
    vault_root: str
    prefixes: Tuple[str, ...]

    @property
    def master_root(self) -> str:
        return f"{self.vault_root}/"

    def contains(self, path: str) -> bool:
        normalized = (path or '').replace('\\', '/')
        return any(normalized.startswith(p) for p in self.prefixes)

    def __iter__(self):
        return iter(self.prefixes)

    def __len__(self) -> int:
        return len(self.prefixes)

    @classmethod
    def from_prefixes(cls, vault_root: str, prefixes: Iterable[str]) -> 'AllowedRoots':
        seen = []
        for prefix in prefixes:
            prefix = prefix.replace('\\', '/')
            if not prefix.endswith('/'):
                prefix += '/'
            if prefix not in seen:
                seen.append(prefix)
        return cls(vault_root=vault_root.rstrip('/'), prefixes=tuple(seen))


def parse_structure_document(text: str, vault_root: str) -> AllowedRoots:
    """
    Collect allowed roots from a structure document.

    Any line that, after stripping list markers and backticks, starts with
    ``<vault_root>/`` and ends with ``/`` is an allowed root.
    """
    marker = vault_root.rstrip('/') + '/'
    candidates = []
    for line in text.splitlines():
        entry = _LIST_MARKER_RE.sub('', line).strip().strip('`').strip()
        if entry.startswith(marker) and entry.endswith('/') and entry != marker:
            candidates.append(entry)
    roots = AllowedRoots.from_prefixes(vault_root, candidates)
    if not roots.prefixes:
        raise ConfigurationError("Structure document defines no allowed roots", details=marker)
    return roots


@lru_cache(maxsize=None)
def load_allowed_roots(structure_path: str, vault_root: str) -> AllowedRoots:
    """Read and cache the allowed roots for ``structure_path`` (process-wide, no invalidation)."""
    try:
        with open(structure_path, 'r', encoding='utf-8') as f:
            text = f.read()
    except OSError as e:
        raise ConfigurationError(f"Cannot read structure document {structure_path}", details=str(e))
    roots = parse_structure_document(text, vault_root)
    logger.info(f"Loaded {len(roots)} allowed Vault roots from {structure_path}")
    return roots


def clamp(proposed: str, allowed: AllowedRoots) -> str:
    """
    Snap ``proposed`` to the nearest allowed ancestor.

    Returns the path unchanged when it already sits under an allowed root;
    otherwise the longest ancestor (with trailing ``/``) that does, falling
    back to the master Vault root.
    """
    cleaned = (proposed or '').replace('\\', '/')
    if allowed.contains(cleaned):
        return cleaned

    parts = split_vault_path(cleaned)
    while parts:
        candidate = '/'.join(parts) + '/'
        if allowed.contains(candidate):
            return candidate
        parts.pop()
    return allowed.master_root
