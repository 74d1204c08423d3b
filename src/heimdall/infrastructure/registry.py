"""Thread-safe domain -> schema map.

INVARIANT: No I/O happens while the lock is held.
"""

from __future__ import annotations

import logging

from readerwriterlock import rwlock

from heimdall.domain.errors import ProviderError
from heimdall.domain.schema import Schema

logger = logging.getLogger(__name__)


class SchemaRegistry:
    """Holds at most one schema per domain; re-registration replaces it."""

    def __init__(self) -> None:
        self._schemas: dict[str, Schema] = {}
        self._lock = rwlock.RWLockFair()

    def register(self, domain: str, schema: Schema | None) -> None:
        if schema is None:
            msg = "cannot register nil schema"
            raise ProviderError(msg)
        with self._lock.gen_wlock():
            replaced = domain in self._schemas
            self._schemas[domain] = schema
        logger.debug("Registered schema for %s (replaced=%s)", domain, replaced)

    def get_schema(self, domain: str) -> Schema | None:
        """Schema for *domain*, or None; callers must check."""
        with self._lock.gen_rlock():
            return self._schemas.get(domain)

    def has_schema(self, domain: str) -> bool:
        with self._lock.gen_rlock():
            return domain in self._schemas

    def remove(self, domain: str) -> None:
        with self._lock.gen_wlock():
            self._schemas.pop(domain, None)

    def list_domains(self) -> list[str]:
        with self._lock.gen_rlock():
            return sorted(self._schemas)

    def clear(self) -> None:
        with self._lock.gen_wlock():
            self._schemas.clear()
