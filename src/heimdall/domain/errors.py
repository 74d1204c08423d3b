"""Exception taxonomy for the configuration core.

Every failure raised by the domain and infrastructure layers derives from
:class:`ConfigError`. The service layer maps each class onto a stable
error code (see :mod:`heimdall.services.result`).
"""

from __future__ import annotations


class ConfigError(Exception):
    """Base class for all configuration errors."""


class UnknownDomainError(ConfigError):
    """The requested domain has no registered provider."""

    def __init__(self, domain: str) -> None:
        self.domain = domain
        super().__init__(f"unknown configuration domain: {domain}")


class SchemaValidationError(ConfigError):
    """A value or tree violates a schema or a semantic rule.

    Attributes:
        path: Dot-path of the offending value, when known.
        errors: Individual messages when several violations were aggregated.
    """

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        errors: list[str] | None = None,
    ) -> None:
        self.path = path
        self.errors = list(errors) if errors else [message]
        super().__init__(message)


class PathNotFoundError(ConfigError):
    """A dot-path resolves to nothing in a value tree or schema."""

    def __init__(self, path: str, message: str | None = None, *, resolved: str = "") -> None:
        self.path = path
        self.resolved = resolved
        super().__init__(message or f"path not found: {path}")


class PathConflictError(ConfigError):
    """A write would replace a non-object intermediate node."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"'{path}' is not an object")


class ConfigIOError(ConfigError):
    """Reading or writing an on-disk artifact failed."""


class ConfigParseError(ConfigError):
    """An on-disk document is malformed."""


class ManagerStateError(ConfigError):
    """An operation is not allowed in the manager's current state."""


class ProviderError(ConfigError):
    """A provider could not be registered or has no schema."""


class AggregateError(ConfigError):
    """One or more domains failed a fan-out operation.

    ``failures`` keeps the ``(domain, cause)`` pairs in attempt order.
    """

    def __init__(self, operation: str, failures: list[tuple[str, Exception]]) -> None:
        self.operation = operation
        self.failures = list(failures)
        joined = "; ".join(f"{domain}: {cause}" for domain, cause in self.failures)
        super().__init__(f"{operation} failed: {joined}")

    @property
    def domains(self) -> list[str]:
        """Names of the failing domains, in attempt order."""
        return [domain for domain, _ in self.failures]
