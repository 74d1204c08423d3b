"""ConfigService — every configuration operation as a ServiceResult.

Wraps a :class:`ConfigManager`. Each public method initializes the manager
(idempotent), runs one operation, and maps any :class:`ConfigError` onto a
stable :class:`ErrorCode`. The ``cli``-only operations (defaults, reset,
refresh, effective, metadata) go through the :class:`CliProvider` directly.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from heimdall.config.logging import domain_context
from heimdall.domain.errors import (
    AggregateError,
    ConfigError,
    ConfigIOError,
    ConfigParseError,
    ManagerStateError,
    PathConflictError,
    PathNotFoundError,
    ProviderError,
    SchemaValidationError,
    UnknownDomainError,
)
from heimdall.domain.metadata import ConfigMetadata, FieldMetadata
from heimdall.domain.models import HeimdallConfig
from heimdall.domain.types import PRIMARY_DOMAIN
from heimdall.domain.values import get_path, has_path
from heimdall.infrastructure.manager import ConfigManager
from heimdall.infrastructure.migration import migrate
from heimdall.infrastructure.providers.base import Provider
from heimdall.infrastructure.providers.cli import CliProvider
from heimdall.services.result import ErrorCode, ServiceResult

logger = logging.getLogger(__name__)

# Checked in order; the first matching class wins.
_ERROR_CODES: tuple[tuple[type[ConfigError], ErrorCode], ...] = (
    (UnknownDomainError, ErrorCode.UNKNOWN_DOMAIN),
    (SchemaValidationError, ErrorCode.VALIDATION_FAILED),
    (PathNotFoundError, ErrorCode.PATH_NOT_FOUND),
    (PathConflictError, ErrorCode.PATH_NOT_FOUND),
    (ConfigIOError, ErrorCode.IO_FAILURE),
    (ConfigParseError, ErrorCode.PARSE_FAILURE),
    (AggregateError, ErrorCode.AGGREGATE_FAILURE),
    (ManagerStateError, ErrorCode.INVALID_STATE),
    (ProviderError, ErrorCode.NOT_FOUND),
)


def error_code_for(exc: ConfigError) -> ErrorCode:
    for cls, code in _ERROR_CODES:
        if isinstance(exc, cls):
            return code
    return ErrorCode.INVALID_STATE


def _detail_for(exc: ConfigError) -> dict[str, Any]:
    if isinstance(exc, SchemaValidationError):
        detail: dict[str, Any] = {"errors": exc.errors}
        if exc.path:
            detail["path"] = exc.path
        return detail
    if isinstance(exc, PathNotFoundError | PathConflictError):
        return {"path": exc.path}
    if isinstance(exc, UnknownDomainError):
        return {"domain": exc.domain}
    if isinstance(exc, AggregateError):
        return {"failures": {domain: str(cause) for domain, cause in exc.failures}}
    return {}


def _failure(op: str, exc: ConfigError, *, warnings: list[str] | None = None) -> ServiceResult:
    return ServiceResult.failure(
        op, error_code_for(exc), str(exc), detail=_detail_for(exc), warnings=warnings
    )


def _not_found_everywhere(
    op: str, path: str, warnings: list[str] | None = None
) -> ServiceResult:
    return ServiceResult.failure(
        op,
        ErrorCode.NOT_FOUND,
        f"path '{path}' not found in any configuration",
        detail={"path": path},
        warnings=warnings,
    )


def _field_row(field: FieldMetadata, effective: dict[str, Any]) -> dict[str, Any]:
    row = field.model_dump(exclude={"is_section"})
    row["category"] = field.category
    if has_path(effective, field.path):
        row["value"] = get_path(effective, field.path)
    return row


def _is_modified(path: str, modified: list[str]) -> bool:
    # Map-valued fields (toggles) diverge below their own path.
    return any(p == path or p.startswith(f"{path}.") for p in modified)


class ConfigService:
    """Configuration operations over every registered domain."""

    def __init__(self, manager: ConfigManager) -> None:
        self._manager = manager

    @property
    def manager(self) -> ConfigManager:
        return self._manager

    def _run(self, op: str, fn: Callable[[], ServiceResult]) -> ServiceResult:
        try:
            self._manager.initialize()
            return fn()
        except ConfigError as exc:
            logger.debug("%s failed: %s", op, exc)
            return _failure(op, exc)

    def _cli(self) -> CliProvider:
        provider = self._manager.provider(PRIMARY_DOMAIN)
        if not isinstance(provider, CliProvider):
            msg = f"domain '{PRIMARY_DOMAIN}' is not served by the default-layering store"
            raise ManagerStateError(msg)
        return provider

    def _metadata(self) -> ConfigMetadata:
        return ConfigMetadata(HeimdallConfig, self._cli().defaults())

    # ------------------------------------------------------------------
    # Single-domain operations
    # ------------------------------------------------------------------

    def list_domains(self) -> ServiceResult:
        def run() -> ServiceResult:
            domains = self._manager.list_domains()
            return ServiceResult(
                ok=True,
                op="list_domains",
                data={
                    "domains": domains,
                    "files": {
                        domain: str(self._manager.provider(domain).config_path)
                        for domain in domains
                    },
                },
            )

        return self._run("list_domains", run)

    def get(self, domain: str, path: str) -> ServiceResult:
        def run() -> ServiceResult:
            value = self._manager.get(domain, path)
            return ServiceResult(
                ok=True, op="get", data={"domain": domain, "path": path, "value": value}
            )

        return self._run("get", run)

    def get_all(self, domain: str) -> ServiceResult:
        def run() -> ServiceResult:
            config = self._manager.get_all(domain)
            return ServiceResult(ok=True, op="get_all", data={"domain": domain, "config": config})

        return self._run("get_all", run)

    def set(self, domain: str, path: str, value: Any, *, save: bool = True) -> ServiceResult:
        """Validate and write *value*; persists the domain unless ``save=False``."""

        def run() -> ServiceResult:
            with domain_context(domain):
                self._manager.set(domain, path, value)
                if save:
                    self._manager.save(domain)
            return ServiceResult(
                ok=True,
                op="set",
                data={"domain": domain, "path": path, "value": value, "saved": save},
            )

        return self._run("set", run)

    def validate(self, domain: str) -> ServiceResult:
        """Validate one domain; the cli domain also reports semantic warnings."""

        def run() -> ServiceResult:
            provider = self._manager.provider(domain)
            with domain_context(domain):
                warnings, error = self._check_domain(provider)
            if error is not None:
                return _failure("validate", error, warnings=warnings)
            return ServiceResult(
                ok=True, op="validate", data={"domain": domain, "valid": True}, warnings=warnings
            )

        return self._run("validate", run)

    def save(self, domain: str) -> ServiceResult:
        def run() -> ServiceResult:
            with domain_context(domain):
                self._manager.save(domain)
            path = self._manager.provider(domain).config_path
            return ServiceResult(ok=True, op="save", data={"domain": domain, "path": str(path)})

        return self._run("save", run)

    def load(self, domain: str) -> ServiceResult:
        def run() -> ServiceResult:
            with domain_context(domain):
                self._manager.load(domain)
            return ServiceResult(ok=True, op="load", data={"domain": domain})

        return self._run("load", run)

    def schema(self, domain: str) -> ServiceResult:
        def run() -> ServiceResult:
            self._manager.provider(domain)
            schema = self._manager.get_schema(domain)
            return ServiceResult(
                ok=True,
                op="schema",
                data={"domain": domain, "schema": json.loads(schema.to_json())},
            )

        return self._run("schema", run)

    # ------------------------------------------------------------------
    # Default-layering store (cli domain)
    # ------------------------------------------------------------------

    def defaults(self) -> ServiceResult:
        return self._run(
            "defaults",
            lambda: ServiceResult(ok=True, op="defaults", data={"config": self._cli().defaults()}),
        )

    def effective(self) -> ServiceResult:
        """Effective tree plus which paths differ from defaults and which came from disk."""

        def run() -> ServiceResult:
            cli = self._cli()
            return ServiceResult(
                ok=True,
                op="effective",
                data={
                    "config": cli.effective(),
                    "modified": cli.modified_paths(),
                    "user_keys": sorted(cli.user_set_keys()),
                    "has_user_config": cli.has_user_config(),
                },
            )

        return self._run("effective", run)

    def reset(self) -> ServiceResult:
        def run() -> ServiceResult:
            backup = self._cli().reset(self._manager.get_paths().backup_dir)
            return ServiceResult(
                ok=True,
                op="reset",
                data={"backup": str(backup) if backup else None},
            )

        return self._run("reset", run)

    def refresh(self) -> ServiceResult:
        def run() -> ServiceResult:
            cli = self._cli()
            existed = cli.has_user_config()
            new_fields = cli.refresh(self._manager.get_paths().backup_dir)
            return ServiceResult(
                ok=True,
                op="refresh",
                data={"new_fields": new_fields, "rewritten": existed},
            )

        return self._run("refresh", run)

    def migrate(self, legacy_dir: Path) -> ServiceResult:
        """Import a legacy config into ``config.json`` when one is found."""

        def run() -> ServiceResult:
            result = migrate(self._manager.get_paths(), legacy_dir)
            if result is None:
                return ServiceResult(ok=True, op="migrate", data={"migrated": False})
            self._manager.load(PRIMARY_DOMAIN)
            data = {"migrated": True, **result.model_dump(mode="json")}
            return ServiceResult(ok=True, op="migrate", data=data)

        return self._run("migrate", run)

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def list_fields(
        self,
        *,
        category: str | None = None,
        type_name: str | None = None,
        modified_only: bool = False,
    ) -> ServiceResult:
        def run() -> ServiceResult:
            metadata = self._metadata()
            fields = [f for f in metadata.fields if not f.is_section]
            if category:
                fields = [f for f in fields if f.category == category]
                if not fields:
                    msg = f"no configuration options found for category '{category}'"
                    raise PathNotFoundError(category, msg)
            if type_name:
                fields = [f for f in fields if f.type == type_name]
            cli = self._cli()
            if modified_only:
                modified = cli.modified_paths()
                fields = [f for f in fields if _is_modified(f.path, modified)]
            effective = cli.effective()
            rows = [_field_row(f, effective) for f in fields]
            return ServiceResult(
                ok=True, op="list_fields", data={"fields": rows, "count": len(rows)}
            )

        return self._run("list_fields", run)

    def search(self, query: str) -> ServiceResult:
        def run() -> ServiceResult:
            effective = self._cli().effective()
            rows = [_field_row(f, effective) for f in self._metadata().search(query)]
            return ServiceResult(
                ok=True, op="search", data={"query": query, "fields": rows, "count": len(rows)}
            )

        return self._run("search", run)

    def describe(self, path: str) -> ServiceResult:
        def run() -> ServiceResult:
            cli = self._cli()
            field = self._metadata().get(path)
            if field is None:
                msg = f"no configuration option found at '{path}'"
                raise PathNotFoundError(path, msg)
            row = _field_row(field, cli.effective())
            row["user_set"] = cli.is_user_set(path)
            row["is_section"] = field.is_section
            return ServiceResult(ok=True, op="describe", data=row)

        return self._run("describe", run)

    def docs(self) -> ServiceResult:
        return self._run(
            "docs",
            lambda: ServiceResult(
                ok=True,
                op="docs",
                data={"markdown": self._metadata().generate_documentation()},
            ),
        )

    # ------------------------------------------------------------------
    # Cross-domain operations
    # ------------------------------------------------------------------

    @staticmethod
    def _check_domain(provider: Provider) -> tuple[list[str], SchemaValidationError | None]:
        """Warnings plus the blocking error, if any.

        Only the cli domain has a warning tier; other providers raise from
        ``validate`` directly.
        """
        if not isinstance(provider, CliProvider):
            provider.validate()
            return [], None
        report = provider.check()
        if report.ok:
            return report.warnings, None
        return report.warnings, SchemaValidationError(report.summary(), errors=report.errors)

    def validate_all(self) -> ServiceResult:
        warnings: list[str] = []

        def validate_one(domain: str, provider: Provider) -> None:
            with domain_context(domain):
                found, error = self._check_domain(provider)
            warnings.extend(f"{domain}: {warning}" for warning in found)
            if error is not None:
                raise error

        try:
            self._manager.initialize()
            self._manager.apply_all(validate_one, operation="validation")
        except AggregateError as exc:
            message = f"validation failed for {len(exc.failures)} domain(s)"
            return ServiceResult.failure(
                "validate_all",
                ErrorCode.AGGREGATE_FAILURE,
                message,
                detail=_detail_for(exc),
                warnings=warnings,
            )
        except ConfigError as exc:
            return _failure("validate_all", exc, warnings=warnings)
        return ServiceResult(
            ok=True,
            op="validate_all",
            data={"domains": self._manager.list_domains()},
            warnings=warnings,
        )

    def save_all(self) -> ServiceResult:
        def run() -> ServiceResult:
            self._manager.save_all()
            return ServiceResult(
                ok=True, op="save_all", data={"domains": self._manager.list_domains()}
            )

        return self._run("save_all", run)

    def load_all(self) -> ServiceResult:
        def run() -> ServiceResult:
            self._manager.load_all()
            return ServiceResult(
                ok=True, op="load_all", data={"domains": self._manager.list_domains()}
            )

        return self._run("load_all", run)

    def get_everywhere(self, path: str) -> ServiceResult:
        def run() -> ServiceResult:
            values = self._manager.find_everywhere(path)
            if not values:
                return _not_found_everywhere("get_everywhere", path)
            return ServiceResult(
                ok=True, op="get_everywhere", data={"path": path, "values": values}
            )

        return self._run("get_everywhere", run)

    def set_everywhere(self, path: str, value: Any) -> ServiceResult:
        """Set and save *path* in every domain that already has it.

        Per-domain failures become warnings; the call fails only when no
        domain was updated.
        """

        def run() -> ServiceResult:
            warnings: list[str] = []
            updated: list[str] = []
            for domain in self._manager.find_everywhere(path):
                with domain_context(domain):
                    try:
                        self._manager.set(domain, path, value)
                        self._manager.save(domain)
                    except ConfigError as exc:
                        logger.warning("Failed to set %s.%s: %s", domain, path, exc)
                        warnings.append(f"{domain}: {exc}")
                        continue
                updated.append(domain)
            if not updated:
                return _not_found_everywhere("set_everywhere", path, warnings)
            return ServiceResult(
                ok=True,
                op="set_everywhere",
                data={"path": path, "value": value, "updated": updated},
                warnings=warnings,
            )

        return self._run("set_everywhere", run)
