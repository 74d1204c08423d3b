"""Tests for ConfigManager — registration, routing, and fan-out operations."""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any

import pytest

from heimdall.config.settings import HeimdallSettings
from heimdall.domain.errors import (
    AggregateError,
    ConfigParseError,
    ManagerStateError,
    PathNotFoundError,
    ProviderError,
    SchemaValidationError,
    UnknownDomainError,
)
from heimdall.domain.schema import Schema
from heimdall.domain.types import ConfigPaths, XdgDirs
from heimdall.infrastructure.manager import ConfigManager
from heimdall.infrastructure.providers.base import JsonFileProvider
from heimdall.plugins import PluginManager, hookimpl
from tests.conftest import read_json, write_json

THEME_SCHEMA = Schema.from_document(
    {
        "type": "object",
        "properties": {
            "theme": {"type": "string", "enum": ["dark", "light"], "default": "dark"},
            "size": {"type": "integer", "minimum": 1, "default": 10},
        },
    }
)


class _RecordingProvider(JsonFileProvider):
    """JSON provider that records saves and can be told to fail them."""

    def __init__(self, domain: str, path: Path, *, fail: bool = False) -> None:
        super().__init__(domain, path, THEME_SCHEMA)
        self.fail = fail
        self.saved = False

    def save(self) -> None:
        if self.fail:
            msg = f"disk full while saving {self.domain}"
            raise OSError(msg)
        super().save()
        self.saved = True


class _NoSchemaProvider(JsonFileProvider):
    def get_schema(self) -> Any:
        return None


@pytest.fixture
def bare(config_paths: ConfigPaths, xdg_dirs: XdgDirs) -> ConfigManager:
    """Uninitialized manager for registering hand-made providers."""
    return ConfigManager(config_paths, dirs=xdg_dirs)


class TestInitialize:
    def test_registers_builtin_domains(self, manager: ConfigManager) -> None:
        assert manager.initialized
        assert manager.list_domains() == ["cli", "shell"]

    def test_is_idempotent(self, manager: ConfigManager) -> None:
        manager.initialize()
        assert manager.list_domains() == ["cli", "shell"]

    def test_concurrent_initialize_registers_once(
        self, bare: ConfigManager, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        registered: list[str] = []
        register = bare.register_provider

        def counting(domain: str, provider: Any) -> None:
            registered.append(domain)
            register(domain, provider)

        monkeypatch.setattr(bare, "register_provider", counting)
        start = threading.Barrier(8)

        def run() -> None:
            start.wait()
            bare.initialize()

        threads = [threading.Thread(target=run) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert sorted(registered) == ["cli", "shell"]
        assert bare.initialized

    def test_creates_directories_and_caches_schemas(
        self, manager: ConfigManager, config_paths: ConfigPaths
    ) -> None:
        assert config_paths.backup_dir.is_dir()
        cached = json.loads(config_paths.schema_file("cli").read_text())
        assert cached["title"] == "Heimdall CLI Configuration"
        assert config_paths.schema_file("shell").is_file()

    def test_writes_no_config_files(
        self, manager: ConfigManager, config_paths: ConfigPaths
    ) -> None:
        assert not config_paths.domain_file("cli").exists()
        assert not config_paths.domain_file("shell").exists()

    def test_minimal_user_file(self, config_paths: ConfigPaths, xdg_dirs: XdgDirs) -> None:
        write_json(config_paths.domain_file("cli"), {"scheme": {"default": "gruvbox-dark"}})
        manager = ConfigManager(config_paths, dirs=xdg_dirs)
        manager.initialize()
        assert manager.get("cli", "scheme.default") == "gruvbox-dark"
        assert manager.get("cli", "version") == "0.2.0"

    def test_default_layout_under_xdg_config(self, xdg_dirs: XdgDirs) -> None:
        manager = ConfigManager(dirs=xdg_dirs)
        assert manager.get_paths().base_dir == xdg_dirs.config_home / "heimdall"


class TestPaths:
    def test_set_paths_before_initialize(self, bare: ConfigManager, tmp_path: Path) -> None:
        new = ConfigPaths.under(tmp_path / "elsewhere")
        bare.set_paths(new)
        assert bare.get_paths() == new

    def test_set_paths_after_initialize(self, manager: ConfigManager, tmp_path: Path) -> None:
        with pytest.raises(ManagerStateError, match="cannot change paths after initialization"):
            manager.set_paths(ConfigPaths.under(tmp_path / "elsewhere"))

    def test_load_paths_from_config(self, bare: ConfigManager, tmp_path: Path) -> None:
        bootstrap = write_json(
            tmp_path / "bootstrap.json",
            {
                "config_paths": {
                    "base_dir": str(tmp_path / "b"),
                    "file_pattern": "%s.conf.json",
                    "schema_dir": str(tmp_path / "s"),
                    "backup_dir": str(tmp_path / "k"),
                }
            },
        )
        bare.load_paths_from_config(bootstrap)
        paths = bare.get_paths()
        assert paths.schema_dir == tmp_path / "s"
        assert paths.domain_file("shell") == tmp_path / "b" / "shell.conf.json"
        assert paths.domain_file("cli") == tmp_path / "b" / "config.json"

    def test_bootstrap_without_paths_is_ignored(
        self, bare: ConfigManager, config_paths: ConfigPaths, tmp_path: Path
    ) -> None:
        bare.load_paths_from_config(write_json(tmp_path / "bootstrap.json", {"other": 1}))
        assert bare.get_paths() == config_paths

    def test_invalid_paths_object(self, bare: ConfigManager, tmp_path: Path) -> None:
        bootstrap = write_json(tmp_path / "bootstrap.json", {"config_paths": {"base_dir": "x"}})
        with pytest.raises(ConfigParseError, match="failed to parse config_paths"):
            bare.load_paths_from_config(bootstrap)

    def test_from_settings(self, tmp_path: Path) -> None:
        settings = HeimdallSettings(config_dir=tmp_path / "cfg", scheme_paths="/x")
        manager = ConfigManager.from_settings(settings)
        assert manager.get_paths().backup_dir == tmp_path / "cfg" / "backups"
        manager.initialize()
        assert manager.get("cli", "scheme.user_paths") == ["/x"]


class TestRegistration:
    def test_register_custom_domain(self, bare: ConfigManager, tmp_path: Path) -> None:
        provider = JsonFileProvider("widget", tmp_path / "w.json", THEME_SCHEMA)
        bare.register_provider("widget", provider)
        assert bare.list_domains() == ["widget"]
        assert bare.get_schema("widget") is THEME_SCHEMA

    def test_reregistration_replaces_without_duplicates(
        self, bare: ConfigManager, tmp_path: Path
    ) -> None:
        first = JsonFileProvider("widget", tmp_path / "a.json", THEME_SCHEMA)
        second = JsonFileProvider("widget", tmp_path / "b.json", THEME_SCHEMA)
        bare.register_provider("widget", first)
        bare.register_provider("widget", second)
        assert bare.list_domains() == ["widget"]
        assert bare.provider("widget") is second

    def test_nil_schema_aborts_registration(self, bare: ConfigManager, tmp_path: Path) -> None:
        with pytest.raises(ProviderError, match="cannot register nil schema"):
            bare.register_provider("broken", _NoSchemaProvider("broken", tmp_path / "x.json"))
        assert bare.list_domains() == []

    def test_missing_schema_lookup(self, bare: ConfigManager) -> None:
        with pytest.raises(ProviderError, match="no schema found for domain: ghost"):
            bare.get_schema("ghost")


class TestSingleDomain:
    def test_set_then_get(self, manager: ConfigManager) -> None:
        manager.set("cli", "theme.enableGtk", False)
        assert manager.get("cli", "theme.enableGtk") is False

    def test_enum_violation(self, bare: ConfigManager, tmp_path: Path) -> None:
        bare.register_provider("cli", JsonFileProvider("cli", tmp_path / "c.json", THEME_SCHEMA))
        with pytest.raises(SchemaValidationError, match="must be one of") as exc:
            bare.set("cli", "theme", "blue")
        assert str(exc.value).startswith("validation failed: ")
        assert bare.get("cli", "theme") == "dark"

    @pytest.mark.parametrize(
        ("path", "value"),
        [
            ("screenshot.file_format", "bmp"),
            ("wallpaper.threshold", "high"),
            ("clipboard.max_entries", -5),
            ("shell.daemon_port", 70000),
            ("wallpaper.threshold", float("nan")),
        ],
    )
    def test_rejected_value_leaves_prior_value(
        self, manager: ConfigManager, path: str, value: Any
    ) -> None:
        before = manager.get("cli", path)
        with pytest.raises(SchemaValidationError):
            manager.set("cli", path, value)
        assert manager.get("cli", path) == before

    def test_nan_never_reaches_disk(
        self, manager: ConfigManager, config_paths: ConfigPaths
    ) -> None:
        with pytest.raises(SchemaValidationError, match="must be finite"):
            manager.set("cli", "wallpaper.threshold", float("nan"))
        manager.save("cli")
        assert "NaN" not in config_paths.domain_file("cli").read_text(encoding="utf-8")

    def test_set_unknown_schema_path(self, manager: ConfigManager) -> None:
        with pytest.raises(SchemaValidationError, match="validation failed: property 'nope'"):
            manager.set("cli", "nope.deeper", 1)

    def test_get_missing_path(self, manager: ConfigManager) -> None:
        with pytest.raises(PathNotFoundError, match="path not found: nonexistent.path"):
            manager.get("cli", "nonexistent.path")

    @pytest.mark.parametrize("operation", ["validate", "save", "load", "get_all"])
    def test_unknown_domain(self, manager: ConfigManager, operation: str) -> None:
        with pytest.raises(UnknownDomainError, match="unknown configuration domain: unknown"):
            getattr(manager, operation)("unknown")

    def test_set_all_validates_whole_tree(self, manager: ConfigManager) -> None:
        tree = manager.get_all("shell")
        tree["bar"]["position"] = "left"
        with pytest.raises(SchemaValidationError, match="validation failed: "):
            manager.set_all("shell", tree)
        assert manager.get("shell", "bar.position") == "top"

    def test_save_persists_domain(self, manager: ConfigManager, config_paths: ConfigPaths) -> None:
        manager.set("shell", "bar.height", 42)
        manager.save("shell")
        assert read_json(config_paths.domain_file("shell"))["bar"]["height"] == 42


class TestFanOut:
    def test_save_all_reports_only_failing_domain(
        self, bare: ConfigManager, tmp_path: Path
    ) -> None:
        broken = _RecordingProvider("broken", tmp_path / "broken.json", fail=True)
        good = _RecordingProvider("good", tmp_path / "good.json")
        bare.register_provider("broken", broken)
        bare.register_provider("good", good)

        with pytest.raises(AggregateError) as exc:
            bare.save_all()

        assert exc.value.domains == ["broken"]
        assert "broken" in str(exc.value)
        assert "good" not in str(exc.value)
        assert str(exc.value).startswith("save failed: ")
        assert good.saved
        assert (tmp_path / "good.json").is_file()

    def test_apply_all_collects_every_failure(self, manager: ConfigManager) -> None:
        def explode(domain: str, provider: object) -> None:
            raise ValueError(f"boom in {domain}")

        with pytest.raises(AggregateError) as exc:
            manager.apply_all(explode, operation="probe")
        assert exc.value.domains == ["cli", "shell"]
        assert str(exc.value) == "probe failed: cli: boom in cli; shell: boom in shell"

    def test_apply_all_visits_every_domain(self, manager: ConfigManager) -> None:
        seen: list[str] = []
        manager.apply_all(lambda domain, provider: seen.append(domain))
        assert seen == ["cli", "shell"]

    def test_save_all_and_load_all(self, manager: ConfigManager, config_paths: ConfigPaths) -> None:
        manager.set("cli", "scheme.default", "nord")
        manager.save_all()
        manager.set("cli", "scheme.default", "dracula")
        manager.load_all()
        assert manager.get("cli", "scheme.default") == "nord"
        assert config_paths.domain_file("shell").is_file()

    def test_find_everywhere(self, manager: ConfigManager) -> None:
        assert manager.find_everywhere("version") == {"cli": "0.2.0", "shell": "1.0.0"}
        assert manager.find_everywhere("bar.height") == {"shell": 30}
        assert manager.find_everywhere("no.such.path") == {}


class _WidgetPlugin:
    @hookimpl
    def register_config_providers(self, paths: ConfigPaths) -> list[tuple[str, Any]]:
        return [
            ("widget", JsonFileProvider("widget", paths.domain_file("widget"), THEME_SCHEMA)),
            ("broken", JsonFileProvider("broken", paths.domain_file("broken"))),
        ]


class TestPluginDomains:
    def test_plugin_domains_are_registered(
        self, config_paths: ConfigPaths, xdg_dirs: XdgDirs
    ) -> None:
        plugins = PluginManager()
        plugins.register_plugin(_WidgetPlugin(), name="widget")
        manager = ConfigManager(config_paths, dirs=xdg_dirs, plugins=plugins)
        manager.initialize()
        assert manager.list_domains() == ["cli", "shell", "widget"]
        assert manager.get("widget", "theme") == "dark"
        assert manager.provider("widget").config_path == config_paths.base_dir / "widget.json"
