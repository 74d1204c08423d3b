"""Tests for the semantic validation battery."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from heimdall.domain.checks import ValidationReport, check_config
from heimdall.domain.models import build_defaults
from heimdall.domain.types import XdgDirs
from heimdall.domain.values import set_path

GTK_QT_ADVISORY = "Both GTK and Qt theming are enabled. Ensure themes are compatible"


def _found(name: str) -> str | None:
    return f"/usr/bin/{name}"


def _missing(name: str) -> str | None:
    return None


def _exists(path: Path) -> bool:
    return True


@pytest.fixture
def effective(xdg_dirs: XdgDirs) -> dict[str, Any]:
    return build_defaults(xdg_dirs)


def _check(
    effective: dict[str, Any], user: dict[str, Any] | None = None, **kwargs: Any
) -> ValidationReport:
    kwargs.setdefault("which", _found)
    kwargs.setdefault("path_exists", _exists)
    return check_config(effective, user or {}, **kwargs)


class TestDefaults:
    def test_defaults_pass_with_only_the_theming_advisory(self, effective: dict[str, Any]) -> None:
        report = _check(effective)
        assert report.ok
        assert report.errors == []
        assert report.warnings == [GTK_QT_ADVISORY]


class TestErrors:
    def test_threshold_out_of_range(self, effective: dict[str, Any]) -> None:
        set_path(effective, "wallpaper.threshold", 1.5)
        report = _check(effective)
        assert not report.ok
        assert "wallpaper.threshold must be between 0 and 1" in report.errors

    def test_threshold_boundaries_are_inclusive(self, effective: dict[str, Any]) -> None:
        for value in (0, 1, 0.0, 1.0):
            set_path(effective, "wallpaper.threshold", value)
            assert _check(effective).ok

    def test_closed_enums(self, effective: dict[str, Any]) -> None:
        set_path(effective, "screenshot.file_format", "bmp")
        set_path(effective, "pip.window_position", "center")
        errors = _check(effective).errors
        assert "screenshot.file_format must be one of: png, jpg, jpeg, webp" in errors
        assert (
            "pip.window_position must be one of: top-left, top-right, bottom-left, bottom-right"
            in errors
        )

    def test_negative_counts(self, effective: dict[str, Any]) -> None:
        set_path(effective, "clipboard.max_entries", -1)
        set_path(effective, "screenshot.notification_timeout", -3)
        errors = _check(effective).errors
        assert "clipboard.max_entries must be non-negative" in errors
        assert "screenshot.notification_timeout must be non-negative" in errors

    def test_missing_version(self, effective: dict[str, Any]) -> None:
        effective["version"] = ""
        assert "configuration version is required" in _check(effective).errors

    def test_errors_are_aggregated_in_summary(self) -> None:
        report = ValidationReport(errors=["first problem", "second problem"])
        assert report.summary() == (
            "configuration validation failed:\n  • first problem\n  • second problem"
        )


class TestWarnings:
    def test_missing_wallpaper_directory(self, effective: dict[str, Any]) -> None:
        report = _check(effective, path_exists=lambda path: False)
        assert report.ok
        assert any(w.startswith("Wallpaper directory does not exist") for w in report.warnings)

    def test_very_large_clipboard_is_only_a_warning(self, effective: dict[str, Any]) -> None:
        set_path(effective, "clipboard.max_entries", 20000)
        report = _check(effective)
        assert report.ok
        assert any("clipboard.max_entries is very high" in w for w in report.warnings)

    def test_many_scheme_paths(self, effective: dict[str, Any]) -> None:
        set_path(effective, "scheme.user_paths", [f"/s/{i}" for i in range(6)])
        assert any("6 user scheme paths" in w for w in _check(effective).warnings)

    def test_deprecated_user_keys(self, effective: dict[str, Any]) -> None:
        report = _check(effective, {"colorScheme": "nord"})
        assert "Deprecated field 'colorScheme' found. Use 'scheme.default' instead" in (
            report.warnings
        )

    def test_missing_tools(self, effective: dict[str, Any]) -> None:
        warnings = _check(effective, which=_missing).warnings
        assert "Swappy is enabled but 'swappy' not found in PATH" in warnings
        assert "Kitty theming is enabled but 'kitty' not found in PATH" in warnings
        assert "Notifications enabled but 'notify-send' not found in PATH" in warnings
        assert not any("Alacritty" in w for w in warnings)

    def test_dunstify_provider_checks_dunstify(self, effective: dict[str, Any]) -> None:
        set_path(effective, "notification.provider", "dunstify")
        warnings = _check(effective, which=_missing).warnings
        assert "Notifications enabled but 'dunstify' not found in PATH" in warnings
