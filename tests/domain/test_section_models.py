"""Tests for the primary domain's section models and built-in defaults."""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import pytest
from pydantic import ValidationError

from heimdall.domain.models import (
    CONFIG_VERSION,
    HeimdallConfig,
    WallpaperConfig,
    build_defaults,
    default_config,
)
from heimdall.domain.types import XdgDirs


@pytest.fixture
def dirs(tmp_path: Path) -> XdgDirs:
    return XdgDirs(
        config_home=tmp_path / "cfg",
        data_home=tmp_path / "data",
        pictures=tmp_path / "pics",
        videos=tmp_path / "vids",
    )


class TestDefaultConfig:
    def test_version_is_current(self, dirs: XdgDirs) -> None:
        assert default_config(dirs).version == CONFIG_VERSION == "0.2.0"

    def test_path_defaults_follow_xdg_dirs(self, dirs: XdgDirs, tmp_path: Path) -> None:
        cfg = default_config(dirs)
        assert cfg.wallpaper.directory == str(tmp_path / "pics" / "Wallpapers")
        assert cfg.recording.directory == str(tmp_path / "vids" / "Recordings")
        assert cfg.scheme.user_paths == [str(tmp_path / "cfg" / "heimdall" / "schemes")]
        assert cfg.emoji.data_directory == str(tmp_path / "data" / "heimdall" / "emoji")
        assert cfg.theme.paths.gtk3 == str(tmp_path / "cfg" / "gtk-3.0" / "colors.css")

    def test_scalar_defaults(self, dirs: XdgDirs) -> None:
        cfg = default_config(dirs)
        assert cfg.scheme.default == "rosepine"
        assert cfg.wallpaper.threshold == 0.8
        assert cfg.screenshot.file_format == "png"
        assert cfg.theme.enableAlacritty is False
        assert cfg.toggles == {}

    def test_durations(self, dirs: XdgDirs) -> None:
        cfg = default_config(dirs)
        assert cfg.shell.ipc_timeout_delta == timedelta(seconds=5)
        assert cfg.emoji.download_delta == timedelta(seconds=30)
        assert cfg.notification.timeout == timedelta(seconds=5)


class TestBuildDefaults:
    def test_unset_optional_fields_are_omitted(self, dirs: XdgDirs) -> None:
        assert "migrated_from" not in build_defaults(dirs)

    def test_each_call_returns_a_fresh_tree(self, dirs: XdgDirs) -> None:
        first = build_defaults(dirs)
        first["scheme"]["default"] = "nord"
        assert build_defaults(dirs)["scheme"]["default"] == "rosepine"

    def test_round_trips_through_the_model(self, dirs: XdgDirs) -> None:
        tree = build_defaults(dirs)
        parsed = HeimdallConfig.model_validate(tree)
        assert parsed.model_dump(mode="json", exclude_none=True) == tree


class TestConstraints:
    def test_threshold_bounds(self) -> None:
        with pytest.raises(ValidationError):
            WallpaperConfig(threshold=1.5)

    def test_closed_enum(self) -> None:
        with pytest.raises(ValidationError):
            HeimdallConfig.model_validate({"screenshot": {"file_format": "bmp"}})

    def test_toggles_parse_nested_apps(self) -> None:
        cfg = HeimdallConfig.model_validate(
            {"toggles": {"work": {"apps": {"slack": {"command": ["slack"], "move": True}}}}}
        )
        app = cfg.toggles["work"].apps["slack"]
        assert app.command == ["slack"]
        assert app.move is True
        assert app.enable is True
