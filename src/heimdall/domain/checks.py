"""Semantic validation battery for the primary domain.

Runs on the effective value tree (not the typed model) so that malformed
values are reported instead of crashing conversion. Output is split into
fatal errors and advisory warnings; the store aggregates the errors into one
:class:`~heimdall.domain.errors.SchemaValidationError` and logs warnings.

Filesystem and PATH probes are injected, keeping the battery deterministic.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from heimdall.domain.values import ValueKind, get_path, has_path, kind_of

IMAGE_FORMATS = ("png", "jpg", "jpeg", "webp")
VIDEO_FORMATS = ("mp4", "webm", "mkv", "gif")
URGENCIES = ("low", "normal", "critical")
WINDOW_POSITIONS = ("top-left", "top-right", "bottom-left", "bottom-right")

MAX_SCHEME_PATHS = 5
MAX_CLIPBOARD_ENTRIES = 10000
MAX_PREVIEW_LENGTH = 500

# Legacy top-level keys and their replacements.
DEPRECATED_FIELDS: dict[str, str] = {
    "colorScheme": "Use 'scheme.default' instead",
    "enableGTK": "Use 'theme.enableGtk' instead",
    "enableQT": "Use 'theme.enableQt' instead",
    "wallpaperDir": "Use 'wallpaper.directory' instead",
    "wallpaperDirs": "Use 'wallpaper.directory' instead",
    "enableHyprland": "Use 'theme.enableHypr' instead",
    "schemeDir": "Use 'paths.schemes' instead",
}


class ValidationReport(BaseModel):
    """Result of the semantic battery."""

    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def summary(self) -> str:
        """Aggregated error message, one bullet per error."""
        bullets = "\n  • ".join(self.errors)
        return f"configuration validation failed:\n  • {bullets}"


def check_config(
    effective: dict[str, Any],
    user: dict[str, Any],
    *,
    which: Callable[[str], str | None],
    path_exists: Callable[[Path], bool],
) -> ValidationReport:
    """Run every structural check and advisory against *effective*.

    Args:
        effective: The merged configuration tree.
        user: The raw on-disk document (used to spot deprecated keys).
        which: Resolve an executable on PATH (``shutil.which`` in production).
        path_exists: Test whether a filesystem path exists.
    """
    report = ValidationReport()
    _check_ranges(effective, report)
    _check_enums(effective, report)
    _check_advisories(effective, report, path_exists)
    _check_deprecated(effective, user, report)
    _check_tools(effective, report, which)
    return report


# ---------------------------------------------------------------------------
# Individual checks
# ---------------------------------------------------------------------------


def _value(tree: dict[str, Any], path: str, default: Any = None) -> Any:
    return get_path(tree, path) if has_path(tree, path) else default


def _number(tree: dict[str, Any], path: str) -> float | None:
    value = _value(tree, path)
    if value is None or kind_of(value) is not ValueKind.NUMBER:
        return None
    return value


def _check_ranges(tree: dict[str, Any], report: ValidationReport) -> None:
    version = _value(tree, "version")
    if not version:
        report.errors.append("configuration version is required")

    max_entries = _number(tree, "clipboard.max_entries")
    if max_entries is not None:
        if max_entries < 0:
            report.errors.append("clipboard.max_entries must be non-negative")
        elif max_entries > MAX_CLIPBOARD_ENTRIES:
            report.warnings.append(
                f"clipboard.max_entries is very high (>{MAX_CLIPBOARD_ENTRIES}). "
                "This may impact performance"
            )

    preview = _number(tree, "clipboard.preview_length")
    if preview is not None:
        if preview < 0:
            report.errors.append("clipboard.preview_length must be non-negative")
        elif preview > MAX_PREVIEW_LENGTH:
            report.warnings.append(
                f"clipboard.preview_length is very high (>{MAX_PREVIEW_LENGTH}). "
                "Consider reducing for better UI"
            )

    timeout = _number(tree, "screenshot.notification_timeout")
    if timeout is not None and timeout < 0:
        report.errors.append("screenshot.notification_timeout must be non-negative")

    threshold = _number(tree, "wallpaper.threshold")
    if threshold is not None and not 0 <= threshold <= 1:
        report.errors.append("wallpaper.threshold must be between 0 and 1")


def _check_enums(tree: dict[str, Any], report: ValidationReport) -> None:
    closed = (
        ("screenshot.file_format", IMAGE_FORMATS),
        ("recording.file_format", VIDEO_FORMATS),
        ("notification.default_urgency", URGENCIES),
        ("pip.window_position", WINDOW_POSITIONS),
    )
    for path, allowed in closed:
        if _value(tree, path) not in allowed:
            report.errors.append(f"{path} must be one of: {', '.join(allowed)}")


def _check_advisories(
    tree: dict[str, Any],
    report: ValidationReport,
    path_exists: Callable[[Path], bool],
) -> None:
    directory = _value(tree, "wallpaper.directory")
    if isinstance(directory, str) and directory:
        if not path_exists(Path(directory).expanduser()):
            report.warnings.append(f"Wallpaper directory does not exist: {directory}")

    if _value(tree, "theme.enableGtk") is True and _value(tree, "theme.enableQt") is True:
        report.warnings.append("Both GTK and Qt theming are enabled. Ensure themes are compatible")

    user_paths = _value(tree, "scheme.user_paths")
    if isinstance(user_paths, list) and len(user_paths) > MAX_SCHEME_PATHS:
        report.warnings.append(
            f"You have {len(user_paths)} user scheme paths. This may slow down scheme discovery"
        )


def _check_deprecated(
    tree: dict[str, Any],
    user: dict[str, Any],
    report: ValidationReport,
) -> None:
    for field, suggestion in DEPRECATED_FIELDS.items():
        if field in user:
            report.warnings.append(f"Deprecated field '{field}' found. {suggestion}")
    if _value(tree, "notification.provider") == "notify-send":
        report.warnings.append(
            "notification.provider 'notify-send' is deprecated. Use 'libnotify' instead"
        )


def _check_tools(
    tree: dict[str, Any],
    report: ValidationReport,
    which: Callable[[str], str | None],
) -> None:
    if _value(tree, "screenshot.open_with_swappy") is True:
        swappy = _value(tree, "external_tools.swappy", "swappy")
        if which(swappy) is None:
            report.warnings.append(f"Swappy is enabled but '{swappy}' not found in PATH")

    for flag, binary, label in (
        ("theme.enableKitty", "kitty", "Kitty"),
        ("theme.enableAlacritty", "alacritty", "Alacritty"),
    ):
        if _value(tree, flag) is True and which(binary) is None:
            report.warnings.append(f"{label} theming is enabled but '{binary}' not found in PATH")

    if _value(tree, "notification.enabled") is True:
        if _value(tree, "notification.provider") == "dunstify":
            tool = _value(tree, "external_tools.dunstify", "dunstify")
        else:
            tool = _value(tree, "external_tools.libnotify", "notify-send")
        if which(tool) is None:
            report.warnings.append(f"Notifications enabled but '{tool}' not found in PATH")
