"""Section models for the primary (``cli``) domain, with code-baked defaults.

Sparse file contract: defaults live here, ``config.json`` only contains the
sections a user actually touched. :func:`default_config` is the single
source of the full default tree; path-valued defaults are derived from the
user's XDG directories.

Field descriptions and examples feed :mod:`heimdall.domain.metadata`, which
also generates the domain's schema from these models.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Literal

from pydantic import BaseModel, Field

from heimdall.domain.types import XdgDirs

CONFIG_VERSION = "0.2.0"

ImageFormat = Literal["png", "jpg", "jpeg", "webp"]
VideoFormat = Literal["mp4", "webm", "mkv", "gif"]
Urgency = Literal["low", "normal", "critical"]
WindowPosition = Literal["top-left", "top-right", "bottom-left", "bottom-right"]


# --- theme ---


class ThemePathsConfig(BaseModel):
    """theme.paths section."""

    model_config = {"frozen": True}

    gtk3: str = Field("", description="Path to GTK 3 theme colors CSS file")
    gtk4: str = Field("", description="Path to GTK 4 theme colors CSS file")
    qt5: str = Field("", description="Path to Qt5ct color scheme file")
    qt6: str = Field("", description="Path to Qt6ct color scheme file")
    btop: str = Field("", description="Path to btop++ theme file")
    fuzzel: str = Field("", description="Path to Fuzzel launcher colors configuration")
    spicetify: str = Field("", description="Path to Spicetify theme color.ini file")
    kitty: str = Field("", description="Path to Kitty terminal theme configuration")
    alacritty: str = Field("", description="Path to Alacritty theme TOML file")
    wezterm: str = Field("", description="Path to WezTerm color scheme Lua file")
    nvim: str = Field("", description="Path to Neovim theme plugin file")
    terminal: str = Field("", description="Path to terminal escape sequences file")
    vesktop: str = Field("", description="Path to Vesktop theme CSS file")
    discord: str = Field("", description="Path to Discord theme CSS file")
    discordCanary: str = Field("", description="Path to Discord Canary theme CSS file")
    vencord: str = Field("", description="Path to Vencord theme CSS file")
    equicord: str = Field("", description="Path to Equicord theme CSS file")
    betterDiscord: str = Field("", description="Path to BetterDiscord theme CSS file")


class ThemeConfig(BaseModel):
    """theme section: which applications receive generated themes."""

    model_config = {"frozen": True}

    enableTerm: bool = Field(True, description="Apply themes to terminal emulators")
    enableHypr: bool = Field(True, description="Apply themes to Hyprland")
    enableDiscord: bool = Field(True, description="Apply themes to Discord clients")
    enableSpicetify: bool = Field(True, description="Apply themes to Spotify via Spicetify")
    enableFuzzel: bool = Field(True, description="Apply themes to the Fuzzel launcher")
    enableBtop: bool = Field(True, description="Apply themes to btop++")
    enableGtk: bool = Field(True, description="Apply themes to GTK 3 and GTK 4 applications")
    enableQt: bool = Field(True, description="Apply themes to Qt5 and Qt6 applications")
    enableKitty: bool = Field(True, description="Apply themes to Kitty")
    enableAlacritty: bool = Field(False, description="Apply themes to Alacritty")
    enableWezterm: bool = Field(False, description="Apply themes to WezTerm")
    enableNvim: bool = Field(True, description="Apply themes to Neovim")
    paths: ThemePathsConfig = Field(
        default_factory=ThemePathsConfig,
        description="Custom paths for theme configuration files",
    )


# --- toggles ---


class AppConfig(BaseModel):
    """One application inside a workspace toggle."""

    model_config = {"frozen": True}

    enable: bool = Field(True, description="Whether to enable this application toggle")
    match: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Window matching rules (class, title, etc.)",
        examples=[[{"class": "firefox"}]],
    )
    command: list[str] = Field(
        default_factory=list,
        description="Command to launch the application",
        examples=[["firefox", "--new-window"]],
    )
    move: bool = Field(False, description="Move existing windows to the current workspace")


class ToggleConfig(BaseModel):
    """One workspace toggle."""

    model_config = {"frozen": True}

    apps: dict[str, AppConfig] = Field(
        default_factory=dict,
        description="Application-specific toggle configurations for this workspace",
    )


# --- shell, scheme, wallpaper ---


class ShellConfig(BaseModel):
    """shell section: how the Quickshell daemon is launched."""

    model_config = {"frozen": True}

    command: str = Field("qs", description="Quickshell executable command")
    args: list[str] = Field(
        default_factory=lambda: ["-c", "heimdall", "-n"],
        description="Arguments to pass to Quickshell",
    )
    log_rules: str = Field(
        "",
        description="Logging rules for Quickshell (Qt logging format)",
        examples=["*.debug=false"],
    )
    daemon_port: int = Field(9999, ge=1, le=65535, description="Port for Quickshell daemon IPC")
    log_file: str = Field("shell.log", description="Log file name for shell output")
    pid_file: str = Field("shell.pid", description="PID file name for the shell process")
    ipc_timeout: int = Field(5, ge=0, description="IPC timeout in seconds")

    @property
    def ipc_timeout_delta(self) -> timedelta:
        return timedelta(seconds=self.ipc_timeout)


class SchemeConfig(BaseModel):
    """scheme section."""

    model_config = {"frozen": True}

    default: str = Field(
        "rosepine", description="Default color scheme to use", examples=["catppuccin-mocha"]
    )
    auto_mode: bool = Field(
        True, description="Automatically switch between light/dark variants based on time"
    )
    material_you: bool = Field(
        True, description="Generate Material You color schemes from wallpapers"
    )
    user_paths: list[str] = Field(
        default_factory=list,
        description="Additional directories to search for user-defined schemes",
    )
    generated_path: str = Field(
        "", description="Directory for storing generated Material You schemes"
    )


class WallpaperConfig(BaseModel):
    """wallpaper section."""

    model_config = {"frozen": True}

    directory: str = Field("", description="Directory containing wallpaper images")
    filter: bool = Field(
        True, description="Filter wallpapers based on color similarity to the current scheme"
    )
    threshold: float = Field(
        0.8,
        ge=0.0,
        le=1.0,
        description="Color similarity threshold for filtering (0.0-1.0, higher = stricter)",
        examples=[0.7],
    )
    smart_mode: bool = Field(
        True, description="Use intelligent wallpaper selection based on scheme colors"
    )
    extensions: list[str] = Field(
        default_factory=lambda: [".jpg", ".jpeg", ".png", ".webp"],
        description="Supported image file extensions",
    )


# --- capture ---


class ScreenshotConfig(BaseModel):
    """screenshot section."""

    model_config = {"frozen": True}

    directory: str = Field("", description="Directory to save screenshots")
    file_format: ImageFormat = Field("png", description="Image format (png, jpg, jpeg, webp)")
    file_name_pattern: str = Field(
        "screenshot_%Y%m%d_%H%M%S", description="Filename pattern with date format codes"
    )
    copy_to_clipboard: bool = Field(True, description="Copy screenshot to clipboard after capture")
    open_with_swappy: bool = Field(True, description="Open screenshot in Swappy after capture")
    show_notification: bool = Field(True, description="Show notification after capture")
    notification_timeout: int = Field(
        3, ge=0, description="Notification display duration in seconds"
    )
    freeze_file_name: str = Field(
        "freeze.png", description="Temporary filename for freeze screenshots"
    )

    @property
    def notification_delta(self) -> timedelta:
        return timedelta(seconds=self.notification_timeout)


class RecordingConfig(BaseModel):
    """recording section."""

    model_config = {"frozen": True}

    directory: str = Field("", description="Directory to save screen recordings")
    file_format: VideoFormat = Field("mp4", description="Video format (mp4, webm, mkv, gif)")
    file_name_pattern: str = Field(
        "recording_%Y%m%d_%H%M%S", description="Filename pattern with date format codes"
    )
    temp_file_name: str = Field("recording.mp4", description="Temporary filename during recording")
    show_notification: bool = Field(
        True, description="Show notification when recording starts/stops"
    )
    audio_source: str = Field(
        "auto", description="Audio source (auto, none, or specific device)", examples=["none"]
    )


# --- pickers ---


class ClipboardConfig(BaseModel):
    """clipboard section."""

    model_config = {"frozen": True}

    max_entries: int = Field(100, ge=0, description="Maximum number of clipboard history entries")
    fuzzel_prompt: str = Field("Clipboard> ", description="Prompt text for the clipboard picker")
    fuzzel_args: list[str] = Field(
        default_factory=lambda: ["--dmenu", "--width", "50", "--lines", "20"],
        description="Additional arguments for the Fuzzel launcher",
    )
    preview_length: int = Field(50, ge=0, description="Maximum characters to show in preview")
    delete_on_select: bool = Field(False, description="Remove entry from history after selection")


class EmojiConfig(BaseModel):
    """emoji section."""

    model_config = {"frozen": True}

    data_directory: str = Field("", description="Directory for emoji data files")
    sources: list[str] = Field(
        default_factory=lambda: ["emoji.json"], description="Emoji data source files to use"
    )
    fuzzel_prompt: str = Field("Emoji> ", description="Prompt text for the emoji picker")
    fuzzel_args: list[str] = Field(
        default_factory=lambda: ["--dmenu", "--prompt"],
        description="Additional arguments for the Fuzzel launcher",
    )
    copy_to_clipboard: bool = Field(True, description="Copy selected emoji to clipboard")
    type_directly: bool = Field(False, description="Type emoji directly into the active window")
    download_timeout: int = Field(
        30, ge=0, description="Timeout for downloading emoji data in seconds"
    )

    @property
    def download_delta(self) -> timedelta:
        return timedelta(seconds=self.download_timeout)


class PIPConfig(BaseModel):
    """pip section: picture-in-picture window management."""

    model_config = {"frozen": True}

    enabled: bool = Field(True, description="Enable picture-in-picture mode")
    pid_file: str = Field("pip.pid", description="PID file name for PIP process tracking")
    window_size: str = Field("25%", description="PIP window size as percentage of screen")
    window_position: WindowPosition = Field(
        "bottom-right", description="PIP window position on screen"
    )
    video_apps: list[str] = Field(
        default_factory=lambda: [
            "mpv",
            "vlc",
            "firefox",
            "chromium",
            "chrome",
            "brave",
            "youtube",
            "netflix",
            "twitch",
            "spotify",
        ],
        description="Applications to detect for PIP mode",
    )
    video_keywords: list[str] = Field(
        default_factory=lambda: [
            "youtube",
            "netflix",
            "twitch",
            "vimeo",
            "- playing",
            "▶",
            "►",
            "video",
            "stream",
        ],
        description="Window title keywords to detect video playback",
    )
    pin_windows: bool = Field(True, description="Pin PIP windows to all workspaces")
    always_on_top: bool = Field(True, description="Keep PIP windows above other windows")


class NotificationConfig(BaseModel):
    """notification section."""

    model_config = {"frozen": True}

    enabled: bool = Field(True, description="Enable system notifications")
    provider: str = Field(
        "auto",
        description="Notification provider (libnotify, dunstify, auto)",
        examples=["dunstify"],
    )
    default_timeout: int = Field(5, ge=0, description="Default notification timeout in seconds")
    app_name: str = Field("heimdall", description="Application name shown in notifications")
    default_urgency: Urgency = Field(
        "normal", description="Default notification urgency (low, normal, critical)"
    )

    @property
    def timeout(self) -> timedelta:
        return timedelta(seconds=self.default_timeout)


# --- paths, network, external tools ---


class PathsConfig(BaseModel):
    """paths section. Empty strings mean "use the built-in location"."""

    model_config = {"frozen": True}

    templates: str = Field("", description="Custom directory for theme templates")
    schemes: str = Field("", description="Custom directory for color schemes")
    state_dir: str = Field("", description="Directory for state files and runtime data")
    cache_dir: str = Field("", description="Directory for cache files")
    data_dir: str = Field("", description="Directory for application data")


class NetworkConfig(BaseModel):
    """network section."""

    model_config = {"frozen": True}

    ipc_timeout: int = Field(5, ge=0, description="General IPC timeout in seconds")
    hypr_ipc_timeout: int = Field(5, ge=0, description="Hyprland IPC timeout in seconds")

    @property
    def ipc_timeout_delta(self) -> timedelta:
        return timedelta(seconds=self.ipc_timeout)

    @property
    def hypr_ipc_timeout_delta(self) -> timedelta:
        return timedelta(seconds=self.hypr_ipc_timeout)


class ExternalTools(BaseModel):
    """external_tools section: executables the desktop glue shells out to."""

    model_config = {"frozen": True}

    grim: str = Field("grim", description="Path to the grim screenshot tool")
    slurp: str = Field("slurp", description="Path to the slurp selection tool")
    swappy: str = Field("swappy", description="Path to the swappy screenshot editor")
    wl_clipboard: str = Field("wl-copy", description="Path to the wl-copy clipboard tool")
    wl_screenrec: str = Field("wl-screenrec", description="Path to the wl-screenrec recorder")
    cliphist: str = Field("cliphist", description="Path to the cliphist clipboard manager")
    fuzzel: str = Field("fuzzel", description="Path to the fuzzel launcher")
    dart_sass: str = Field("sass", description="Path to the Dart Sass compiler")
    libnotify: str = Field("notify-send", description="Path to the notify-send tool")
    dunstify: str = Field("dunstify", description="Path to the dunstify tool")
    qs: str = Field("qs", description="Path to the Quickshell executable")
    app2unit: str = Field("app2unit", description="Path to the app2unit systemd tool")
    xclip: str = Field("xclip", description="Path to the xclip X11 clipboard tool")
    pactl: str = Field("pactl", description="Path to the PulseAudio control utility")
    pidof: str = Field("pidof", description="Path to the pidof process finder")
    pkill: str = Field("pkill", description="Path to the pkill process killer")
    gdbus: str = Field("gdbus", description="Path to the gdbus D-Bus tool")


# --- root ---


class HeimdallConfig(BaseModel):
    """Root configuration composing all sections."""

    model_config = {"frozen": True}

    version: str = Field(
        CONFIG_VERSION,
        min_length=1,
        description="Configuration version for migration and compatibility checking",
    )
    migrated_from: str | None = Field(
        None, description="Previous tool or version this config was migrated from"
    )
    theme: ThemeConfig = Field(
        default_factory=ThemeConfig, description="Theme application settings"
    )
    toggles: dict[str, ToggleConfig] = Field(
        default_factory=dict, description="Workspace-specific application toggles"
    )
    shell: ShellConfig = Field(
        default_factory=ShellConfig, description="Quickshell daemon configuration"
    )
    scheme: SchemeConfig = Field(
        default_factory=SchemeConfig, description="Color scheme and Material You settings"
    )
    wallpaper: WallpaperConfig = Field(
        default_factory=WallpaperConfig, description="Wallpaper management and filtering"
    )
    screenshot: ScreenshotConfig = Field(
        default_factory=ScreenshotConfig, description="Screenshot capture and processing"
    )
    recording: RecordingConfig = Field(
        default_factory=RecordingConfig, description="Screen recording configuration"
    )
    clipboard: ClipboardConfig = Field(
        default_factory=ClipboardConfig, description="Clipboard history and management"
    )
    emoji: EmojiConfig = Field(
        default_factory=EmojiConfig, description="Emoji picker configuration"
    )
    pip: PIPConfig = Field(
        default_factory=PIPConfig, description="Picture-in-picture window management"
    )
    notification: NotificationConfig = Field(
        default_factory=NotificationConfig, description="System notification preferences"
    )
    paths: PathsConfig = Field(
        default_factory=PathsConfig, description="Custom template, scheme and data paths"
    )
    network: NetworkConfig = Field(
        default_factory=NetworkConfig, description="Network and IPC timeouts"
    )
    external_tools: ExternalTools = Field(
        default_factory=ExternalTools, description="External tool paths and command overrides"
    )


def default_config(dirs: XdgDirs) -> HeimdallConfig:
    """Full default configuration with path defaults rooted in *dirs*."""
    cfg = dirs.config_home
    theme_paths = ThemePathsConfig(
        gtk3=str(cfg / "gtk-3.0" / "colors.css"),
        gtk4=str(cfg / "gtk-4.0" / "colors.css"),
        qt5=str(cfg / "qt5ct" / "colors" / "heimdall.conf"),
        qt6=str(cfg / "qt6ct" / "colors" / "heimdall.conf"),
        btop=str(cfg / "btop" / "themes" / "heimdall.theme"),
        fuzzel=str(cfg / "fuzzel" / "colors.ini"),
        spicetify=str(cfg / "spicetify" / "Themes" / "heimdall" / "color.ini"),
        kitty=str(cfg / "kitty" / "themes" / "heimdall.conf"),
        alacritty=str(cfg / "alacritty" / "themes" / "heimdall.toml"),
        wezterm=str(cfg / "wezterm" / "colors" / "heimdall.lua"),
        nvim=str(cfg / "nvim" / "lua" / "user" / "heimdall.lua"),
        terminal=str(dirs.heimdall_config / "sequences.txt"),
        vesktop=str(cfg / "vesktop" / "themes" / "heimdall.css"),
        discord=str(cfg / "discord" / "themes" / "heimdall.css"),
        discordCanary=str(cfg / "discordcanary" / "themes" / "heimdall.css"),
        vencord=str(cfg / "Vencord" / "themes" / "heimdall.css"),
        equicord=str(cfg / "Equicord" / "themes" / "heimdall.css"),
        betterDiscord=str(cfg / "BetterDiscord" / "themes" / "heimdall.theme.css"),
    )
    return HeimdallConfig(
        theme=ThemeConfig(paths=theme_paths),
        scheme=SchemeConfig(
            user_paths=[str(dirs.heimdall_config / "schemes")],
            generated_path=str(dirs.heimdall_data / "schemes"),
        ),
        wallpaper=WallpaperConfig(directory=str(dirs.pictures / "Wallpapers")),
        screenshot=ScreenshotConfig(directory=str(dirs.pictures / "Screenshots")),
        recording=RecordingConfig(directory=str(dirs.videos / "Recordings")),
        emoji=EmojiConfig(data_directory=str(dirs.heimdall_data / "emoji")),
    )


def build_defaults(dirs: XdgDirs) -> dict[str, Any]:
    """Default value tree, freshly built on every call."""
    return default_config(dirs).model_dump(mode="json", exclude_none=True)
