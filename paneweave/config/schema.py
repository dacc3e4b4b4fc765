"""Configuration schema for paneweave."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LayoutConfig(BaseModel):
    """Pane geometry settings."""

    tree_width: int = Field(default=30, ge=1)
    tree_width_expanded: int = Field(default=40, ge=1)
    term_width_percent: int = Field(default=45, ge=1, le=100)
    placeholder_width: int = 20
    start_with_terminal: bool = True


class TerminalConfig(BaseModel):
    """Terminal pane settings."""

    shell: str = ""
    scrollback_lines: int = Field(default=10_000, ge=0)
    default_background: str = ""
    passthrough_timeout_ms: int = 500
    spinner_interval_ms: int = Field(default=80, gt=0)
    scroll_wheel_lines: int = 3
    auto_respawn: bool = True
    default_tool: str = ""


class IdleConfig(BaseModel):
    """Idle detection settings."""

    timeout_s: float = 60.0
    check_interval_s: float = 30.0


class UIConfig(BaseModel):
    """Redraw and status line settings."""

    redraw_throttle_ms: int = 16
    git_poll_interval_s: float = 5.0
    status_timeout_s: float = 4.0


class LoggingConfig(BaseModel):
    """Log sink settings."""

    level: str = "INFO"
    file: str = "~/.paneweave/paneweave.log"


class Config(BaseSettings):
    """Root configuration for paneweave."""

    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    terminal: TerminalConfig = Field(default_factory=TerminalConfig)
    idle: IdleConfig = Field(default_factory=IdleConfig)
    ui: UIConfig = Field(default_factory=UIConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def log_path(self) -> Path:
        """Get expanded log file path."""
        return Path(self.logging.file).expanduser()

    model_config = SettingsConfigDict(
        env_prefix="PANEWEAVE_",
        env_nested_delimiter="__",
        extra="ignore",
    )
