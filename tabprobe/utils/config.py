"""Configuration management for tabprobe."""
import os
import tempfile
from pathlib import Path
from dataclasses import dataclass, field, fields
from typing import Optional


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Config:
    """Central configuration for tabprobe sessions."""

    # =========================================================================
    # BROWSER SETTINGS
    # =========================================================================
    browser_headless: bool = False
    browser_executable: Optional[str] = None  # None = Playwright-managed Chromium
    viewport_width: int = 1920
    viewport_height: int = 1080
    action_timeout: float = 30.0  # Default timeout for any single browser call

    # =========================================================================
    # NAVIGATION SETTINGS
    # =========================================================================
    navigation_timeout: float = 30.0
    navigation_retries: int = 3
    navigation_backoff: float = 2.0
    settle_delay: float = 5.0  # Wait after load for client-side init
    detached_frame_markers: list = field(default_factory=lambda: [
        "navigating frame was detached",
        "frame was detached",
        "page was detached",
    ])

    # =========================================================================
    # SHORTCUT STRATEGY SETTINGS
    # =========================================================================
    trigger_modifier: str = "AltLeft"
    trigger_key: str = "s"
    modifier_hold: float = 2.0
    escape_presses: int = 3
    new_tab_wait: float = 5.0
    inter_attempt_delay: float = 1.0
    reload_settle: float = 1.0
    plain_attempts: int = 2
    click_attempts: int = 2
    reload_attempts: int = 1

    # =========================================================================
    # REQUEST FILTER
    # =========================================================================
    blocked_resource_types: list = field(default_factory=lambda: [
        "image", "stylesheet", "font"
    ])

    # =========================================================================
    # CLIPBOARD FALLBACK
    # =========================================================================
    clipboard_sentinel: str = "nothing"
    host_clipboard_fallback: bool = False  # Try pyperclip when in-page read fails

    # =========================================================================
    # TEARDOWN SETTINGS
    # =========================================================================
    close_modifier: str = "AltLeft"
    close_key: str = "F4"
    teardown_grace: float = 1.0
    temp_dir: Path = field(default_factory=lambda: Path(tempfile.gettempdir()))
    profile_prefix: str = "tabprobe_chrome_profile_"
    sweep_shared_profiles: bool = False  # Also remove other sessions' profiles

    # =========================================================================
    # ISOLATION
    # =========================================================================
    isolated: bool = False
    worker_timeout: float = 180.0

    # =========================================================================
    # LOGGING
    # =========================================================================
    log_level: str = "INFO"
    log_file: Optional[Path] = None
    structured_logs: bool = False

    # =========================================================================
    # AUDIT
    # =========================================================================
    audit_enabled: bool = False
    audit_dir: Path = field(default_factory=lambda: Path.cwd() / "artifacts" / "audit_logs")

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "Config":
        """
        Create config from environment variables.

        Every field can be overridden with ``TABPROBE_<FIELD_NAME>``.
        Lists are comma separated.

        Args:
            environ: Mapping to read instead of ``os.environ``
        """
        environ = os.environ if environ is None else environ
        config = cls()

        for f in fields(cls):
            raw = environ.get(f"TABPROBE_{f.name.upper()}")
            if raw is None or raw == "":
                continue

            current = getattr(config, f.name)

            if isinstance(current, bool):
                value = _env_bool(raw)
            elif isinstance(current, int):
                value = int(raw)
            elif isinstance(current, float):
                value = float(raw)
            elif isinstance(current, list):
                value = [item.strip() for item in raw.split(",") if item.strip()]
            elif f.name in ("temp_dir", "audit_dir", "log_file"):
                value = Path(raw)
            else:
                value = raw

            setattr(config, f.name, value)

        return config

    def strategy_plan(self):
        """Build the attempt plan described by the attempt counts."""
        from tabprobe.models.strategy import StrategyPlan
        return StrategyPlan.escalating(
            plain=self.plain_attempts,
            click_first=self.click_attempts,
            reload=self.reload_attempts,
        )

    def print_status(self):
        """Print configuration status."""
        print("\n=== tabprobe Configuration ===")
        print(f"Headless: {self.browser_headless}")
        print(f"Browser executable: {self.browser_executable or 'Playwright-managed Chromium'}")
        print(f"Shortcut: {self.trigger_modifier}+{self.trigger_key}")
        print(f"Attempts: {self.plain_attempts} plain, {self.click_attempts} click-first, {self.reload_attempts} reload")
        print(f"Isolated worker: {self.isolated} (timeout {self.worker_timeout:.0f}s)")
        print(f"Temp dir: {self.temp_dir}")
        print(f"Audit: {self.audit_dir if self.audit_enabled else 'disabled'}")
        print("==============================\n")


# Global config instance
config = Config.from_env()
