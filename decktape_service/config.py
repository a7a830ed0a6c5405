"""
Decktape Service Configuration Module

Centralized configuration management with Pydantic validation.
Environment variables are read once at startup into an immutable settings
object that is passed explicitly to the conversion handler.
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

# decktape.js is installed next to the package by default
DEFAULT_DECKTAPE_PATH = str(Path(__file__).resolve().parent / "decktape.js")
DEFAULT_CHROME_PATH = "/usr/bin/chromium-browser"
DEFAULT_CHROME_FLAGS = "--no-sandbox,--disable-gpu"


class DecktapeSettings(BaseSettings):
    """
    Decktape service configuration with validation.

    All settings can be overridden via environment variables.
    Validation happens at startup to fail fast on misconfiguration.
    """

    # === Renderer ===
    decktape_path: str = Field(
        default=DEFAULT_DECKTAPE_PATH,
        description="Path to the decktape.js entry point"
    )
    node_binary: str = Field(
        default="node",
        description="Node executable used to run the renderer"
    )
    chrome_path: str = Field(
        default=DEFAULT_CHROME_PATH,
        description="Browser executable handed to the renderer"
    )
    chrome_flags: str = Field(
        default=DEFAULT_CHROME_FLAGS,
        description="Comma-separated list of browser launch flags"
    )
    navigation_keys_enabled: bool = Field(
        default=False,
        description="Append the fixed slide navigation keys to every invocation"
    )

    # === Process supervision ===
    renderer_timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Kill the renderer after this many seconds (unset = wait indefinitely)"
    )
    output_buffer_limit: int = Field(
        default=1024 * 1024,
        ge=1024,
        description="Maximum bytes of stdout/stderr kept per stream"
    )

    # === HTTP ===
    host: str = Field(default="0.0.0.0", description="Listening interface")
    port: int = Field(default=3000, ge=1, le=65535, description="Listening port")
    cors_enabled: bool = Field(
        default=False,
        description="Add permissive CORS headers and answer pre-flight requests"
    )
    log_level: str = Field(default="INFO", description="Root log level")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one the logging module knows."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"log_level must be one of: {', '.join(sorted(allowed))}")
        return v_upper

    @field_validator("decktape_path", "node_binary", "chrome_path")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject empty paths so a misconfigured env var fails at startup."""
        if not v.strip():
            raise ValueError("path must not be empty")
        return v.strip()

    @property
    def chrome_flags_list(self) -> List[str]:
        """Parse browser flags into a list."""
        if not self.chrome_flags:
            return []
        return [flag.strip() for flag in self.chrome_flags.split(",") if flag.strip()]

    def validate_renderer_install(self) -> List[str]:
        """
        Check that the renderer and browser can be found on this host.

        Returns list of warning messages (empty when everything is in place).
        """
        issues = []

        if not os.path.isfile(self.decktape_path):
            issues.append(f"WARNING: Decktape entry point not found at {self.decktape_path}")
        if not os.path.isfile(self.chrome_path):
            issues.append(f"WARNING: Browser executable not found at {self.chrome_path}")

        return issues

    class Config:
        env_prefix = ""  # No prefix, use exact env var names
        case_sensitive = False  # CHROME_PATH = chrome_path
        frozen = True


@lru_cache()
def get_settings() -> DecktapeSettings:
    """
    Get cached settings instance.

    Settings are loaded once per process and never mutated afterwards.
    """
    return DecktapeSettings()


def log_settings(settings: DecktapeSettings) -> None:
    """Log the effective configuration and any renderer install issues."""
    logger.info(f"Configuration loaded: port={settings.port}")
    logger.info(f"  decktape_path={settings.decktape_path}")
    logger.info(f"  chrome_path={settings.chrome_path}")
    logger.info(f"  chrome_flags={settings.chrome_flags_list}")
    logger.info(f"  navigation_keys_enabled={settings.navigation_keys_enabled}")
    logger.info(f"  renderer_timeout={settings.renderer_timeout_seconds or 'none'}")

    for issue in settings.validate_renderer_install():
        logger.warning(issue)
