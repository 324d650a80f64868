"""Architech engine configuration.

Typed settings for the blueprint executor.  Pydantic v2 validates values at
construction time and handles JSON round-trips; ``from_env`` reads the
``ARCHITECH_*`` variables for use from the CLI or CI.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str) -> bool | None:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return None
    return value.strip().lower() in _TRUTHY


class EngineConfig(BaseModel):
    """Settings shared by every blueprint run of one executor."""

    manifest_file: str = Field(default="package.json", description="Package manifest updated by package/script actions")
    env_file: str = Field(default=".env", description="Env file updated only when it already exists")
    env_example_file: str = Field(default=".env.example", description="Env template every env var is added to")
    command_timeout: Optional[float] = Field(
        default=None, gt=0, description="Seconds before a spawned command is killed; no limit when unset"
    )
    capture_command_output: bool = Field(
        default=False, description="Capture command stdout/stderr instead of inheriting the terminal"
    )
    commit_on_success: bool = Field(default=True, description="Flush the staged files after a clean run")
    quiet: bool = Field(default=False, description="Suppress console output")

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file.

        Returns:
            The path where the file was written.
        """
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "EngineConfig":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Build an ``EngineConfig`` from environment variables.

        Recognised variables (all optional):
            ARCHITECH_MANIFEST_FILE, ARCHITECH_ENV_FILE,
            ARCHITECH_ENV_EXAMPLE_FILE, ARCHITECH_COMMAND_TIMEOUT,
            ARCHITECH_CAPTURE_OUTPUT, ARCHITECH_COMMIT, ARCHITECH_QUIET.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("ARCHITECH_MANIFEST_FILE"):
            kwargs["manifest_file"] = os.environ["ARCHITECH_MANIFEST_FILE"]
        if os.environ.get("ARCHITECH_ENV_FILE"):
            kwargs["env_file"] = os.environ["ARCHITECH_ENV_FILE"]
        if os.environ.get("ARCHITECH_ENV_EXAMPLE_FILE"):
            kwargs["env_example_file"] = os.environ["ARCHITECH_ENV_EXAMPLE_FILE"]
        if os.environ.get("ARCHITECH_COMMAND_TIMEOUT"):
            kwargs["command_timeout"] = float(os.environ["ARCHITECH_COMMAND_TIMEOUT"])

        flags = {
            "capture_command_output": _env_flag("ARCHITECH_CAPTURE_OUTPUT"),
            "commit_on_success": _env_flag("ARCHITECH_COMMIT"),
            "quiet": _env_flag("ARCHITECH_QUIET"),
        }
        kwargs.update({name: value for name, value in flags.items() if value is not None})

        return cls(**kwargs)
