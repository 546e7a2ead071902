"""
Runtime configuration.

A RuntimeConfig can be built in code, validated from a dict, or loaded
from a YAML or JSON file:

    limits:
      maxCallDepth: 32
    globals:
      screenWidth: 800
      title: "Intro"
    logErrors: true
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .limits import DEFAULT_SCRIPT_LIMITS, ScriptLimits

GlobalValue = Union[bool, int, float, str]


class RuntimeConfig(BaseModel):
    """Configuration for creating a Runtime via init_runtime."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    # Resource limits for parsing and evaluation
    limits: Optional[ScriptLimits] = Field(default=None, alias="limits")

    # Globals seeded into the global environment at startup
    initial_globals: Dict[str, GlobalValue] = Field(default_factory=dict, alias="globals")

    # Whether failed triggers are logged at error level
    log_errors: bool = Field(default=True, alias="logErrors")

    @field_validator("limits", mode="before")
    @classmethod
    def _coerce_limits(cls, value: Any) -> Any:
        # Accept both snake_case and camelCase keys
        if isinstance(value, dict):
            return ScriptLimits.from_dict(value)
        return value

    def resolved_limits(self) -> ScriptLimits:
        """Returns the configured limits, or the defaults."""
        return self.limits or DEFAULT_SCRIPT_LIMITS


def load_config(path: Union[str, Path]) -> RuntimeConfig:
    """
    Loads a RuntimeConfig from a YAML (.yaml/.yml) or JSON file.

    Raises:
        ValueError: If the file extension is not supported
        pydantic.ValidationError: If the content is not a valid configuration
    """
    file_path = Path(path)
    suffix = file_path.suffix.lower()
    text = file_path.read_text(encoding="utf-8")

    if suffix in (".yaml", ".yml"):
        data = yaml.safe_load(text)
    elif suffix == ".json":
        data = json.loads(text)
    else:
        raise ValueError(f"Unsupported config file type: {file_path.name}")

    return RuntimeConfig.model_validate(data or {})
