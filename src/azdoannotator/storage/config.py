from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from azdoannotator.core.errors import ConfigError

logger = logging.getLogger(__name__)


def default_data_dir() -> Path:
    return Path.home() / ".azdoannotator"


class AzureIntegration(BaseModel):
    model_config = ConfigDict(extra="allow")

    host: str
    # accepted for compatibility with integration configs, never read
    credentials: Optional[Any] = None

    @field_validator("host")
    @classmethod
    def _valid_host(cls, v: str) -> str:
        if not v or v != v.strip() or any(c.isspace() for c in v):
            raise ValueError(f"'{v}' is not a valid host")
        if "://" in v or "/" in v:
            raise ValueError(f"'{v}' is not a valid host (expected a bare host like dev.azure.com)")
        return v


class Integrations(BaseModel):
    # other integrations (github, gitlab, ...) are carried through untouched
    model_config = ConfigDict(extra="allow")

    azure: List[AzureIntegration] = Field(default_factory=list)

    @field_validator("azure", mode="before")
    @classmethod
    def _none_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v


class AnnotatorOptions(BaseModel):
    model_config = ConfigDict(extra="allow")

    # None means every kind is processed
    kinds: Optional[List[str]] = None


class AppConfig(BaseModel):
    # keys owned by other components must survive a load/save cycle
    model_config = ConfigDict(extra="allow")

    integrations: Integrations = Field(default_factory=Integrations)
    annotator: AnnotatorOptions = Field(default_factory=AnnotatorOptions)

    @field_validator("integrations", "annotator", mode="before")
    @classmethod
    def _none_is_default(cls, v: Any) -> Any:
        return {} if v is None else v

    def azure_hosts(self) -> List[str]:
        return [entry.host for entry in self.integrations.azure]


def parse_config(data: Optional[Mapping[str, Any]]) -> AppConfig:
    """
    Validate a raw configuration mapping.

    Missing sections fall back to defaults. A section of the wrong shape raises
    ConfigError so callers fail before any entity is processed.
    """
    if data is None:
        return AppConfig()
    if isinstance(data, AppConfig):
        return data
    if not isinstance(data, Mapping):
        raise ConfigError(f"Configuration must be a mapping, got {type(data).__name__}")
    try:
        return AppConfig.model_validate(dict(data))
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


class ConfigStore:
    def __init__(self, data_dir: Optional[Path] = None):
        self.data_dir = data_dir or default_data_dir()
        self.path = self.data_dir / "config.json"

    def load(self) -> AppConfig:
        if not self.path.exists():
            logger.debug("No config at %s, using defaults", self.path)
            return AppConfig()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ConfigError(f"{self.path} is not valid JSON: {e}") from e
        return parse_config(data)

    def save(self, cfg: AppConfig) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".json.tmp")
        tmp.write_text(
            json.dumps(cfg.model_dump(exclude_none=True), indent=2, sort_keys=True),
            encoding="utf-8",
        )
        os.replace(tmp, self.path)
        try:
            os.chmod(self.path, 0o600)
        except OSError:
            # chmod is not meaningful on every platform
            pass
