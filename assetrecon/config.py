from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigError
from .models import Config

DEFAULT_OUTPUT_DIR = "./output"
DEFAULT_DELAY_SECONDS = 0.1


def load_config(path: str) -> Config:
    if not Path(path).exists():
        raise ConfigError(f"Config file not found: {path}")
    with open(path, "r", encoding="utf-8") as file:
        try:
            config = yaml.safe_load(file) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Cannot parse config {path}: {exc}") from exc
    if not isinstance(config, dict):
        raise ConfigError(f"Config {path} must be a mapping")
    return config


@dataclass
class Settings:
    management_area: str
    output_dir: str = DEFAULT_OUTPUT_DIR
    databases: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    blue_profile: str = "red"
    red_profile: str = "red"
    mapping_profile: str = "blue"
    blue_file: Optional[str] = None
    red_file: Optional[str] = None
    delay_seconds: float = DEFAULT_DELAY_SECONDS
    as_of: Optional[datetime] = None

    @classmethod
    def from_config(cls, config: Config, area: Optional[str] = None) -> "Settings":
        management_area = area or config.get("management_area")
        if not management_area:
            raise ConfigError("management_area is not configured")
        comparison = config.get("comparison") or {}
        resolution = config.get("resolution") or {}
        return cls(
            management_area=management_area,
            output_dir=config.get("output_dir") or DEFAULT_OUTPUT_DIR,
            databases=config.get("databases") or {},
            blue_profile=config.get("blue_profile", "red"),
            red_profile=config.get("red_profile", "red"),
            mapping_profile=config.get("mapping_profile", "blue"),
            blue_file=comparison.get("blue_file"),
            red_file=comparison.get("red_file"),
            delay_seconds=float(resolution.get("delay_seconds", DEFAULT_DELAY_SECONDS)),
        )

    def profile(self, key: str) -> Dict[str, Any]:
        profile = self.databases.get(key)
        if not profile:
            raise ConfigError(f'Data-source profile "{key}" does not exist')
        return profile

    def query_date(self) -> datetime:
        return self.as_of or datetime.now()
