from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DEFAULT_CONFIG_PATH = Path(__file__).with_name("config.yaml")


@dataclass
class Config:
    raw: Dict[str, Any]

    @property
    def api(self) -> Dict[str, Any]:
        return self.raw["api"]

    @property
    def endpoints(self) -> Dict[str, Any]:
        return self.raw["endpoints"]

    @property
    def pacing(self) -> Dict[str, float]:
        return self.raw.get("pacing") or {"min_seconds": 1.0, "max_seconds": 2.0}

    @property
    def catalogs_dir(self) -> Optional[str]:
        return (self.raw.get("catalogs") or {}).get("dir")

    @property
    def log_level(self) -> str:
        env_level = os.getenv("NHL_ETL_LOG_LEVEL")
        if env_level:
            return env_level.upper()
        return str((self.raw.get("logging") or {}).get("level", "INFO")).upper()


def load_config(path: Optional[str] = None) -> Config:
    path = path or os.getenv("NHL_ETL_CONFIG") or str(DEFAULT_CONFIG_PATH)
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    if not (raw.get("api") or {}).get("base_url"):
        raise ValueError("config must define api.base_url")
    if not raw.get("endpoints"):
        raise ValueError("config must define at least one endpoint")
    pacing = raw.get("pacing") or {}
    if pacing and float(pacing.get("min_seconds", 0)) > float(pacing.get("max_seconds", 0)):
        raise ValueError("pacing.min_seconds must be <= pacing.max_seconds")
    return Config(raw)
