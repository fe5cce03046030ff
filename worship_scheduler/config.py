"""Configuration loading for the planning engine (YAML)."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict

import yaml


DB_URL_ENV = "WORSHIP_SCHEDULER_DB_URL"


@dataclass
class EngineConfig:
    """Tunable limits and wiring for the planning engine."""

    db_url: str = "sqlite:///worship_scheduler.db"
    item_cap: int = 6
    unfamiliar_cap: int = 1
    familiarity_threshold: int = 50
    leader_role: str = "lead"
    log_level: str = "INFO"
    sqlite_busy_timeout: float = 30.0

    def validate(self) -> None:
        for name in ("item_cap", "unfamiliar_cap", "familiarity_threshold"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {value!r}")
        if isinstance(self.sqlite_busy_timeout, bool) or not isinstance(self.sqlite_busy_timeout, (int, float)):
            raise ValueError(f"sqlite_busy_timeout must be a number, got {self.sqlite_busy_timeout!r}")
        if not isinstance(self.leader_role, str) or not self.leader_role:
            raise ValueError("leader_role must be a non-empty string")
        if self.item_cap < 1:
            raise ValueError(f"item_cap must be >= 1, got {self.item_cap}")
        if self.unfamiliar_cap < 0:
            raise ValueError(f"unfamiliar_cap must be >= 0, got {self.unfamiliar_cap}")
        if self.sqlite_busy_timeout <= 0:
            raise ValueError("sqlite_busy_timeout must be positive")

    def with_db_url(self, db_url: str) -> "EngineConfig":
        """Copy of this config pointing at another database."""
        return replace(self, db_url=db_url)


def load_config(path: str | Path | None = None) -> EngineConfig:
    """
    Load engine configuration from a YAML file.

    Missing keys keep their defaults. The database URL can be overridden
    with the WORSHIP_SCHEDULER_DB_URL environment variable.

    Args:
        path: Path to a YAML file, or None for defaults only

    Returns:
        Validated EngineConfig

    Raises:
        ValueError: If the file has unknown keys or out-of-range values
    """
    data: Dict[str, Any] = {}
    if path is not None:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")

    known = {f.name for f in fields(EngineConfig)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown config keys: {sorted(unknown)}")

    cfg = EngineConfig(**data)
    env_url = os.getenv(DB_URL_ENV)
    if env_url:
        cfg.db_url = env_url
    cfg.validate()
    return cfg
