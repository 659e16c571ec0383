"""
Configuration module for leaderhud.
Builds a Settings object once from environment variables and loads the
optional YAML leaderboard config (roles, top contributors).
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping

import yaml
from pydantic import BaseModel, Field, ValidationError

MEMORY_DB = ":memory:"


class ConfigError(RuntimeError):
    """A required configuration input is missing or unusable."""


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if not raw:
        return default
    try:
        return int(raw, 10)
    except ValueError:
        return default


class Settings(BaseModel):
    """
    Settings object holding every value the query and export layers need.
    Constructed once at process start and passed down explicitly.
    """
    db_path: str
    data_path: str = Field(default_factory=os.getcwd)
    lookback_days: int = 7
    config_path: str = "config.yaml"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if env is None else env
        db_path = env.get("LEADERBOARD_DB_PATH")
        if not db_path:
            raise ConfigError(
                "'LEADERBOARD_DB_PATH' needs to be set with a path to the database file "
                f"(or '{MEMORY_DB}' for a transient database)."
            )
        log_level = (env.get("LEADERBOARD_LOG_LEVEL") or "INFO").upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ConfigError(
                f"'LEADERBOARD_LOG_LEVEL' has an unknown level {log_level!r} "
                "(expected DEBUG, INFO, WARNING, ERROR or CRITICAL)."
            )
        return cls(
            db_path=db_path,
            data_path=env.get("LEADERBOARD_DATA_PATH") or os.getcwd(),
            lookback_days=_env_int(env, "LEADERBOARD_LOOKBACK_DAYS", 7),
            config_path=env.get("LEADERBOARD_CONFIG") or "config.yaml",
            log_level=log_level,
        )

    @property
    def is_memory(self) -> bool:
        return self.db_path == MEMORY_DB

    def resolved_db_path(self) -> str:
        if self.is_memory:
            return MEMORY_DB
        return str(Path(self.db_path).expanduser().resolve())


class RoleConfig(BaseModel):
    name: str | None = None
    description: str | None = None
    hidden: bool = False


class LeaderboardConfig(BaseModel):
    roles: dict[str, RoleConfig] = Field(default_factory=dict)
    top_contributors: list[str] = Field(default_factory=list)

    @property
    def hidden_roles(self) -> list[str]:
        return [slug for slug, role in self.roles.items() if role.hidden]

    @property
    def visible_roles(self) -> list[str]:
        return [slug for slug, role in self.roles.items() if not role.hidden]


def load_leaderboard_config(path: str | Path) -> LeaderboardConfig:
    """Load the `leaderboard:` section of a YAML config file.

    An absent file gives an empty config (no hidden roles, all activity types
    in the top-contributors lists). A file that cannot be parsed or does not
    match the expected shape raises ConfigError.
    """
    p = Path(path)
    if not p.exists():
        return LeaderboardConfig()
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {p}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"Invalid configuration in {p}: expected a mapping at top level")
    section = raw.get("leaderboard") or {}
    try:
        return LeaderboardConfig.model_validate(section)
    except ValidationError as e:
        raise ConfigError(f"Invalid 'leaderboard' section in {p}: {e}") from e
