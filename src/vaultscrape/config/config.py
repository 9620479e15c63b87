"""
Configuration management for VaultScrape using Pydantic.

``ScraperConfig`` accepts the camelCase keys used by the task entry point
(``usePlaywrightFallback``, ``timeoutMs``...) as well as snake_case field
names. Unknown keys are ignored.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from vaultscrape.crawler.user_agents import DEFAULT_USER_AGENTS

log = logging.getLogger(__name__)

# --- Nested Configuration Models ---


class CacheConfig(BaseModel):
    """Result cache backend selection."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    kind: Literal["memory", "disk", "remote"] = Field(default="memory", description="Cache backend.")
    max_size: int = Field(default=1000, ge=1, alias="maxSize", description="Maximum number of entries.")
    ttl_ms: Optional[float] = Field(
        default=None, gt=0, alias="ttlMs", description="Entry lifetime from creation. None disables expiry."
    )
    path: Path = Field(
        default_factory=lambda: Path.home() / ".vaultscrape" / "cache.json",
        description="JSON document used by the disk backend.",
    )
    redis_url: str = Field(default="redis://localhost:6379/0", alias="redisUrl")
    key_prefix: str = Field(default="vaultscrape:", alias="keyPrefix")
    front_size: int = Field(default=100, ge=0, alias="frontSize", description="In-process layer for remote caches.")


class ScraperConfig(BaseModel):
    """Options recognized by the scrape orchestrator."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    use_playwright_fallback: bool = Field(
        default=False,
        alias="usePlaywrightFallback",
        description="Fall back to browser rendering once static attempts are exhausted.",
    )
    timeout_ms: float = Field(default=30000, gt=0, alias="timeoutMs", description="Per fetch/navigation timeout.")
    max_retries: int = Field(default=3, ge=1, alias="maxRetries", description="Attempts per strategy.")
    base_delay_ms: float = Field(default=1000, ge=0, alias="baseDelayMs")
    rate_limit_delay_ms: float = Field(default=2000, ge=0, alias="rateLimitDelayMs")
    enable_stealth: bool = Field(default=True, alias="enableStealth")
    block_websockets: bool = Field(default=True, alias="blockWebSockets")
    respect_robots: bool = Field(default=True, alias="respectRobots")
    max_text_length: int = Field(default=5000, ge=1, alias="maxTextLength")
    concurrency: int = Field(default=4, ge=1, description="Bulk worker count.")
    user_agents: Tuple[str, ...] = Field(default=DEFAULT_USER_AGENTS, alias="userAgents")
    cache: CacheConfig = Field(default_factory=CacheConfig)

    @field_validator("user_agents", mode="before")
    @classmethod
    def non_empty_agents(cls, v):
        if not v:
            return DEFAULT_USER_AGENTS
        return tuple(v)


class MonitoringConfig(BaseModel):
    """Configuration for logging."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    log_level: str = Field(default="INFO", alias="logLevel", description="Logging level (e.g., DEBUG, INFO).")
    log_file: Optional[str] = Field(default=None, alias="logFile", description="Log file. None logs to stderr.")
    json_logs: bool = Field(default=False, alias="jsonLogs")

    @field_validator("log_level")
    @classmethod
    def known_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("log_file", mode="before")
    @classmethod
    def create_parent_dir(cls, v: str | Path | None) -> str | None:
        if v is None:
            return None
        path = Path(v)
        path.parent.mkdir(parents=True, exist_ok=True)
        return str(path)


# --- Main Configuration Class ---


class Settings(BaseSettings):
    scraper: ScraperConfig = Field(default_factory=ScraperConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)

    model_config = SettingsConfigDict(
        env_prefix="VAULTSCRAPE_", env_nested_delimiter="__", case_sensitive=False, extra="ignore"
    )

    @model_validator(mode="before")
    @classmethod
    def accept_flat_scraper_keys(cls, data):
        """Allow a flat document of scraper options at the top level."""
        if isinstance(data, dict) and "scraper" not in data:
            nested = {k: v for k, v in data.items() if k != "monitoring"}
            if nested:
                return {"scraper": nested, **({"monitoring": data["monitoring"]} if "monitoring" in data else {})}
        return data

    @classmethod
    def from_yaml(cls, path: Path) -> Settings:
        path = Path(path)
        log.debug("Loading configuration from YAML file: %s", path)
        if not path.is_file():
            raise FileNotFoundError(f"Configuration file not found or is not a file: {path}")
        with open(path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f)
        if not yaml_data:
            log.warning("Configuration file is empty: %s. Using default settings.", path)
            return cls.model_validate({})
        return cls.model_validate(yaml_data)


def find_config_file() -> Path | None:
    current_dir = Path.cwd()
    for name in ("vaultscrape.yaml", "vaultscrape.yml", "config.yaml", "config.yml"):
        candidate = current_dir / name
        if candidate.exists():
            return candidate
    return None
