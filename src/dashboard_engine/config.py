"""
Python-side engine configuration.
"""

from __future__ import annotations

import os
from typing import List, Optional

from pydantic import BaseModel


class CacheConfig(BaseModel):
    enable: bool = True
    default_ttl_seconds: int = 300


class PaginationConfig(BaseModel):
    default_page_size: int = 25
    max_page_size: int = 500


class MonitorConfig(BaseModel):
    slow_operation_ms: float = 1000.0


class RepositoryConfig(BaseModel):
    database_url: Optional[str] = None
    json_columns: List[str] = []


class EngineConfig(BaseModel):
    cache: CacheConfig = CacheConfig()
    pagination: PaginationConfig = PaginationConfig()
    monitor: MonitorConfig = MonitorConfig()
    repository: RepositoryConfig = RepositoryConfig()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


def load_engine_config() -> EngineConfig:
    cfg = EngineConfig()
    cfg.cache = CacheConfig(
        enable=_env_bool("DASHBOARD_ENGINE_CACHE_ENABLE", cfg.cache.enable),
        default_ttl_seconds=_env_int("DASHBOARD_ENGINE_CACHE_TTL_SECONDS", cfg.cache.default_ttl_seconds),
    )
    cfg.pagination = PaginationConfig(
        default_page_size=_env_int("DASHBOARD_ENGINE_DEFAULT_PAGE_SIZE", cfg.pagination.default_page_size),
        max_page_size=_env_int("DASHBOARD_ENGINE_MAX_PAGE_SIZE", cfg.pagination.max_page_size),
    )
    cfg.monitor = MonitorConfig(
        slow_operation_ms=_env_float("DASHBOARD_ENGINE_SLOW_OPERATION_MS", cfg.monitor.slow_operation_ms),
    )
    cfg.repository = RepositoryConfig(
        database_url=os.getenv("DASHBOARD_ENGINE_DATABASE_URL") or None,
        json_columns=_env_list("DASHBOARD_ENGINE_JSON_COLUMNS", cfg.repository.json_columns),
    )
    return cfg
