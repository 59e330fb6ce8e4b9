"""
AdminPanel Configuration — Load and validate adminpanel.yaml at startup.

Usage:
    from adminpanel.engine.config import load_panel_config, get_panel_config
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from adminpanel.engine.errors import PanelConfigError

CONFIG_FILENAME = "adminpanel.yaml"


# ---------------------------------------------------------------------------
# Pydantic models for adminpanel.yaml
# ---------------------------------------------------------------------------

class DatabaseConfig(BaseModel):
    url: str = "sqlite:///adminpanel.db"
    pool_size: int = 10
    max_overflow: int = 20
    pool_timeout: int = 30
    pool_recycle: int = 1800
    pool_pre_ping: bool = True
    echo: bool = False


class RedisConfig(BaseModel):
    url: str = "redis://localhost:6379/0"


class CeleryConfig(BaseModel):
    broker: str = "redis://localhost:6379/0"
    result_backend: str = "redis://localhost:6379/1"
    concurrency: int = 2
    export_queue: str = "exports"
    task_always_eager: bool = False


class SecurityConfig(BaseModel):
    session_timeout: int = 3600
    password_min_length: int = 8
    permission_cache_ttl: int = 300
    max_login_attempts: int = 5


class LogRetentionConfig(BaseModel):
    execution_days: int = 90
    security_days: int = 365


class LogAsyncQueueConfig(BaseModel):
    flush_interval_ms: int = 100
    flush_batch_size: int = 50
    max_queue_size: int = 10000


class LoggingConfig(BaseModel):
    level: str = "INFO"
    directory: str = ".adminpanel/logs"
    compress_after_days: int = 7
    retention: LogRetentionConfig = LogRetentionConfig()
    async_queue: LogAsyncQueueConfig = LogAsyncQueueConfig()


class UIConfig(BaseModel):
    web_per_page: int = 10
    web_per_page_values: List[int] = Field(default_factory=lambda: [10, 25, 50, 100])
    default_datetime_format: str = "%d-%m-%Y %H:%M:%S"
    case_sensitive_search: bool = False
    default_language: str = "en"

    @model_validator(mode="after")
    def per_page_is_offered(self) -> "UIConfig":
        if self.web_per_page not in self.web_per_page_values:
            self.web_per_page_values = sorted({*self.web_per_page_values, self.web_per_page})
        return self


class ProductStatusConfig(BaseModel):
    keys: Dict[str, str] = Field(default_factory=lambda: {"active": "Y", "inactive": "N"})
    values: Dict[str, str] = Field(default_factory=lambda: {"active": "Active", "inactive": "Inactive"})

    @model_validator(mode="after")
    def keys_match_values(self) -> "ProductStatusConfig":
        if set(self.keys) != set(self.values):
            raise ValueError("products.status keys and values must name the same statuses")
        return self

    def label_map(self) -> Dict[str, str]:
        """Stored status key → display label."""
        return {self.keys[name]: self.values[name] for name in self.keys}


class ProductsConfig(BaseModel):
    status: ProductStatusConfig = ProductStatusConfig()


class ExportsConfig(BaseModel):
    directory: str = ".adminpanel/exports"
    chunk_size: int = 500
    max_rows: int = 100000
    download_route: str = "/exports/download"

    @field_validator("chunk_size", "max_rows")
    @classmethod
    def positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v


class PanelConfig(BaseModel):
    """Root model for adminpanel.yaml."""
    name: str = "AdminPanel"
    version: str = "1.0.0"
    environment: str = "dev"

    database: DatabaseConfig = DatabaseConfig()
    redis: RedisConfig = RedisConfig()
    celery: CeleryConfig = CeleryConfig()
    security: SecurityConfig = SecurityConfig()
    logging: LoggingConfig = LoggingConfig()
    ui: UIConfig = UIConfig()
    products: ProductsConfig = ProductsConfig()
    exports: ExportsConfig = ExportsConfig()

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        if v not in ("dev", "staging", "prod"):
            raise ValueError(f"environment must be dev/staging/prod, got '{v}'")
        return v


# ---------------------------------------------------------------------------
# Config Loading Functions
# ---------------------------------------------------------------------------

_panel_config: Optional[PanelConfig] = None


def _find_project_root() -> Path:
    """Find the project root by looking for adminpanel.yaml."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        if (parent / CONFIG_FILENAME).exists():
            return parent
    return current


def get_project_root() -> Path:
    """Return the project root directory."""
    return _find_project_root()


def load_panel_config(config_path: Optional[str] = None) -> PanelConfig:
    """
    Load and validate adminpanel.yaml.

    Args:
        config_path: Explicit path to adminpanel.yaml. If None, auto-discovers.

    Returns:
        Validated PanelConfig instance (defaults when the file is missing).

    Raises:
        PanelConfigError: the file exists but does not validate.
    """
    global _panel_config

    if config_path is None:
        config_path = str(_find_project_root() / CONFIG_FILENAME)

    path = Path(config_path)
    if not path.exists():
        _panel_config = PanelConfig()
        return _panel_config

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    # Flatten the optional top-level "panel" block
    panel_data = raw.pop("panel", {}) or {}
    for key in ("name", "version", "environment"):
        if key in panel_data and key not in raw:
            raw[key] = panel_data[key]

    try:
        _panel_config = PanelConfig(**raw)
    except ValidationError as e:
        raise PanelConfigError(
            f"Invalid configuration in {path}",
            config_path=str(path),
            validation_errors=e.errors(),
        ) from e
    return _panel_config


def get_panel_config() -> PanelConfig:
    """Get the currently loaded config, loading if necessary."""
    global _panel_config
    if _panel_config is None:
        _panel_config = load_panel_config()
    return _panel_config


def set_panel_config(config: Optional[PanelConfig]) -> None:
    """Replace the active config (used at boot and by tests)."""
    global _panel_config
    _panel_config = config


def get_environment() -> str:
    """Get the current environment."""
    return get_panel_config().environment
