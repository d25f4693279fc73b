"""Configuration system for the render worker.

This module provides configuration management for browser launching, capture
limits, the artifact cache backend and the CORS allow-list, including YAML
loading, validation, and environment variable overrides.
"""

import os
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

ENV_PREFIX = "RENDER_WORKER_"
DEFAULT_CONFIG_PATH = Path("config") / "worker.yaml"


class BrowserSettings(BaseModel):
    """Browser launch configuration."""

    enabled: bool = Field(default=True, description="Provide the browser binding")
    engine: str = Field(default="chromium", description="Playwright browser engine")
    headless: bool = Field(default=True, description="Run browser in headless mode")
    launch_timeout_ms: int = Field(default=15000, gt=0, description="Deadline for launching one browser")
    max_concurrent_sessions: int = Field(default=10, gt=0, description="Upper bound on live browsers")
    launch_args: List[str] = Field(default_factory=list, description="Extra command line switches")

    @field_validator('engine')
    @classmethod
    def validate_engine(cls, v):
        valid_engines = {'chromium', 'firefox', 'webkit'}
        if v not in valid_engines:
            raise ValueError(f"Engine must be one of: {valid_engines}")
        return v


class CaptureSettings(BaseModel):
    """Defaults and hard limits applied to every capture request."""

    default_width: int = 1280
    default_height: int = 800
    max_width: int = 1600
    max_height: int = 1200
    default_timeout_ms: int = 30000
    max_timeout_ms: int = 60000
    jpeg_quality: int = Field(default=80, ge=1, le=100)
    default_reject_types: List[str] = Field(default_factory=lambda: ["image", "font", "media"])

    def clamp_viewport(self, width: Optional[int], height: Optional[int]) -> Tuple[int, int]:
        """Apply defaults and clamp a requested viewport to the system maxima."""
        return (
            min(width or self.default_width, self.max_width),
            min(height or self.default_height, self.max_height),
        )

    def clamp_timeout(self, timeout_ms: Optional[int]) -> int:
        """Apply the default navigation deadline and clamp it to the maximum."""
        return min(timeout_ms or self.default_timeout_ms, self.max_timeout_ms)


class CacheSettings(BaseModel):
    """Artifact cache backend configuration."""

    enabled: bool = Field(default=True, description="Provide the artifact store binding")
    backend: str = Field(default="memory", description="memory or redis")
    redis_url: str = "redis://localhost:6379/0"
    key_prefix: str = ""
    ttl_seconds: int = Field(default=3600, gt=0, description="Lifetime of a stored artifact")
    cleanup_interval_seconds: int = Field(
        default=60, gt=0, description="Minimum seconds between expiry sweeps of the memory backend"
    )

    @field_validator('backend')
    @classmethod
    def validate_backend(cls, v):
        v = v.lower()
        if v not in {'memory', 'redis'}:
            raise ValueError(f"Unsupported cache backend: {v}")
        return v


class CorsSettings(BaseModel):
    """Origin allow-list. Loaded once and never mutated."""

    model_config = ConfigDict(frozen=True)

    allowed_origins: Tuple[str, ...] = ("https://example.com", "http://localhost:3000")

    @field_validator('allowed_origins')
    @classmethod
    def require_origin(cls, v):
        if not v:
            raise ValueError("At least one allowed origin is required")
        return tuple(v)


class ServerSettings(BaseModel):
    """HTTP server binding."""

    host: str = "0.0.0.0"
    port: int = 8787
    public_origin: Optional[str] = Field(
        default=None,
        description="Origin used in retrieval locators; defaults to the request origin"
    )


class WorkerConfig(BaseModel):
    """Root configuration for the render worker."""

    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    capture: CaptureSettings = Field(default_factory=CaptureSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    cors: CorsSettings = Field(default_factory=CorsSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)

    @classmethod
    def for_testing(cls) -> "WorkerConfig":
        """Configuration used by the test suite."""
        return cls(
            browser=BrowserSettings(launch_timeout_ms=1000, max_concurrent_sessions=4),
            cache=CacheSettings(backend="memory", ttl_seconds=3600),
        )


def _env_overrides(environ: Dict[str, str]) -> Dict[str, Dict[str, Any]]:
    """Collect overrides from ``RENDER_WORKER_*`` environment variables."""
    overrides: Dict[str, Dict[str, Any]] = {}

    def put(section: str, key: str, value: Any) -> None:
        overrides.setdefault(section, {})[key] = value

    if f"{ENV_PREFIX}BROWSER_ENGINE" in environ:
        put("browser", "engine", environ[f"{ENV_PREFIX}BROWSER_ENGINE"].lower())
    if f"{ENV_PREFIX}HEADLESS" in environ:
        put("browser", "headless", environ[f"{ENV_PREFIX}HEADLESS"].lower() == "true")
    if f"{ENV_PREFIX}CACHE_BACKEND" in environ:
        put("cache", "backend", environ[f"{ENV_PREFIX}CACHE_BACKEND"])
    if f"{ENV_PREFIX}REDIS_URL" in environ:
        put("cache", "redis_url", environ[f"{ENV_PREFIX}REDIS_URL"])
    if f"{ENV_PREFIX}CACHE_TTL" in environ:
        put("cache", "ttl_seconds", int(environ[f"{ENV_PREFIX}CACHE_TTL"]))
    if f"{ENV_PREFIX}ALLOWED_ORIGINS" in environ:
        origins = [o.strip() for o in environ[f"{ENV_PREFIX}ALLOWED_ORIGINS"].split(",") if o.strip()]
        put("cors", "allowed_origins", origins)
    if f"{ENV_PREFIX}PUBLIC_ORIGIN" in environ:
        put("server", "public_origin", environ[f"{ENV_PREFIX}PUBLIC_ORIGIN"].rstrip("/"))
    if f"{ENV_PREFIX}PORT" in environ:
        put("server", "port", int(environ[f"{ENV_PREFIX}PORT"]))

    return overrides


class ConfigManager:
    """Manager for worker configuration loading and caching."""

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        """Initialize configuration manager.

        Args:
            config_path: Path to worker config YAML file. Defaults to the value of
                RENDER_WORKER_CONFIG, then config/worker.yaml
        """
        if config_path is None:
            config_path = os.environ.get(f"{ENV_PREFIX}CONFIG", DEFAULT_CONFIG_PATH)

        self.config_path = Path(config_path)
        self._config: Optional[WorkerConfig] = None

    def load_config(self, force_reload: bool = False, environ: Optional[Dict[str, str]] = None) -> WorkerConfig:
        """Load configuration from YAML file and environment.

        A missing config file is not an error; defaults and environment
        overrides still apply.

        Args:
            force_reload: Force reload even if already cached
            environ: Environment mapping to read overrides from (defaults to os.environ)

        Returns:
            Loaded and validated configuration

        Raises:
            yaml.YAMLError: If YAML is invalid
            ValueError: If configuration validation fails
        """
        if self._config is not None and not force_reload:
            return self._config

        config_data: Dict[str, Any] = {}
        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    config_data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise yaml.YAMLError(f"Invalid YAML in {self.config_path}: {e}")
            logger.info(f"Loaded worker configuration from {self.config_path}")
        else:
            logger.debug(f"No configuration file at {self.config_path}, using defaults")

        for section, values in _env_overrides(dict(os.environ if environ is None else environ)).items():
            config_data.setdefault(section, {}).update(values)

        try:
            self._config = WorkerConfig(**config_data)
        except Exception as e:
            raise ValueError(f"Configuration validation failed: {e}")

        return self._config

    @property
    def config(self) -> WorkerConfig:
        """Get current configuration, loading if necessary."""
        if self._config is None:
            return self.load_config()
        return self._config


# Global config manager instance
_config_manager: Optional[ConfigManager] = None


def get_config(config_path: Optional[Union[str, Path]] = None) -> WorkerConfig:
    """Get the process-wide worker configuration.

    Args:
        config_path: Path to config file (only used on first call)

    Returns:
        Loaded WorkerConfig
    """
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager(config_path)
    return _config_manager.config
