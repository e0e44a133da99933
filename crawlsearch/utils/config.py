"""
Configuration management for the search engine.
"""

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union, get_args, get_origin, get_type_hints

import yaml

from ..concurrency.work_queue import DEFAULT_THREADS

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


class ConfigError(ValueError):
    """Raised when a configuration file or value is invalid."""


@dataclass
class EngineConfig:
    """Configuration for indexing and searching."""
    threads: Optional[int] = None
    exact: bool = False
    text: Optional[str] = None
    query: Optional[str] = None


@dataclass
class CrawlerConfig:
    """Configuration for crawler behavior."""
    seed_url: Optional[str] = None
    max_links: int = 1
    retry_attempts: int = 3
    max_redirects: int = 3
    request_timeout: int = 30
    user_agent: str = "crawlsearch/1.0"
    allowed_domains: List[str] = field(default_factory=list)
    blocked_domains: List[str] = field(default_factory=list)


@dataclass
class ServerConfig:
    """Configuration for the HTTP front end."""
    enabled: bool = False
    host: str = "0.0.0.0"
    port: int = 8080
    max_results: int = 10


@dataclass
class OutputConfig:
    """Output files; None disables that output."""
    index: Optional[str] = None
    counts: Optional[str] = None
    results: Optional[str] = None


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = "INFO"
    file: Optional[str] = None
    format: str = '%(asctime)s - %(threadName)s - %(name)s - %(levelname)s - %(message)s'
    json_format: bool = False


@dataclass
class MonitoringConfig:
    """Configuration for monitoring."""
    prometheus_port: int = 8000
    metrics_enabled: bool = False


@dataclass
class Config:
    """Main configuration class."""
    engine: EngineConfig = field(default_factory=EngineConfig)
    crawler: CrawlerConfig = field(default_factory=CrawlerConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)

    @property
    def threaded(self) -> bool:
        """Threads were requested or a crawl needs them."""
        return self.engine.threads is not None or self.crawler.seed_url is not None


def _section(cls, data: Optional[Dict[str, Any]], name: str):
    """Build a section dataclass, rejecting unknown keys."""
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ConfigError(f"Section '{name}' must be a mapping")

    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"Unknown keys in section '{name}': {', '.join(sorted(unknown))}")

    hints = get_type_hints(cls)
    for key, value in data.items():
        if not _matches_type(value, hints[key]):
            raise ConfigError(f"Invalid value for '{name}.{key}': {value!r}")

    return cls(**data)


def _matches_type(value: Any, expected: Any) -> bool:
    """Check a loaded YAML value against a dataclass field annotation."""
    origin = get_origin(expected)
    if origin is Union:
        return any(_matches_type(value, arg) for arg in get_args(expected))
    if origin is list:
        (item_type,) = get_args(expected)
        return isinstance(value, list) and all(_matches_type(item, item_type) for item in value)
    if expected is type(None):
        return value is None
    if expected is int:
        # YAML booleans are ints to isinstance
        return isinstance(value, int) and not isinstance(value, bool)
    return isinstance(value, expected)


class ConfigManager:
    """Manages configuration loading and validation."""

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        self.config_path = Path(config_path) if config_path else None
        self.logger = logging.getLogger(__name__)
        self._config: Optional[Config] = None

    def load_config(self) -> Config:
        """Load configuration from the YAML file, or defaults if there is none."""
        config_data: Dict[str, Any] = {}

        if self.config_path is not None:
            if not self.config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

            with open(self.config_path, 'r', encoding='utf-8') as file:
                try:
                    config_data = yaml.safe_load(file) or {}
                except yaml.YAMLError as e:
                    raise ConfigError(f"Invalid YAML in {self.config_path}: {e}") from e

            if not isinstance(config_data, dict):
                raise ConfigError(f"Configuration root must be a mapping: {self.config_path}")

        self._config = self.from_dict(config_data)
        return self._config

    def from_dict(self, config_data: Dict[str, Any]) -> Config:
        """Build and validate a Config from plain data."""
        sections = {
            'engine': EngineConfig,
            'crawler': CrawlerConfig,
            'server': ServerConfig,
            'output': OutputConfig,
            'logging': LoggingConfig,
            'monitoring': MonitoringConfig,
        }

        unknown = set(config_data) - set(sections)
        if unknown:
            raise ConfigError(f"Unknown configuration sections: {', '.join(sorted(unknown))}")

        config = Config(**{
            name: _section(cls, config_data.get(name), name)
            for name, cls in sections.items()
        })
        self.validate(config)
        self._config = config
        return config

    def validate(self, config: Config):
        """Validate configuration values, coercing the recoverable ones."""
        if config.engine.threads is not None and config.engine.threads < 1:
            self.logger.warning(f"threads must be at least 1, using {DEFAULT_THREADS}")
            config.engine.threads = DEFAULT_THREADS

        if config.crawler.max_links < 1:
            self.logger.warning("max_links must be at least 1, using 1")
            config.crawler.max_links = 1

        if config.crawler.retry_attempts < 1:
            raise ConfigError("retry_attempts must be at least 1")

        if config.crawler.max_redirects < 0:
            raise ConfigError("max_redirects must be non-negative")

        if config.crawler.request_timeout <= 0:
            raise ConfigError("request_timeout must be positive")

        if not 0 <= config.server.port <= 65535:
            raise ConfigError("server port must be between 0 and 65535")

        if config.server.max_results < 1:
            raise ConfigError("max_results must be at least 1")

        if config.logging.level.upper() not in LOG_LEVELS:
            raise ConfigError(f"Unknown log level: {config.logging.level}")

        self.logger.debug("Configuration validation passed")

    @property
    def config(self) -> Config:
        """Get the loaded configuration."""
        if not self._config:
            raise ValueError("Configuration not loaded. Call load_config() first.")
        return self._config


# Global config manager instance
config_manager = ConfigManager()


def get_config() -> Config:
    """Get the global configuration instance."""
    return config_manager.config


def load_config(config_path: Optional[Union[str, Path]] = None) -> Config:
    """Load configuration from file, or defaults when no file is given."""
    global config_manager
    config_manager = ConfigManager(config_path)
    return config_manager.load_config()
