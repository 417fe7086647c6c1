"""
Configuration management for the site crawler.
"""

import yaml
import logging
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlparse
from dataclasses import dataclass, field


DEFAULT_USER_AGENT = "SiteCrawler/1.0 (+https://github.com/sitecrawler)"


@dataclass
class CrawlerConfig:
    """Configuration for crawler behavior."""
    seed_url: str = "https://www.sjsu.edu/"
    max_pages: int = 500
    request_timeout: float = 10.0
    max_retries: int = 5
    backoff_step: float = 2.0
    max_redirects: int = 5
    robots_timeout: float = 8.0
    user_agent: str = DEFAULT_USER_AGENT


@dataclass
class OutputConfig:
    """Configuration for the page record sink."""
    file: str = "result.txt"


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = "INFO"
    file: str = "logs/crawler.log"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    json: bool = False


@dataclass
class MonitoringConfig:
    """Configuration for crawl statistics."""
    stats_interval: float = 1.0
    metrics_enabled: bool = False
    prometheus_port: int = 8000


@dataclass
class Config:
    """Main configuration class."""
    crawler: CrawlerConfig = field(default_factory=CrawlerConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        """Build a Config from a parsed YAML mapping; missing sections use defaults."""
        data = data or {}
        return cls(
            crawler=CrawlerConfig(**data.get('crawler', {})),
            output=OutputConfig(**data.get('output', {})),
            logging=LoggingConfig(**data.get('logging', {})),
            monitoring=MonitoringConfig(**data.get('monitoring', {}))
        )


class ConfigManager:
    """Manages configuration loading and validation."""

    def __init__(self, config_path: Optional[str] = "config.yaml"):
        self.config_path = Path(config_path) if config_path else None
        self._config: Optional[Config] = None

    def load_config(self) -> Config:
        """Load configuration from YAML file, or defaults when no path is set."""
        if self.config_path is None:
            self._config = Config()
        else:
            if not self.config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

            with open(self.config_path, 'r') as file:
                config_data = yaml.safe_load(file)

            self._config = Config.from_dict(config_data)

        validate_config(self._config)
        return self._config

    @property
    def config(self) -> Config:
        """Get the loaded configuration."""
        if not self._config:
            raise ValueError("Configuration not loaded. Call load_config() first.")
        return self._config


def normalize_seed_url(url: str) -> str:
    """
    Reduce a seed to its domain root, ``scheme://host[:port]/``.

    The seed doubles as the prefix every admitted link must start with and
    the base root-relative links are joined to, so it must end at the host.
    A missing trailing slash is added; any path, query or fragment is rejected.
    """
    parsed = urlparse(url)
    if parsed.scheme not in ('http', 'https') or not parsed.netloc:
        raise ValueError(f"seed_url must be an absolute http(s) URL: {url!r}")
    if parsed.path not in ('', '/') or parsed.params or parsed.query or parsed.fragment:
        raise ValueError(f"seed_url must be a domain root without a path: {url!r}")
    return f"{parsed.scheme}://{parsed.netloc.lower()}/"


def validate_config(config: Config):
    """Validate configuration values, normalizing the seed URL to its domain root."""
    config.crawler.seed_url = normalize_seed_url(config.crawler.seed_url)

    if config.crawler.max_pages < 1:
        raise ValueError("max_pages must be at least 1")

    if config.crawler.max_retries < 1:
        raise ValueError("max_retries must be at least 1")

    if config.crawler.max_redirects < 0:
        raise ValueError("max_redirects must be non-negative")

    if config.crawler.backoff_step < 0:
        raise ValueError("backoff_step must be non-negative")

    if config.crawler.request_timeout <= 0 or config.crawler.robots_timeout <= 0:
        raise ValueError("timeouts must be positive")

    if config.monitoring.stats_interval <= 0:
        raise ValueError("stats_interval must be positive")

    if not config.output.file:
        raise ValueError("output file must be set")

    logging.getLogger(__name__).debug("Configuration validation passed")


def load_config(config_path: Optional[str] = None) -> Config:
    """Load configuration from file; defaults are used when no path is given."""
    return ConfigManager(config_path).load_config()
