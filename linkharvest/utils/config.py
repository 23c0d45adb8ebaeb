"""
Configuration management for the link harvester.
"""

import yaml
import logging
from pathlib import Path
from typing import Dict, List, Any, Optional
from dataclasses import dataclass, field, fields

from ..errors import ConfigError

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Linux; Android 10; K) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/134.0.0.0 Mobile Safari/537.36"
)

EXPORT_FORMATS = ('xlsx', 'csv')


@dataclass
class CrawlerConfig:
    """Configuration for crawler behavior."""
    seed_urls: List[str] = field(default_factory=list)
    parallelism: int = 3
    politeness_delay: float = 0.01
    request_timeout: float = 30
    user_agent: str = DEFAULT_USER_AGENT
    max_content_bytes: int = 10 * 1024 * 1024


@dataclass
class ExtractionConfig:
    """CSS selectors used by the title and link observers."""
    title_selector: str = "h1#firstHeading"
    title_child_selector: str = "i"
    link_selector: str = "div.mw-body-content a"


@dataclass
class ExportConfig:
    """Configuration for the tabular export."""
    path: str = "scraped_links.xlsx"
    format: Optional[str] = None
    sheet_name: str = "Results"


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = "INFO"
    file: str = "parser.log"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    json: bool = False


@dataclass
class Config:
    """Main configuration class."""
    crawler: CrawlerConfig = field(default_factory=CrawlerConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _build_section(section_cls, data: Optional[Dict[str, Any]], name: str):
    """Instantiate a config section, rejecting unknown keys."""
    if data is None:
        return section_cls()
    if not isinstance(data, dict):
        raise ConfigError(f"Section '{name}' must be a mapping")

    known = {f.name for f in fields(section_cls)}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"Unknown keys in section '{name}': {', '.join(sorted(unknown))}")

    return section_cls(**data)


class ConfigManager:
    """Manages configuration loading and validation."""

    def __init__(self, config_path: str = "config.yaml"):
        self.config_path = Path(config_path)
        self._config: Optional[Config] = None

    def load_config(self) -> Config:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            raise ConfigError(f"Configuration file not found: {self.config_path}")

        try:
            with open(self.config_path, 'r', encoding='utf-8') as file:
                config_data = yaml.safe_load(file) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Could not read configuration {self.config_path}: {e}") from e

        self._config = self.from_dict(config_data)
        return self._config

    @staticmethod
    def from_dict(config_data: Dict[str, Any]) -> Config:
        """Build and validate a Config from already-parsed data."""
        if not isinstance(config_data, dict):
            raise ConfigError("Configuration root must be a mapping")

        unknown = set(config_data) - {f.name for f in fields(Config)}
        if unknown:
            raise ConfigError(f"Unknown configuration sections: {', '.join(sorted(unknown))}")

        config = Config(
            crawler=_build_section(CrawlerConfig, config_data.get('crawler'), 'crawler'),
            extraction=_build_section(ExtractionConfig, config_data.get('extraction'), 'extraction'),
            export=_build_section(ExportConfig, config_data.get('export'), 'export'),
            logging=_build_section(LoggingConfig, config_data.get('logging'), 'logging'),
        )
        try:
            validate_config(config)
        except (TypeError, AttributeError) as e:
            raise ConfigError(f"Invalid configuration value: {e}") from e
        return config

    @property
    def config(self) -> Config:
        """Get the loaded configuration."""
        if not self._config:
            raise ConfigError("Configuration not loaded. Call load_config() first.")
        return self._config


def validate_config(config: Config):
    """Validate configuration values."""
    crawler = config.crawler

    if not crawler.seed_urls:
        raise ConfigError("At least one seed URL must be provided")

    if not all(isinstance(url, str) and url.strip() for url in crawler.seed_urls):
        raise ConfigError("Seed URLs must be non-empty strings")

    if crawler.parallelism < 1:
        raise ConfigError("parallelism must be at least 1")

    if crawler.politeness_delay < 0:
        raise ConfigError("politeness_delay must be non-negative")

    if crawler.request_timeout <= 0:
        raise ConfigError("request_timeout must be positive")

    if crawler.max_content_bytes < 1:
        raise ConfigError("max_content_bytes must be positive")

    if not config.extraction.title_selector or not config.extraction.link_selector:
        raise ConfigError("title_selector and link_selector are required")

    if config.export.format is not None and config.export.format not in EXPORT_FORMATS:
        raise ConfigError(f"export format must be one of: {', '.join(EXPORT_FORMATS)}")

    if not isinstance(logging.getLevelName(config.logging.level.upper()), int):
        raise ConfigError(f"Unknown log level: {config.logging.level}")

    logging.getLogger(__name__).debug("Configuration validation passed")


# Global config manager instance
config_manager = ConfigManager()


def get_config() -> Config:
    """Get the global configuration instance."""
    return config_manager.config


def load_config(config_path: str = "config.yaml") -> Config:
    """Load configuration from file."""
    global config_manager
    config_manager = ConfigManager(config_path)
    return config_manager.load_config()
