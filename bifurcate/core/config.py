"""
Configuration Manager for the Bifurcate crawler

Handles YAML/JSON configuration files and environment variable overrides.
Only operational settings live here: the page budget, depth ceiling, byte
ceilings and page priorities are fixed policy and are not configurable.
"""

import os
import json
import yaml
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field, asdict
from pathlib import Path

from bifurcate.core.base import ConfigurationError


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36"
)


@dataclass
class FetchConfig:
    """HTTP client settings shared by the crawl and extraction fetchers"""
    user_agent: str = DEFAULT_USER_AGENT
    accept: str = "text/html,application/xhtml+xml"
    timeout: float = 20.0
    connection_limit: int = 10


@dataclass
class CrawlConfig:
    """Crawl defaults"""
    default_depth: int = 3


@dataclass
class StorageConfig:
    """Feed storage settings"""
    enabled: bool = True
    base_path: str = "./feeds"


@dataclass
class LoggingConfig:
    """Logging system configuration"""
    level: str = "INFO"
    file: Optional[str] = "./logs/bifurcate.log"
    max_size: str = "100MB"
    backup_count: int = 5


@dataclass
class SanitizerConfig:
    """Additions to the markdown sanitizer's built-in policy tables"""
    extra_noise_phrases: List[str] = field(default_factory=list)
    extra_section_labels: List[str] = field(default_factory=list)
    promote_title_lines: bool = True


class ConfigManager:
    """
    Centralized configuration manager with support for YAML/JSON files
    and environment variable integration.
    """

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or "config/config.yaml"
        self._config_data: Dict[str, Any] = {}
        self.fetch_config: Optional[FetchConfig] = None
        self.crawl_config: Optional[CrawlConfig] = None
        self.storage_config: Optional[StorageConfig] = None
        self.logging_config: Optional[LoggingConfig] = None
        self.sanitizer_config: Optional[SanitizerConfig] = None

    def load_config(self, config_path: Optional[str] = None,
                    create_default: bool = False) -> Dict[str, Any]:
        """
        Load configuration from file with environment variable override.

        A missing file falls back to defaults; with create_default the
        defaults are also written to the config path.
        """
        if config_path:
            self.config_path = config_path

        config_file = Path(self.config_path)

        if not config_file.exists():
            self._config_data = self._get_default_config()
            if create_default:
                self._create_default_config_file()
        else:
            try:
                with open(config_file, 'r', encoding='utf-8') as f:
                    if config_file.suffix.lower() == '.json':
                        self._config_data = json.load(f)
                    else:  # Assume YAML
                        self._config_data = yaml.safe_load(f) or {}
            except (OSError, ValueError, yaml.YAMLError) as e:
                raise ConfigurationError(f"Failed to load config from {config_file}: {e}")

        if not isinstance(self._config_data, dict):
            raise ConfigurationError(f"Config root must be a mapping: {config_file}")

        self._apply_env_overrides()
        self._parse_config()

        return self._config_data

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration dictionary"""
        return {
            'fetch': asdict(FetchConfig()),
            'crawl': asdict(CrawlConfig()),
            'storage': asdict(StorageConfig()),
            'logging': asdict(LoggingConfig()),
            'sanitizer': asdict(SanitizerConfig()),
        }

    def _create_default_config_file(self) -> None:
        """Create default configuration file"""
        config_dir = Path(self.config_path).parent
        config_dir.mkdir(parents=True, exist_ok=True)

        with open(self.config_path, 'w', encoding='utf-8') as f:
            yaml.dump(self._config_data, f, default_flow_style=False, indent=2)

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides"""
        log_level = os.getenv('BIFURCATE_LOG_LEVEL') or os.getenv('LOG_LEVEL')
        if log_level:
            self._config_data.setdefault('logging', {})['level'] = log_level

        if os.getenv('BIFURCATE_STORAGE_PATH'):
            self._config_data.setdefault('storage', {})['base_path'] = os.getenv('BIFURCATE_STORAGE_PATH')

        if os.getenv('BIFURCATE_USER_AGENT'):
            self._config_data.setdefault('fetch', {})['user_agent'] = os.getenv('BIFURCATE_USER_AGENT')

        if os.getenv('BIFURCATE_TIMEOUT'):
            try:
                self._config_data.setdefault('fetch', {})['timeout'] = float(os.getenv('BIFURCATE_TIMEOUT'))
            except ValueError:
                raise ConfigurationError(f"BIFURCATE_TIMEOUT must be a number, got {os.getenv('BIFURCATE_TIMEOUT')!r}")

    def _parse_config(self) -> None:
        """Parse configuration into dataclass objects"""
        fetch_data = self._config_data.get('fetch') or {}
        self.fetch_config = FetchConfig(
            user_agent=fetch_data.get('user_agent', DEFAULT_USER_AGENT),
            accept=fetch_data.get('accept', "text/html,application/xhtml+xml"),
            timeout=float(fetch_data.get('timeout', 20.0)),
            connection_limit=int(fetch_data.get('connection_limit', 10))
        )

        crawl_data = self._config_data.get('crawl') or {}
        self.crawl_config = CrawlConfig(
            default_depth=int(crawl_data.get('default_depth', 3))
        )

        storage_data = self._config_data.get('storage') or {}
        self.storage_config = StorageConfig(
            enabled=bool(storage_data.get('enabled', True)),
            base_path=storage_data.get('base_path', './feeds')
        )

        logging_data = self._config_data.get('logging') or {}
        self.logging_config = LoggingConfig(
            level=logging_data.get('level', 'INFO'),
            file=logging_data.get('file', './logs/bifurcate.log'),
            max_size=logging_data.get('max_size', '100MB'),
            backup_count=int(logging_data.get('backup_count', 5))
        )

        sanitizer_data = self._config_data.get('sanitizer') or {}
        self.sanitizer_config = SanitizerConfig(
            extra_noise_phrases=list(sanitizer_data.get('extra_noise_phrases') or []),
            extra_section_labels=list(sanitizer_data.get('extra_section_labels') or []),
            promote_title_lines=bool(sanitizer_data.get('promote_title_lines', True))
        )

    def validate_config(self) -> bool:
        """Validate the loaded configuration"""
        if not self.fetch_config:
            raise ConfigurationError("Configuration not loaded")

        if self.fetch_config.timeout <= 0:
            raise ConfigurationError(f"Fetch timeout must be positive: {self.fetch_config.timeout}")

        if self.fetch_config.connection_limit <= 0:
            raise ConfigurationError("Connection limit must be greater than 0")

        if not 1 <= self.crawl_config.default_depth <= 4:
            raise ConfigurationError(f"Default crawl depth must be between 1 and 4: {self.crawl_config.default_depth}")

        if self.logging_config.level.upper() not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ConfigurationError(f"Invalid log level: {self.logging_config.level}")

        return True

    def as_component_config(self) -> Dict[str, Any]:
        """Flatten the parsed sections into the dict handed to components"""
        if not self.fetch_config:
            raise ConfigurationError("Configuration not loaded")

        return {
            'fetch': asdict(self.fetch_config),
            'crawl': asdict(self.crawl_config),
            'storage': asdict(self.storage_config),
            'logging': asdict(self.logging_config),
            'sanitizer': asdict(self.sanitizer_config),
        }
