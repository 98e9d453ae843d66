"""
Configuration management for the verification pipeline
"""

import copy
import logging
from pathlib import Path
from typing import Dict, Any, Optional

import yaml

logger = logging.getLogger(__name__)


DEFAULT_CONFIG = {
    "extraction": {
        "context_radius": 50,
        "headline_context_radius": 30,
        "dedupe_same_mention_distance": 100,
        "dedupe_repeat_distance": 500,
        "max_quote_length": 500,
        "min_quote_length": 3,
        "filter_quote_fragments": True
    },
    "numbers": {
        "source_context_radius": 100,
        "max_context_keywords": None
    },
    "quotes": {
        "context_radius": 50,
        "paraphrase_threshold": 0.4,
        "min_mid_word_length": 20
    },
    "line_by_line": {
        "enabled": True,
        "batch_size": 8,
        "per_call_timeout_seconds": 20.0,
        "total_budget_seconds": 60.0,
        "max_retries": 1,
        "retry_backoff_seconds": 0.5,
        "lexical_match_threshold": 0.6,
        "fallback_partial_threshold": 0.35,
        "min_line_words": 4,
        "max_source_chars": 12000,
        "model": "gpt-4o-mini"
    }
}


class ConfigManager:
    """Manages configuration for the verification pipeline"""

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to YAML config file, if None uses defaults
        """
        self.config = copy.deepcopy(DEFAULT_CONFIG)

        if config_path and config_path.exists():
            self.load_config(config_path)
        elif config_path:
            logger.warning(f"Config file not found: {config_path}, using defaults")

    def load_config(self, config_path: Path) -> None:
        """Load configuration from YAML file."""
        try:
            with open(config_path, 'r') as f:
                file_config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load config from {config_path}: {e}")
            return

        if not isinstance(file_config, dict):
            logger.error(f"Config file {config_path} must contain a mapping, using defaults")
            return

        # Deep merge with default config
        self.config = self._merge_configs(DEFAULT_CONFIG, file_config)
        logger.info(f"Loaded configuration from {config_path}")

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key_path: Dot-separated path like 'quotes.paraphrase_threshold'
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        try:
            for key in keys:
                value = value[key]
            return value
        except (KeyError, TypeError):
            return default

    def set(self, key_path: str, value: Any) -> None:
        """
        Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path like 'line_by_line.batch_size'
            value: Value to set
        """
        keys = key_path.split('.')
        config = self.config

        # Navigate to parent dict
        for key in keys[:-1]:
            if key not in config:
                config[key] = {}
            config = config[key]

        config[keys[-1]] = value

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two configuration dictionaries."""
        result = copy.deepcopy(base)

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def save_config(self, config_path: Path) -> None:
        """Save current configuration to YAML file."""
        try:
            with open(config_path, 'w') as f:
                yaml.safe_dump(self.config, f, default_flow_style=False, indent=2)
            logger.info(f"Saved configuration to {config_path}")

        except OSError as e:
            logger.error(f"Failed to save config to {config_path}: {e}")

    def to_dict(self) -> Dict[str, Any]:
        """Return configuration as dictionary."""
        return copy.deepcopy(self.config)
