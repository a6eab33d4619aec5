#!/usr/bin/env python3
"""
Configuration loading from YAML
"""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import yaml

from .chain import MAX_CHAIN_LENGTH
from .checks import EXPIRY_WARNING_DAYS, MAX_LIFETIME_DAYS
from .exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = 'config/config.yaml'


def _as_list(value, key: str) -> List[str]:
    """A single string is accepted in place of a one-item list"""
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise ConfigError(f"'{key}' must be a list, got {type(value).__name__}")
    return [str(item) for item in value]


@dataclass
class ValidatorConfig:
    """Validator settings"""
    timeout_seconds: int = 10
    expiry_warning_days: int = EXPIRY_WARNING_DAYS
    max_lifetime_days: int = MAX_LIFETIME_DAYS
    max_chain_length: int = MAX_CHAIN_LENGTH
    custom_ca_files: List[str] = field(default_factory=list)
    log_level: str = 'INFO'
    log_file: Optional[str] = None
    domains: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> 'ValidatorConfig':
        scanner = data.get('scanner') or {}
        validation = data.get('validation') or {}
        trust = data.get('trust') or {}
        log = data.get('logging') or {}
        try:
            return cls(
                timeout_seconds=int(scanner.get('timeout_seconds', 10)),
                expiry_warning_days=int(validation.get('expiry_warning_days', EXPIRY_WARNING_DAYS)),
                max_lifetime_days=int(validation.get('max_lifetime_days', MAX_LIFETIME_DAYS)),
                max_chain_length=int(validation.get('max_chain_length', MAX_CHAIN_LENGTH)),
                custom_ca_files=_as_list(trust.get('custom_ca_files'), 'trust.custom_ca_files'),
                log_level=str(log.get('level', 'INFO')).upper(),
                log_file=log.get('file'),
                domains=_as_list(data.get('domains'), 'domains'),
            )
        except (TypeError, ValueError, AttributeError) as e:
            raise ConfigError(f"Invalid configuration value: {e}") from e


def load_config(config_path: Optional[str] = None) -> ValidatorConfig:
    """
    Load configuration from a YAML file

    Without an explicit path the default location is used when present,
    otherwise built-in defaults apply. An explicit path must exist.
    """
    if config_path is None:
        if not Path(DEFAULT_CONFIG_PATH).exists():
            return ValidatorConfig()
        config_path = DEFAULT_CONFIG_PATH

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Failed to read config {config_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse config {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config {config_path} must be a mapping")

    logger.info(f"Loaded configuration from {config_path}")
    return ValidatorConfig.from_dict(data)
