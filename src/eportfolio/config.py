"""
Configuration loading and management for the ePortfolio tracker.

This module handles the fee schedule and file locations. Settings come from
built-in defaults, an optional YAML file, an optional .env file and the
process environment, with later sources overriding earlier ones.
"""

import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import dotenv_values

from eportfolio.models import FeeSchedule


DEFAULT_PORTFOLIO_FILE = Path("portfolio.txt")
DEFAULT_JOURNAL_FILE = Path("eportfolio_journal.jsonl")
DEFAULT_ENV_FILE = Path(".env")

# Environment variable -> config key
ENV_KEYS = {
    "EPORTFOLIO_FILE": "portfolio_file",
    "EPORTFOLIO_JOURNAL": "journal_path",
    "EPORTFOLIO_COMMISSION": "commission",
    "EPORTFOLIO_REDEMPTION_FEE": "redemption_fee",
}


class ConfigurationError(Exception):
    """Raised when configuration is invalid or cannot be loaded."""
    pass


@dataclass
class AppConfig:
    """
    Runtime settings for the command-line tool.

    Attributes:
        portfolio_file: Portfolio text file to load and save
        journal_path: JSONL transaction journal
        fees: Fee schedule for valuations
    """
    portfolio_file: Path = DEFAULT_PORTFOLIO_FILE
    journal_path: Path = DEFAULT_JOURNAL_FILE
    fees: FeeSchedule = field(default_factory=FeeSchedule)


def load_app_config(
    config_path: str | Path | None = None,
    env_file: str | Path | None = None,
) -> AppConfig:
    """
    Load application settings from multiple sources with priority.

    Sources are checked in this order (later sources override earlier):
    1. Built-in defaults
    2. YAML config file (if given)
    3. .env file (defaults to ./.env when present)
    4. Environment variables

    Args:
        config_path: Optional YAML file with portfolio_file, journal_path,
                     commission and redemption_fee keys
        env_file: Optional .env file path

    Returns:
        AppConfig with validated settings

    Raises:
        ConfigurationError: If a source is unreadable or a value is invalid
    """
    raw: dict[str, Any] = {}

    if config_path is not None:
        raw.update(_read_yaml(Path(config_path)))

    env_path = Path(env_file) if env_file else DEFAULT_ENV_FILE
    if env_path.exists():
        env_values = dotenv_values(env_path)
        for env_key, config_key in ENV_KEYS.items():
            if env_values.get(env_key):
                raw[config_key] = env_values[env_key]
    elif env_file is not None:
        raise ConfigurationError(f"Environment file not found: {env_path}")

    for env_key, config_key in ENV_KEYS.items():
        if os.environ.get(env_key):
            raw[config_key] = os.environ[env_key]

    return _parse_app_config(raw)


def load_fee_schedule(config_path: str | Path) -> FeeSchedule:
    """
    Load only the fee schedule from a YAML file.

    Missing keys fall back to the default fees.

    Raises:
        ConfigurationError: If the file cannot be loaded or a fee is invalid
    """
    return _parse_fee_schedule(_read_yaml(Path(config_path)))


def _read_yaml(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in configuration file: {e}")
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file {config_path}: {e}")

    if raw_config is None:
        return {}
    if not isinstance(raw_config, dict):
        raise ConfigurationError(
            f"Configuration file {config_path} must contain a mapping"
        )
    return raw_config


def _parse_app_config(raw: dict[str, Any]) -> AppConfig:
    """
    Parse and validate a merged configuration dictionary into AppConfig.

    Raises:
        ConfigurationError: If a path is empty or a fee is invalid
    """
    portfolio_file = _parse_path(
        raw.get("portfolio_file", DEFAULT_PORTFOLIO_FILE), "portfolio_file"
    )
    journal_path = _parse_path(
        raw.get("journal_path", DEFAULT_JOURNAL_FILE), "journal_path"
    )

    return AppConfig(
        portfolio_file=portfolio_file,
        journal_path=journal_path,
        fees=_parse_fee_schedule(raw),
    )


def _parse_fee_schedule(raw: dict[str, Any]) -> FeeSchedule:
    defaults = FeeSchedule()
    return FeeSchedule(
        commission=_parse_decimal(
            raw.get("commission", defaults.commission),
            "commission",
            min_val=Decimal("0"),
        ),
        redemption_fee=_parse_decimal(
            raw.get("redemption_fee", defaults.redemption_fee),
            "redemption_fee",
            min_val=Decimal("0"),
        ),
    )


def _parse_path(value: Any, field_name: str) -> Path:
    text = str(value).strip() if value is not None else ""
    if not text:
        raise ConfigurationError(f"{field_name} cannot be empty")
    return Path(text).expanduser()


def _parse_decimal(
    value: Any,
    field_name: str,
    min_val: Optional[Decimal] = None,
    max_val: Optional[Decimal] = None,
) -> Decimal:
    """
    Parse a decimal value with optional range validation.

    Args:
        value: The value to parse
        field_name: Name of the field for error messages
        min_val: Minimum allowed value (inclusive)
        max_val: Maximum allowed value (inclusive)

    Returns:
        Parsed Decimal

    Raises:
        ConfigurationError: If the value is invalid or out of range
    """
    try:
        decimal_value = Decimal(str(value).strip())
    except InvalidOperation:
        raise ConfigurationError(f"Invalid decimal value for {field_name}: {value}")

    if not decimal_value.is_finite():
        raise ConfigurationError(f"Invalid decimal value for {field_name}: {value}")

    if min_val is not None and decimal_value < min_val:
        raise ConfigurationError(
            f"{field_name} must be >= {min_val}, got {decimal_value}"
        )

    if max_val is not None and decimal_value > max_val:
        raise ConfigurationError(
            f"{field_name} must be <= {max_val}, got {decimal_value}"
        )

    return decimal_value


def write_config(config: AppConfig, output_path: str | Path) -> None:
    """
    Write an AppConfig to a YAML file.

    Args:
        config: The configuration to write
        output_path: Path to write the YAML file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    config_dict = {
        "portfolio_file": str(config.portfolio_file),
        "journal_path": str(config.journal_path),
        "commission": str(config.fees.commission),
        "redemption_fee": str(config.fees.redemption_fee),
    }

    with open(output_path, "w") as f:
        yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)
