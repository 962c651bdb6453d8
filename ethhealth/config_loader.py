#!/usr/bin/env python3
"""
Config Loader Module

Builds the immutable health check configuration from, in increasing order
of precedence:
- Built-in defaults (local Geth on :8545, Lighthouse on :5052)
- An optional JSON config file (see config/config.example.json)
- Environment variables (GETH_URL, LIGHTHOUSE_URL, LOG_FILE, DEBUG,
  RPC_TIMEOUT, RPC_RETRIES, RPC_RETRY_DELAY)
- Command line overrides passed by main.py

Config file layout:
    {
        "endpoints": {"execution_url": "...", "consensus_url": "..."},
        "rpc": {"timeout": 10, "retries": 3, "retry_delay": 2, "reachability_timeout": 2},
        "logging": {"log_file": "...", "timezone": "UTC"},
        "debug": false
    }
"""

import os
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import pytz

logger = logging.getLogger(__name__)

DEFAULT_EXECUTION_URL = "http://localhost:8545"
DEFAULT_CONSENSUS_URL = "http://localhost:5052"
DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_RETRIES = 3
DEFAULT_RETRY_DELAY_SECONDS = 2.0
DEFAULT_REACHABILITY_TIMEOUT_SECONDS = 2.0
FALLBACK_LOG_FILE = "./ethereum-health.log"


def default_log_file() -> str:
    """~/.ethereum/health-check.log, or the current directory if there is no home."""
    try:
        home = Path.home()
    except RuntimeError:
        home = Path(".")
    return str(home / ".ethereum" / "health-check.log")


@dataclass(frozen=True)
class HealthCheckConfig:
    """
    Settings for one health check run.

    Built once at startup and passed by reference to the RPC client,
    evaluator and reporter. Frozen: use dataclasses.replace() to derive
    a modified copy.
    """
    execution_url: str = DEFAULT_EXECUTION_URL
    consensus_url: str = DEFAULT_CONSENSUS_URL  # Carried for display only
    log_file: str = ""
    timeout: float = DEFAULT_TIMEOUT_SECONDS       # Per-attempt HTTP deadline
    retries: int = DEFAULT_RETRIES                 # Extra attempts after the first
    retry_delay: float = DEFAULT_RETRY_DELAY_SECONDS
    reachability_timeout: float = DEFAULT_REACHABILITY_TIMEOUT_SECONDS
    debug: bool = False
    log_timezone: str = "UTC"

    def __post_init__(self):
        if not self.log_file:
            object.__setattr__(self, "log_file", default_log_file())
        self.validate()

    @property
    def attempts(self) -> int:
        """Total number of attempts per RPC call."""
        return 1 + self.retries

    def validate(self) -> None:
        """
        Check value ranges.

        Raises:
            ValueError: If any setting is out of range
        """
        if not self.execution_url:
            raise ValueError("execution_url must not be empty")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if self.reachability_timeout <= 0:
            raise ValueError(f"reachability_timeout must be positive, got {self.reachability_timeout}")
        if self.retries < 0:
            raise ValueError(f"retries must be >= 0, got {self.retries}")
        if self.retry_delay < 0:
            raise ValueError(f"retry_delay must be >= 0, got {self.retry_delay}")
        if self.log_timezone not in pytz.all_timezones_set:
            raise ValueError(f"Unknown log timezone: {self.log_timezone}")


class ConfigLoader:
    """
    Configuration loader with file and environment overrides.

    Usage:
        loader = ConfigLoader("config/config.json")
        config = loader.load_config()

    The config file is optional: when no path is given the built-in defaults
    are used. A requested file that does not exist is an error.
    """

    def __init__(
        self,
        local_config_path: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None
    ):
        """
        Initialize config loader.

        Args:
            local_config_path: Path to a JSON config file (optional)
            environ: Environment mapping, defaults to os.environ
        """
        self.local_config_path = local_config_path
        self.environ = os.environ if environ is None else environ
        self._config: Optional[HealthCheckConfig] = None

    def load_config(self, overrides: Optional[Dict[str, Any]] = None) -> HealthCheckConfig:
        """
        Load configuration from defaults, file, environment and overrides.

        Args:
            overrides: Field values that take precedence over everything else
                       (None values are ignored)

        Returns:
            HealthCheckConfig: The merged configuration

        Raises:
            FileNotFoundError: If the requested config file doesn't exist
            ValueError: If a value is malformed or out of range
        """
        if self._config is not None and not overrides:
            return self._config

        values: Dict[str, Any] = {}
        if self.local_config_path:
            values.update(self._load_local_config())
        values.update(self._load_env_overrides())
        if overrides:
            values.update({k: v for k, v in overrides.items() if v is not None})

        self._config = HealthCheckConfig(**values)
        logger.debug(f"Configuration loaded: {self._config}")
        return self._config

    def _load_local_config(self) -> Dict[str, Any]:
        """
        Load settings from the JSON config file.

        Returns:
            dict: Flattened HealthCheckConfig field values

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If the file is not valid JSON
        """
        if not os.path.exists(self.local_config_path):
            raise FileNotFoundError(
                f"Config file not found: {self.local_config_path}\n"
                f"Copy config/config.example.json to {self.local_config_path} or omit --config."
            )

        try:
            with open(self.local_config_path, "r") as f:
                file_config = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {self.local_config_path}: {e}") from e

        if not isinstance(file_config, dict):
            raise ValueError(f"Config file {self.local_config_path} must contain a JSON object")

        logger.info(f"Loaded config from: {self.local_config_path}")

        endpoints = file_config.get("endpoints", {})
        rpc = file_config.get("rpc", {})
        logging_section = file_config.get("logging", {})

        values: Dict[str, Any] = {}
        _copy_if_present(endpoints, "execution_url", values, "execution_url", str)
        _copy_if_present(endpoints, "consensus_url", values, "consensus_url", str)
        _copy_if_present(rpc, "timeout", values, "timeout", float)
        _copy_if_present(rpc, "retries", values, "retries", int)
        _copy_if_present(rpc, "retry_delay", values, "retry_delay", float)
        _copy_if_present(rpc, "reachability_timeout", values, "reachability_timeout", float)
        _copy_if_present(logging_section, "log_file", values, "log_file", str)
        _copy_if_present(logging_section, "timezone", values, "log_timezone", str)
        if "debug" in file_config:
            values["debug"] = bool(file_config["debug"])
        return values

    def _load_env_overrides(self) -> Dict[str, Any]:
        """Read overrides from environment variables; empty values are ignored."""
        env = self.environ
        values: Dict[str, Any] = {}

        if env.get("GETH_URL"):
            values["execution_url"] = env["GETH_URL"]
        if env.get("LIGHTHOUSE_URL"):
            values["consensus_url"] = env["LIGHTHOUSE_URL"]
        if env.get("LOG_FILE"):
            values["log_file"] = env["LOG_FILE"]
        if env.get("DEBUG"):
            values["debug"] = env["DEBUG"].strip().lower() in ("true", "1", "yes")

        if env.get("RPC_TIMEOUT"):
            values["timeout"] = _parse_env_number("RPC_TIMEOUT", env["RPC_TIMEOUT"], float)
        if env.get("RPC_RETRIES"):
            values["retries"] = _parse_env_number("RPC_RETRIES", env["RPC_RETRIES"], int)
        if env.get("RPC_RETRY_DELAY"):
            values["retry_delay"] = _parse_env_number("RPC_RETRY_DELAY", env["RPC_RETRY_DELAY"], float)

        return values


def _copy_if_present(section: Any, key: str, values: Dict[str, Any], field_name: str, cast) -> None:
    if not isinstance(section, dict) or key not in section:
        return
    try:
        values[field_name] = cast(section[key])
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid value for {key}: {section[key]!r}") from e


def _parse_env_number(name: str, raw: str, cast):
    try:
        return cast(raw.strip())
    except ValueError as e:
        raise ValueError(f"Environment variable {name} must be a number, got {raw!r}") from e


def load_config(
    config_path: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None
) -> HealthCheckConfig:
    """
    Convenience function for loading configuration.

    Args:
        config_path: Path to a JSON config file (optional)
        overrides: Command line values that win over file and environment

    Returns:
        HealthCheckConfig: Configuration for this run
    """
    loader = ConfigLoader(config_path)
    return loader.load_config(overrides)