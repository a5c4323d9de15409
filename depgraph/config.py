"""Configuration Management with Pydantic.

This module implements configuration models using Pydantic for parsing and
validation of YAML configuration files with environment variable overrides.
"""

import os
import threading
from pathlib import Path

import structlog
import yaml
from pydantic import BaseModel, Field, field_validator

# Initialize logger
logger = structlog.get_logger(__name__)

# Constants
ENV_PREFIX = "DEPGRAPH_"
HIGH_RETRY_DELAY_THRESHOLD = 10


class EngineConfig(BaseModel):
    """Dependency engine settings.

    Attributes:
        traversal_yield_interval: Nodes visited between event loop yields
            during graph traversal
        default_lag_minutes: Lag applied when a request omits it
    """

    traversal_yield_interval: int = Field(
        default=256,
        ge=1,
        description="Nodes visited between event loop yields",
    )
    default_lag_minutes: int = Field(
        default=0,
        ge=0,
        description="Lag in minutes used when a request omits it",
    )


class RetrySettings(BaseModel):
    """Retry settings for read operations at the request boundary.

    Attributes:
        max_attempts: Maximum number of attempts, including the first
        base_delay_seconds: Base delay for exponential backoff
    """

    max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum attempts for read operations",
    )
    base_delay_seconds: float = Field(
        default=0.2,
        ge=0,
        description="Base backoff delay in seconds",
    )


class DepgraphConfig(BaseModel):
    """Main configuration combining all settings.

    Attributes:
        engine: Dependency engine configuration
        retry: Read retry configuration
        logging_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Render logs as JSON instead of console output
    """

    engine: EngineConfig = Field(default_factory=EngineConfig)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    logging_level: str = Field(
        default="INFO",
        description="Logging level",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
    )
    json_logs: bool = Field(default=True, description="Render logs as JSON")

    @field_validator("logging_level", mode="before")
    @classmethod
    def normalize_level(cls, v: object) -> object:
        """Accept lower-case level names.

        Args:
            v: The raw logging level

        Returns:
            The upper-cased level when given a string
        """
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @classmethod
    def from_yaml(cls, path: str | Path) -> "DepgraphConfig":
        """Load configuration from a YAML file.

        Args:
            path: Path to the YAML configuration file

        Returns:
            Parsed and validated DepgraphConfig instance

        Raises:
            FileNotFoundError: If configuration file doesn't exist
            ValueError: If configuration is invalid
        """
        config_path = Path(path)

        if not config_path.exists():
            msg = f"Configuration file not found: {config_path}"
            raise FileNotFoundError(msg)

        logger.info("loading_configuration", path=str(config_path))

        try:
            with config_path.open() as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.exception("yaml_parse_error", error=str(e), path=str(config_path))
            msg = f"Invalid YAML in configuration file: {e}"
            raise ValueError(msg) from e

        if config_data is None:
            msg = "Configuration file is empty"
            raise ValueError(msg)
        if not isinstance(config_data, dict):
            msg = "Configuration file must contain a mapping"
            raise ValueError(msg)

        config = cls.from_dict(config_data)
        logger.info(
            "configuration_loaded",
            logging_level=config.logging_level,
            retry_attempts=config.retry.max_attempts,
        )
        return config

    @classmethod
    def from_dict(cls, config_data: dict) -> "DepgraphConfig":
        """Build a configuration from a mapping, applying environment overrides."""
        return cls(**cls._apply_env_overrides(config_data))

    @classmethod
    def _apply_env_overrides(cls, config_data: dict) -> dict:
        """Apply environment variable overrides to configuration.

        Environment variables follow the pattern: DEPGRAPH_<SECTION>_<KEY>
        Example: DEPGRAPH_RETRY_MAX_ATTEMPTS, DEPGRAPH_LOGGING_LEVEL

        Args:
            config_data: Base configuration dictionary from file

        Returns:
            Configuration dictionary with environment overrides applied
        """
        env_overrides = {
            # Engine configuration
            ("engine", "traversal_yield_interval"): f"{ENV_PREFIX}ENGINE_YIELD_INTERVAL",
            ("engine", "default_lag_minutes"): f"{ENV_PREFIX}ENGINE_DEFAULT_LAG",
            # Retry configuration
            ("retry", "max_attempts"): f"{ENV_PREFIX}RETRY_MAX_ATTEMPTS",
            ("retry", "base_delay_seconds"): f"{ENV_PREFIX}RETRY_BASE_DELAY",
            # Logging
            ("logging_level",): f"{ENV_PREFIX}LOGGING_LEVEL",
            ("json_logs",): f"{ENV_PREFIX}JSON_LOGS",
        }

        for path, env_var in env_overrides.items():
            value = os.environ.get(env_var)
            if value is not None:
                # Navigate to nested config section
                current = config_data
                for key in path[:-1]:
                    if not isinstance(current.get(key), dict):
                        current[key] = {}
                    current = current[key]

                # Pydantic coerces the remaining string values
                final_key = path[-1]
                if env_var.endswith("_JSON_LOGS"):
                    value = value.lower() in ("true", "1", "yes")

                current[final_key] = value
                logger.debug(
                    "env_override_applied",
                    env_var=env_var,
                    config_path=".".join(path),
                )

        return config_data

    def validate_config(self) -> list[str]:
        """Validate configuration and return list of warnings.

        Returns:
            List of validation warning messages (empty if no warnings)
        """
        warnings = []

        if self.retry.max_attempts == 1:
            warnings.append("Read retries are disabled (retry.max_attempts is 1)")

        if self.retry.base_delay_seconds > HIGH_RETRY_DELAY_THRESHOLD:
            warnings.append(
                f"Retry base delay is high ({self.retry.base_delay_seconds}s) - "
                "interactive reads may stall",
            )

        if self.engine.default_lag_minutes > 0:
            warnings.append(
                f"New dependencies default to {self.engine.default_lag_minutes} min lag",
            )

        return warnings


class ConfigManager:
    """Configuration manager using singleton pattern."""

    _instance: DepgraphConfig | None = None
    _init_lock: threading.Lock = threading.Lock()

    @classmethod
    def load_config(cls, config_path: str | Path | None = None) -> DepgraphConfig:
        """Load configuration from file.

        Args:
            config_path: Path to configuration file. If None, looks for
                depgraph.yaml or depgraph.yml in the current directory and
                falls back to defaults (plus environment overrides).

        Returns:
            Loaded DepgraphConfig instance

        Raises:
            FileNotFoundError: If an explicit config file is not found
            ValueError: If config file is invalid
        """
        if config_path is None:
            for default_name in ["depgraph.yaml", "depgraph.yml"]:
                default_path = Path(default_name)
                if default_path.exists():
                    config_path = default_path
                    break
            else:
                logger.debug("no_configuration_file_using_defaults")
                return DepgraphConfig.from_dict({})

        return DepgraphConfig.from_yaml(config_path)

    @classmethod
    def get_config(
        cls,
        config_path: str | Path | None = None,
        reload: bool = False,
    ) -> DepgraphConfig:
        """Get configuration instance (singleton pattern).

        Uses double-checked locking so concurrent threads load the file once.

        Args:
            config_path: Path to configuration file. Only used on first call or when reload=True.
            reload: If True, force reload configuration from file.

        Returns:
            DepgraphConfig instance
        """
        if cls._instance is not None and not reload:
            return cls._instance

        with cls._init_lock:
            if cls._instance is None or reload:
                cls._instance = cls.load_config(config_path)

            return cls._instance

    @classmethod
    def reset_config(cls) -> None:
        """Reset the configuration instance."""
        cls._instance = None


def load_config(config_path: str | Path | None = None) -> DepgraphConfig:
    """Load configuration from file."""
    return ConfigManager.load_config(config_path)


def get_config(config_path: str | Path | None = None, reload: bool = False) -> DepgraphConfig:
    """Get configuration instance (singleton pattern)."""
    return ConfigManager.get_config(config_path, reload)


def reset_config() -> None:
    """Reset the configuration instance."""
    ConfigManager.reset_config()


__all__ = [
    "DepgraphConfig",
    "EngineConfig",
    "RetrySettings",
    "get_config",
    "load_config",
    "reset_config",
]
