"""
Pydantic-based configuration for the bookmark manager.

Settings are grouped by concern (archiving, views, reserved collections,
logging) and loaded from a TOML or JSON file, with a couple of environment
variable fallbacks for values that are commonly set per machine.
"""

import json
import os
from pathlib import Path
from typing import Dict, List, Literal, Optional

import toml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from ..utils.error_handler import ConfigurationError

ENV_PROXY_URL = "BOOKMARK_MANAGER_PROXY_URL"
ENV_LOG_LEVEL = "BOOKMARK_MANAGER_LOG_LEVEL"

SortOrder = Literal["newest", "oldest", "most-visited", "title"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class ArchiveConfig(BaseModel):
    """Page archiving settings."""

    proxy_url: str = Field(
        default="https://api.allorigins.win/raw",
        description="Proxy endpoint; the page URL is passed as its 'url' parameter",
    )
    timeout: float = Field(
        default=30.0,
        ge=1,
        le=300,
        description="Proxy request timeout in seconds",
        json_schema_extra={
            "error_msg": "Timeout must be between 1 and 300 seconds. "
            "Recommended: 30 seconds."
        },
    )
    max_retries: int = Field(
        default=0,
        ge=0,
        le=5,
        description="Retries for transport errors (validation failures are never retried)",
    )
    retry_base_delay: float = Field(
        default=1.0,
        ge=0,
        le=30,
        description="Base delay in seconds for exponential backoff between retries",
    )
    min_content_length: int = Field(
        default=1000,
        ge=1,
        description="Shortest response body accepted as a complete page",
    )

    @field_validator("proxy_url")
    @classmethod
    def validate_proxy_url(cls, v):
        """Proxy must be an absolute http(s) URL without its own query string."""
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("Proxy URL must start with http:// or https://")
        if "?" in v:
            raise ValueError("Proxy URL must not include a query string")
        return v


class ViewConfig(BaseModel):
    """Dashboard view defaults."""

    default_sort: SortOrder = Field(default="newest", description="Initial sort order")
    abandoned_after_days: int = Field(
        default=30,
        ge=1,
        le=3650,
        description="Days without a visit before a bookmark counts as abandoned",
    )
    frequently_visited_limit: int = Field(
        default=4,
        ge=0,
        le=50,
        description="Number of bookmarks in the frequently visited strip",
    )


class CollectionConfig(BaseModel):
    """Reserved folder and category identifiers."""

    private_folder_id: str = Field(default="private", min_length=1)
    reading_list_category_id: str = Field(default="reading", min_length=1)


class LoggingConfig(BaseModel):
    level: LogLevel = Field(default="INFO", description="Root log level")
    log_file: Optional[Path] = Field(default=None, description="Explicit log file path")
    log_dir: Path = Field(default=Path("logs"), description="Directory for timestamped logs")

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v):
        if isinstance(v, str):
            return v.upper()
        return v


class ManagerConfig(BaseModel):
    """Top-level configuration."""

    user_id: str = Field(default="local", min_length=1, description="Owner of the loaded store")
    archive: ArchiveConfig = Field(default_factory=ArchiveConfig)
    view: ViewConfig = Field(default_factory=ViewConfig)
    collections: CollectionConfig = Field(default_factory=CollectionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def validate_retry_delay(self):
        """Reject retry settings whose final backoff dwarfs the request timeout."""
        if self.archive.max_retries > 0 and self.archive.retry_base_delay * (
            2 ** self.archive.max_retries
        ) > 10 * self.archive.timeout:
            raise ValueError("Retry backoff would exceed ten times the request timeout")
        return self


class ConfigurationManager:
    """Loads and validates configuration from a file, defaults and environment."""

    DEFAULT_FILENAMES = ("bookmark_manager.toml", "bookmark_manager.json")

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize configuration manager.

        Args:
            config_path: Optional path to configuration file (TOML or JSON)

        Raises:
            ConfigurationError: If the file cannot be read or fails validation
        """
        self._config: Optional[ManagerConfig] = None
        self.source: Optional[Path] = None
        self._load_configuration(Path(config_path) if config_path else None)

    def _get_default_config_paths(self) -> List[Path]:
        return [Path.cwd() / name for name in self.DEFAULT_FILENAMES]

    def _load_configuration(self, config_path: Optional[Path] = None) -> None:
        config_data: Dict = {}

        try:
            if config_path:
                config_data = self._load_config_file(config_path)
                self.source = config_path
            else:
                for path in self._get_default_config_paths():
                    if path.exists():
                        config_data = self._load_config_file(path)
                        self.source = path
                        break

            self._load_env_overrides(config_data)
            self._config = ManagerConfig(**config_data)
        except (ValidationError, FileNotFoundError, ValueError) as e:
            raise ConfigurationError(format_config_error(e)) from e

    def _load_config_file(self, config_path: Path) -> Dict:
        """Load configuration from TOML or JSON file."""
        if not config_path.exists():
            raise FileNotFoundError(2, "No such file", str(config_path))

        suffix = config_path.suffix.lower()
        if suffix not in (".toml", ".json"):
            raise ValueError(f"Unsupported configuration file format: {config_path.suffix}")

        try:
            if suffix == ".toml":
                return toml.load(config_path)
            with open(config_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (toml.TomlDecodeError, json.JSONDecodeError, OSError) as e:
            raise ValueError(f"Failed to load configuration from {config_path}: {e}")

    def _load_env_overrides(self, config_data: Dict) -> None:
        """Environment values apply only where the file leaves a setting unset."""
        proxy_url = os.getenv(ENV_PROXY_URL)
        if proxy_url:
            config_data.setdefault("archive", {}).setdefault("proxy_url", proxy_url)

        log_level = os.getenv(ENV_LOG_LEVEL)
        if log_level:
            config_data.setdefault("logging", {}).setdefault("level", log_level)

    def update_from_cli_args(self, args: Dict) -> None:
        """Apply command-line overrides on top of the loaded configuration."""
        config_dict = self.config.model_dump()

        if args.get("log_level"):
            config_dict["logging"]["level"] = args["log_level"]
        if args.get("proxy_url"):
            config_dict["archive"]["proxy_url"] = args["proxy_url"]
        if args.get("max_retries") is not None:
            config_dict["archive"]["max_retries"] = args["max_retries"]
        if args.get("user_id"):
            config_dict["user_id"] = args["user_id"]

        try:
            self._config = ManagerConfig(**config_dict)
        except ValidationError as e:
            raise ConfigurationError(format_config_error(e)) from e

    @property
    def config(self) -> ManagerConfig:
        if not self._config:
            raise RuntimeError("Configuration not loaded")
        return self._config

    @staticmethod
    def create_sample_config(output_path: Path, format: str = "toml") -> None:
        """Write a sample configuration file with every default spelled out."""
        sample_config = ManagerConfig().model_dump(mode="json", exclude_none=True)

        if format.lower() == "toml":
            with open(output_path, "w", encoding="utf-8") as f:
                toml.dump(sample_config, f)
        elif format.lower() == "json":
            with open(output_path, "w", encoding="utf-8") as f:
                json.dump(sample_config, f, indent=2)
        else:
            raise ValueError(f"Unsupported format: {format}")


class ConfigurationErrorFormatter:
    """Formats Pydantic validation errors into user-friendly messages."""

    @staticmethod
    def format_validation_error(error: ValidationError) -> str:
        """
        Convert Pydantic ValidationError into a user-friendly error message.

        Args:
            error: Pydantic ValidationError instance

        Returns:
            Formatted error message with one line per invalid field
        """
        error_messages = []

        for error_detail in error.errors():
            location = ConfigurationErrorFormatter._format_error_location(error_detail["loc"])
            error_messages.append(
                ConfigurationErrorFormatter._format_by_error_type(
                    location,
                    error_detail["type"],
                    error_detail,
                    error_detail.get("input", "N/A"),
                )
            )

        header = "Configuration Validation Failed:\n"
        separator = "-" * 60 + "\n"
        footer = (
            "\n\nTips:\n"
            "- Check the configuration file format (TOML or JSON)\n"
            "- Ensure numeric values are within the allowed ranges\n"
            "- Use 'bookmark-manager create-config' to generate a sample file"
        )

        return header + separator + "\n".join(error_messages) + footer

    @staticmethod
    def _format_error_location(location: tuple) -> str:
        if not location:
            return "Configuration"
        return " -> ".join(str(part) if isinstance(part, str) else f"[{part}]" for part in location)

    @staticmethod
    def _format_by_error_type(location: str, error_type: str, error_detail: dict, input_value) -> str:
        if error_type == "missing":
            return f"* {location}: Required field is missing"

        if error_type in (
            "greater_than_equal",
            "less_than_equal",
            "greater_than",
            "less_than",
        ):
            ctx = error_detail.get("ctx", {})
            limit = next(iter(ctx.values()), "limit")
            operator = {
                "greater_than_equal": ">=",
                "less_than_equal": "<=",
                "greater_than": ">",
                "less_than": "<",
            }[error_type]
            return f"* {location}: Value must be {operator} {limit} (got: {input_value})"

        if error_type == "literal_error":
            expected = error_detail.get("ctx", {}).get("expected", "valid option")
            return f"* {location}: Must be one of {expected} (got: {input_value})"

        if error_type == "string_too_short":
            return f"* {location}: Value cannot be empty"

        msg = error_detail.get("msg", "Invalid configuration value")
        return f"* {location}: {msg} (got: {input_value})"


def format_config_error(error: Exception) -> str:
    """
    Format any configuration-related error into a user-friendly message.

    Args:
        error: Exception that occurred during configuration

    Returns:
        Formatted error message
    """
    if isinstance(error, ValidationError):
        return ConfigurationErrorFormatter.format_validation_error(error)

    if isinstance(error, FileNotFoundError):
        return (
            "Configuration File Not Found:\n"
            f"* Could not find configuration file: {error.filename}\n\n"
            "Solutions:\n"
            "- Create a configuration file using: bookmark-manager create-config\n"
            "- Use default configuration by omitting the --config parameter"
        )

    if isinstance(error, ValueError):
        return f"Configuration Error:\n* {error}"

    return f"Unexpected Configuration Error:\n* {error}"
