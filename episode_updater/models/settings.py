"""Settings model loaded from the .env file."""

import os
from pathlib import Path
from typing import Any, Mapping, Optional

from dotenv import dotenv_values
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from ..constants.config import (
    COOKIE_PLACEHOLDER,
    DEFAULT_API_BASE_URL,
    DEFAULT_CSV_DELIMITER,
    DEFAULT_CSV_FILE,
    DEFAULT_DELAY_MAX,
    DEFAULT_DELAY_MIN,
    DEFAULT_LOG_FILE,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_VERIFY_DELAY,
    ENV_EXAMPLE_FILE,
)
from ..exceptions import ConfigError


# Settings field name -> .env key
ENV_KEYS = {
    "cookie_string": "COOKIE_STRING",
    "show_id": "SHOW_ID",
    "csv_file": "CSV_FILE",
    "log_file": "LOG_FILE",
    "csv_delimiter": "CSV_DELIMITER",
    "api_base_url": "API_BASE_URL",
    "request_timeout": "REQUEST_TIMEOUT",
    "delay_min": "DELAY_MIN",
    "delay_max": "DELAY_MAX",
    "verify_delay": "VERIFY_DELAY",
    "debug": "DEBUG",
}


class Settings(BaseModel):
    """Pydantic model for the updater configuration."""

    cookie_string: str = Field(..., description="Session cookie sent with every API request")
    show_id: str = Field(..., description="Show identifier (presence is required)")
    csv_file: str = Field(default=DEFAULT_CSV_FILE, description="CSV file with the updates")
    log_file: str = Field(default=DEFAULT_LOG_FILE, description="File the run log is appended to")
    csv_delimiter: str = Field(default=DEFAULT_CSV_DELIMITER, description="CSV column delimiter")
    api_base_url: str = Field(default=DEFAULT_API_BASE_URL, description="Scheme and host of the API")
    request_timeout: float = Field(default=DEFAULT_REQUEST_TIMEOUT, gt=0, description="Total request timeout in seconds")
    delay_min: int = Field(default=DEFAULT_DELAY_MIN, ge=0, description="Minimum pause between rows")
    delay_max: int = Field(default=DEFAULT_DELAY_MAX, ge=0, description="Maximum pause between rows")
    verify_delay: float = Field(default=DEFAULT_VERIFY_DELAY, ge=0, description="Pause before the verification fetch")
    debug: bool = Field(default=False, description="Log raw API responses to the log file")

    @field_validator("cookie_string")
    @classmethod
    def check_cookie(cls, value: str) -> str:
        if not value.strip() or value == COOKIE_PLACEHOLDER:
            raise ValueError("not configured in .env file")
        return value

    @field_validator("show_id")
    @classmethod
    def check_show_id(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("not configured in .env file")
        return value

    @field_validator("csv_delimiter")
    @classmethod
    def check_delimiter(cls, value: str) -> str:
        if len(value) != 1:
            raise ValueError(f"must be a single character, got '{value}'")
        return value

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @model_validator(mode="after")
    def check_delay_bounds(self) -> "Settings":
        if self.delay_min > self.delay_max:
            raise ValueError(f"DELAY_MIN ({self.delay_min}) must not exceed DELAY_MAX ({self.delay_max})")
        return self

    @field_validator("debug", mode="before")
    @classmethod
    def parse_debug(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip() in ("1", "true", "True")
        return value

    @classmethod
    def from_values(cls, values: Mapping[str, Optional[str]], **overrides: Any) -> "Settings":
        """
        Build settings from raw .env-style values.

        Empty values are treated as unset so their defaults apply.

        Args:
            values: Mapping of .env keys (COOKIE_STRING, ...) to raw strings
            **overrides: Settings field values that take precedence (None is ignored)

        Raises:
            ConfigError: If a required key is missing or a value is invalid
        """
        data: dict[str, Any] = {}
        for field_name, env_key in ENV_KEYS.items():
            raw = values.get(env_key)
            if raw is not None and raw != "":
                data[field_name] = raw

        for required in ("cookie_string", "show_id"):
            if required not in data:
                raise ConfigError(f"{ENV_KEYS[required]} not configured in .env file")

        data.update({k: v for k, v in overrides.items() if v is not None})

        try:
            return cls(**data)
        except ValidationError as e:
            messages = []
            for err in e.errors():
                msg = err["msg"].removeprefix("Value error, ")
                if err["loc"]:
                    msg = f"{ENV_KEYS.get(str(err['loc'][0]), err['loc'][0])}: {msg}"
                messages.append(msg)
            raise ConfigError("; ".join(messages)) from e


def read_env_values(env_file: str | Path) -> dict[str, Optional[str]]:
    """Read .env values, with process environment variables taking precedence."""
    values: dict[str, Optional[str]] = dict(dotenv_values(env_file))
    for env_key in ENV_KEYS.values():
        if env_key in os.environ:
            values[env_key] = os.environ[env_key]
    return values


def load_settings(env_file: str | Path, **overrides: Any) -> Settings:
    """
    Load settings from a .env file, letting process environment variables win.

    Args:
        env_file: Path to the .env file
        **overrides: Settings field values from the command line

    Returns:
        Validated Settings

    Raises:
        ConfigError: If the file is missing or the configuration is invalid
    """
    env_path = Path(env_file)
    if not env_path.is_file():
        raise ConfigError(
            f".env file not found at {env_path}. "
            f"Please copy {ENV_EXAMPLE_FILE} to .env and configure it"
        )

    return Settings.from_values(read_env_values(env_path), **overrides)


def load_csv_options(
    env_file: str | Path,
    csv_file: Optional[str] = None,
    csv_delimiter: Optional[str] = None,
) -> tuple[str, str]:
    """
    Resolve the CSV file and delimiter for offline checks.

    Command-line values win, then environment variables, then the .env file
    (which is optional here), then the defaults. No credentials are needed.

    Raises:
        ConfigError: If the delimiter is not a single character
    """
    if Path(env_file).is_file():
        values = read_env_values(env_file)
    else:
        values = {key: os.environ[key] for key in ENV_KEYS.values() if key in os.environ}

    csv_file = csv_file or values.get(ENV_KEYS["csv_file"]) or DEFAULT_CSV_FILE
    csv_delimiter = csv_delimiter or values.get(ENV_KEYS["csv_delimiter"]) or DEFAULT_CSV_DELIMITER
    if len(csv_delimiter) != 1:
        raise ConfigError(f"CSV_DELIMITER: must be a single character, got '{csv_delimiter}'")
    return csv_file, csv_delimiter
