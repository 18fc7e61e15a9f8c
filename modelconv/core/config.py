"""Configuration management for modelconv using Pydantic."""

import os
from pathlib import Path
from typing import Literal, Optional

import tomli
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from modelconv import __version__
from modelconv.core.exceptions import ConfigurationError

CONFIG_ENV_VAR = "MODELCONV_CONFIG"


class ConversionConfig(BaseModel):
    """Configuration for format resolution and metadata stamping."""

    model_config = ConfigDict(frozen=True)

    default_output_format: str = Field(
        "stla", description="Output format used when neither -of nor -o is given"
    )
    producer: str = Field(
        f"modelconv {__version__}", description="Producer string embedded in outputs"
    )

    @field_validator("default_output_format")
    @classmethod
    def validate_default_output_format(cls, v: str) -> str:
        """Ensure the default output format is an encodable token."""
        from modelconv.core.formats import OUTPUT_FORMATS

        v = v.lower()
        if v not in OUTPUT_FORMATS:
            raise ValueError(
                f"default_output_format must be one of {', '.join(sorted(OUTPUT_FORMATS))}"
            )
        return v


class SandboxConfig(BaseModel):
    """Configuration for model script evaluation."""

    model_config = ConfigDict(frozen=True)

    timeout: int = Field(30, ge=1, description="Script execution timeout (seconds)")
    allow_includes: bool = Field(True, description="Allow include() in model scripts")
    max_include_depth: int = Field(8, ge=0, description="Maximum nested include depth")
    max_include_bytes: int = Field(
        1_000_000, ge=1, description="Maximum size of a single included file"
    )


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    model_config = ConfigDict(frozen=True)

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "WARNING", description="Logging level"
    )
    format: Literal["json", "console", "plain"] = Field(
        "console", description="Log format"
    )
    colorize: bool = Field(True, description="Colorize console output on a TTY")
    add_caller_info: bool = Field(False, description="Add file/line/function to events")
    timestamp_format: str = Field("iso", description="structlog TimeStamper format")
    log_file: Optional[Path] = Field(None, description="Optional JSON log file")


class Config(BaseModel):
    """Main configuration for modelconv."""

    model_config = ConfigDict(frozen=True)

    conversion: ConversionConfig = Field(
        default_factory=ConversionConfig, description="Conversion configuration"
    )
    sandbox: SandboxConfig = Field(
        default_factory=SandboxConfig, description="Sandbox configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )

    @classmethod
    def from_toml(cls, path: Path | str) -> "Config":
        """Load configuration from TOML file.

        Args:
            path: Path to TOML configuration file

        Returns:
            Config instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ConfigurationError: If the file is not valid TOML or fails validation
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, "rb") as f:
            try:
                data = tomli.load(f)
            except tomli.TOMLDecodeError as e:
                raise ConfigurationError(f"Invalid TOML in {path}: {e}")

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> "Config":
        """Create configuration from dictionary.

        Args:
            data: Configuration dictionary

        Returns:
            Config instance
        """
        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}", {"errors": e.errors()})

    def to_dict(self) -> dict:
        """Convert configuration to dictionary."""
        return self.model_dump(mode="json", exclude_none=True)

    def save_toml(self, path: Path | str) -> None:
        """Save configuration to TOML file.

        Args:
            path: Path to save TOML file
        """
        import tomli_w

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "wb") as f:
            tomli_w.dump(self.to_dict(), f)


def get_default_config() -> Config:
    """Get default configuration."""
    return Config()


def load_config(path: Optional[Path | str] = None) -> Config:
    """Load configuration from file, the environment, or return defaults.

    Args:
        path: Optional path to configuration file. Falls back to the
            ``MODELCONV_CONFIG`` environment variable.

    Returns:
        Config instance
    """
    path = path or os.environ.get(CONFIG_ENV_VAR)
    if path:
        return Config.from_toml(path)
    return get_default_config()
