"""Configuration management for oaslint using Pydantic models."""

import json
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from oaslint.models.finding import RuleSeverity

CONFIG_FILE_NAME = ".oaslint.json"

BUNDLED_RULESETS_DIR = Path(__file__).parent / "rulesets"


class OutputFormat(str, Enum):
    """Output format types."""
    TABLE = "table"
    JSON = "json"
    MARKDOWN = "markdown"
    ROBOT = "robot"


class LogLevel(str, Enum):
    """Logging levels."""
    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    DEBUG = "debug"
    TRACE = "trace"


class RulesConfig(BaseModel):
    """Rule catalog configuration section."""
    dir: str = str(BUNDLED_RULESETS_DIR)
    ruleset: str = "default"
    manual_dir: str | None = Field(alias="manualDir", default=None)

    @field_validator("ruleset")
    @classmethod
    def validate_ruleset(cls, v):
        if not v or not v.strip():
            raise ValueError("ruleset must not be empty")
        return v

    model_config = ConfigDict(populate_by_name=True)


class EngineConfig(BaseModel):
    """Rule execution configuration section."""
    check_timeout: float = Field(alias="checkTimeout", default=10.0)
    dedupe: bool = True

    @field_validator("check_timeout")
    @classmethod
    def validate_check_timeout(cls, v):
        if v <= 0:
            raise ValueError("check_timeout must be > 0")
        return v

    model_config = ConfigDict(populate_by_name=True)


class ComparisonConfig(BaseModel):
    """Comparison document configuration section (compatibility checks)."""
    enabled: bool = True
    baseline_dir: str = Field(alias="baselineDir", default=".oaslint-baselines")
    cache_ttl: float = Field(alias="cacheTtl", default=300.0)
    cache_size: int = Field(alias="cacheSize", default=16)
    services: dict[str, str] = Field(default_factory=dict)

    @field_validator("cache_ttl")
    @classmethod
    def validate_cache_ttl(cls, v):
        if v < 0:
            raise ValueError("cache_ttl must be >= 0")
        return v

    @field_validator("cache_size")
    @classmethod
    def validate_cache_size(cls, v):
        if v < 1:
            raise ValueError("cache_size must be >= 1")
        return v

    model_config = ConfigDict(populate_by_name=True)


class OutputConfig(BaseModel):
    """Output configuration section."""
    format: OutputFormat = OutputFormat.TABLE
    fail_on: RuleSeverity = Field(alias="failOn", default=RuleSeverity.HIGH)

    model_config = ConfigDict(populate_by_name=True)


class DiagnosticsConfig(BaseModel):
    """Run diagnostics configuration section."""
    errors_dir: str | None = Field(alias="errorsDir", default=None)

    model_config = ConfigDict(populate_by_name=True)


class LoggingConfig(BaseModel):
    """Logging configuration section."""
    level: LogLevel = LogLevel.WARN

    model_config = ConfigDict(use_enum_values=True)


class OaslintConfig(BaseModel):
    """Complete oaslint configuration model."""
    rules: RulesConfig = Field(default_factory=RulesConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    comparison: ComparisonConfig = Field(default_factory=ComparisonConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    diagnostics: DiagnosticsConfig = Field(default_factory=DiagnosticsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(extra="forbid")


def load_config(config_path: str | Path | None = None) -> OaslintConfig:
    """Load configuration from file with fallback to defaults.

    Args:
        config_path: Optional path to configuration file. If None, searches
                    current directory and parents for .oaslint.json

    Returns:
        OaslintConfig: Loaded and validated configuration

    Raises:
        ValueError: If configuration is invalid
    """
    if config_path is None:
        config_path = find_config_file()
    else:
        config_path = Path(config_path)

    if config_path and config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                config_data = json.load(f)
            return OaslintConfig(**config_data)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in config file {config_path}: {e}")
        except Exception as e:
            raise ValueError(f"Failed to load config from {config_path}: {e}")
    else:
        return create_default_config()


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Find .oaslint.json configuration file by searching up directory tree.

    Args:
        start_dir: Directory to start search from (default: current directory)

    Returns:
        Path to config file if found, None otherwise
    """
    if start_dir is None:
        start_dir = Path.cwd()

    current = Path(start_dir).resolve()

    while True:
        config_file = current / CONFIG_FILE_NAME
        if config_file.exists():
            return config_file

        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def create_default_config() -> OaslintConfig:
    """Create default configuration (bundled default ruleset)."""
    return OaslintConfig()
