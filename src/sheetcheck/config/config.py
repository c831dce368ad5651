"""
Configuration management for sheetcheck using Pydantic.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sheetcheck.models import RunConfiguration

log = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "sheetcheck/1.0 (+product-sheet-validator)"

# --- Nested Configuration Models ---


class FetchConfig(BaseModel):
    """HTTP fetching, politeness delay and retry policy."""

    delay_ms: int = Field(default=200, description="Pause before every HTTP request, in milliseconds.")
    timeout: float = Field(default=30.0, description="Per-request timeout in seconds.")
    max_attempts: int = Field(default=5, ge=1, description="Maximum attempts for retrying requests.")
    base_backoff_ms: int = Field(default=500, ge=0, description="Base wait of the exponential backoff.")
    jitter_ratio: float = Field(default=0.2, ge=0, le=1, description="Upper bound of the random jitter ratio.")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="User-Agent string for HTTP requests.")

    @field_validator("delay_ms")
    @classmethod
    def delay_must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("delay_ms must be a strictly positive integer")
        return v


class ValidationConfig(BaseModel):
    """Validation switches."""

    validate_pdf_links: bool = Field(default=True, description="Probe linked sheets to confirm they serve a PDF.")
    concurrency: int = Field(default=8, ge=1, description="Maximum number of URLs validated concurrently.")
    renderer: Literal["http", "browser"] = Field(default="http", description="Page rendering backend.")
    navigation_timeout: float = Field(default=30.0, description="Browser navigation timeout in seconds.")


class IOConfig(BaseModel):
    """Input and output file locations."""

    input_path: Path = Field(default=Path("input/products.csv"))
    output_path: Path = Field(default=Path("output/results.csv"))
    output_delimiter: str = Field(default=";", min_length=1, max_length=1)


class MonitoringConfig(BaseModel):
    """Logging and progress reporting."""

    log_level: str = Field(default="INFO", description="Logging level (e.g., DEBUG, INFO, WARNING).")
    log_file: str | None = Field(default=None, description="Path to log file. If None, logs to console.")
    progress_interval: float = Field(default=10.0, gt=0, description="Seconds between progress lines.")

    @field_validator("log_file", mode="before")
    @classmethod
    def create_parent_dir(cls, v: str | Path | None) -> str | None:
        if v is None:
            return None
        path = Path(v)
        path.parent.mkdir(parents=True, exist_ok=True)
        return str(path)


# --- Main Configuration Class ---


class Config(BaseSettings):
    project_name: str = "sheetcheck"
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    io: IOConfig = Field(default_factory=IOConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)

    model_config = SettingsConfigDict(env_prefix="SHEETCHECK_", env_nested_delimiter="__", case_sensitive=False)

    @classmethod
    def from_yaml(cls, path: Path) -> Config:
        log.debug("Loading configuration from YAML file: %s", path)
        if not path.is_file():
            raise FileNotFoundError(f"Configuration file not found or is not a file: {path}")
        with open(path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f)
        if not yaml_data:
            log.warning("Configuration file is empty: %s. Using default settings.", path)
            return cls.model_validate({})
        return cls.model_validate(yaml_data)

    def run_configuration(self) -> RunConfiguration:
        return RunConfiguration(
            validate_pdf_links=self.validation.validate_pdf_links,
            delay_ms=self.fetch.delay_ms,
            concurrency=self.validation.concurrency,
        )


def find_config_file() -> Path | None:
    current_dir = Path.cwd()
    for path in (current_dir / "sheetcheck.yaml", current_dir / "sheetcheck.yml"):
        if path.exists():
            return path
    return None


def load_config(path: Path | None = None) -> Config:
    """Load configuration from *path*, a discovered file, or defaults."""
    config_path = path or find_config_file()
    if config_path:
        log.info("Loading configuration from: %s", config_path)
        return Config.from_yaml(config_path)
    return Config()
