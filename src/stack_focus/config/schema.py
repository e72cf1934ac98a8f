"""Pydantic models for configuration schema."""

import re
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.builder import DEFAULT_THRESHOLD


class RenameRuleConfig(BaseModel):
    """A rename rule: frames matching ``pattern`` are rewritten with ``replacement``."""

    pattern: str
    replacement: str

    @field_validator("pattern")
    @classmethod
    def validate_pattern(cls, v: str) -> str:
        """Validate that the pattern compiles."""
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid rename regex {v!r}: {e.msg}") from e
        return v

    @model_validator(mode="after")
    def check_template(self) -> "RenameRuleConfig":
        """Validate that the replacement only references existing groups."""
        from ..core.rewriter import RenameRule
        from ..utils.errors import ConfigError

        try:
            RenameRule.compile(self.pattern, self.replacement)
        except ConfigError as e:
            raise ValueError(str(e)) from e
        return self

    def as_pair(self) -> tuple[str, str]:
        return (self.pattern, self.replacement)


class FileLoggingConfig(BaseModel):
    """File logging configuration."""

    enabled: bool = False
    path: Path = Path("stack-focus.log")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    format: Literal["json", "console"] = "console"
    file: FileLoggingConfig = FileLoggingConfig()


class RuntimeConfig(BaseModel):
    """Aggregation runtime configuration."""

    workers: int = Field(1, ge=1, le=64, description="Worker processes for aggregation")
    chunk_size: int = Field(5000, ge=1, description="Samples per worker chunk")


class ReportConfig(BaseModel):
    """Tree, flat and histogram display options."""

    max_depth: int | None = Field(None, ge=1, description="Tree levels printed before eliding")
    min_percent: float = Field(
        0.0, ge=0, le=100, description="Tree cutoff and flat rollup threshold"
    )
    frequency: float | None = Field(None, gt=0, description="Sampling frequency in Hz")


class FocusConfig(BaseSettings):
    """Root configuration for stack-focus."""

    threshold: int = Field(DEFAULT_THRESHOLD, ge=1, description="Functions kept in reports")
    innermost_first: bool = False
    rename: list[RenameRuleConfig] = []
    logging: LoggingConfig = LoggingConfig()
    report: ReportConfig = ReportConfig()
    runtime: RuntimeConfig = RuntimeConfig()

    model_config = SettingsConfigDict(
        env_prefix="STACK_FOCUS_",
        env_nested_delimiter="__",
    )
