"""
Pydantic models for skillmatrix configuration.

Defines all configuration schemas using Pydantic v2 for validation,
defaults, and serialization.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class CatalogConfig(BaseModel):
    """Where the skill catalog comes from."""

    sources: list[Path] = Field(
        default_factory=list,
        description=(
            "Catalog YAML files in precedence order. A later file replaces skills "
            "of the same id and may append subcategories."
        ),
    )

    model_config = {"extra": "forbid"}

    @field_validator("sources", mode="before")
    @classmethod
    def _single_path(cls, value):
        if isinstance(value, (str, Path)):
            return [value]
        return value


class LoggingConfig(BaseModel):
    """Logging system configuration."""

    level: Literal["debug", "info", "warn", "error"] = "warn"
    file: Path | None = None
    verbose: int = 0

    model_config = {"extra": "forbid"}


class AppConfig(BaseModel):
    """Root configuration."""

    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"extra": "forbid"}
