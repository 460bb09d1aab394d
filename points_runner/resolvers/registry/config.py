"""Configuration for the registry resolver."""

from pathlib import Path

from pydantic import BaseModel, Field


class RegistryResolverConfig(BaseModel):
    """Configuration for the registry resolver."""

    path: Path = Field(..., description="Path to the YAML points file")
