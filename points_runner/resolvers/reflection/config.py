"""Configuration for the reflection resolver."""

from pydantic import BaseModel, Field


class ReflectionResolverConfig(BaseModel):
    """Configuration for the reflection resolver."""

    marker_name: str = Field(
        default="points", description="Name of the pytest mark carrying points"
    )
