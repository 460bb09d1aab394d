"""Models for points files."""

from collections.abc import Mapping

from pydantic import Field, NonNegativeInt

from points_runner.models.base import Model


class PointsRegistry(Model):
    """Points declared out of band, keyed by ``<type>#<method>``."""

    version: str = Field(..., description="Points file schema version")
    points: Mapping[str, NonNegativeInt] = Field(
        default_factory=dict, description="Points per test name"
    )
