"""Resolve points from a points file instead of the test code."""

import logging
from dataclasses import dataclass
from pathlib import Path

import yaml

from points_runner.resolvers.base import PointsResolver
from points_runner.resolvers.registry.config import RegistryResolverConfig
from points_runner.resolvers.registry.models import PointsRegistry

log = logging.getLogger(__name__)


def load_points_registry(path: Path) -> PointsRegistry:
    """Load and validate a YAML points file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is empty or not a mapping

    """
    data = yaml.safe_load(path.read_text())
    if not isinstance(data, dict):
        raise ValueError(f"Points file {path} must contain a mapping")
    return PointsRegistry.model_validate(data)


@dataclass(frozen=True, kw_only=True)
class RegistryResolver(PointsResolver):
    """Looks up points in a registry loaded ahead of the run."""

    registry: PointsRegistry

    @classmethod
    def from_config(cls, config: RegistryResolverConfig) -> "RegistryResolver":
        """Create resolver from configuration."""
        registry = load_points_registry(config.path)
        log.info(
            "Loaded %d point declaration(s) from %s",
            len(registry.points),
            config.path,
        )
        return cls(registry=registry)

    def resolve(self, type_name: str, method_name: str) -> int:
        """Return the registered points for ``type_name#method_name``."""
        return self.registry.points.get(f"{type_name}#{method_name}", 0)
