"""Resolver manifest definition for the plugin system."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import BaseModel

from points_runner.resolvers.base import PointsResolver

ConfigT = TypeVar("ConfigT", bound=BaseModel)


@dataclass(frozen=True, kw_only=True)
class ResolverManifest(Generic[ConfigT]):
    """Manifest describing a resolver plugin.

    The manifest contains references to the configuration class and the
    resolver factory function for lazy loading of resolvers based on their key.
    """

    config_cls: type[ConfigT]
    resolver_factory: Callable[[ConfigT], PointsResolver]

    def create(self, config_json: str = "{}") -> PointsResolver:
        """Validate a JSON configuration and build the resolver from it."""
        config = self.config_cls.model_validate_json(config_json)
        return self.resolver_factory(config)
