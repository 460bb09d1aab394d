"""Reflection resolver manifest."""

from points_runner.resolvers.manifest import ResolverManifest
from points_runner.resolvers.reflection.config import ReflectionResolverConfig
from points_runner.resolvers.reflection.resolver import ReflectionResolver

reflection_manifest = ResolverManifest(
    config_cls=ReflectionResolverConfig,
    resolver_factory=ReflectionResolver.from_config,
)
