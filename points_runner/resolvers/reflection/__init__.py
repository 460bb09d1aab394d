"""Reflection resolver module."""

from points_runner.resolvers.reflection.config import ReflectionResolverConfig
from points_runner.resolvers.reflection.manifest import reflection_manifest
from points_runner.resolvers.reflection.resolver import ReflectionResolver

__all__ = ["ReflectionResolver", "ReflectionResolverConfig", "reflection_manifest"]
