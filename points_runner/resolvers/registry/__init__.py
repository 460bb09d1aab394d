"""Registry resolver module."""

from points_runner.resolvers.registry.config import RegistryResolverConfig
from points_runner.resolvers.registry.manifest import registry_manifest
from points_runner.resolvers.registry.resolver import RegistryResolver

__all__ = ["RegistryResolver", "RegistryResolverConfig", "registry_manifest"]
