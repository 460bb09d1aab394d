"""Registry resolver manifest."""

from points_runner.resolvers.manifest import ResolverManifest
from points_runner.resolvers.registry.config import RegistryResolverConfig
from points_runner.resolvers.registry.resolver import RegistryResolver

registry_manifest = ResolverManifest(
    config_cls=RegistryResolverConfig,
    resolver_factory=RegistryResolver.from_config,
)
