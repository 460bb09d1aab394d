"""Resolver lookup through the ``points_runner.resolvers`` entry point group."""

from importlib.metadata import entry_points
from typing import Any

from points_runner.resolvers.manifest import ResolverManifest

ENTRY_POINT_GROUP = "points_runner.resolvers"


class ResolverNotFoundError(LookupError):
    """Raised when no resolver is registered under a key."""

    def __init__(self, key: str, available: list[str]) -> None:
        self.key = key
        self.available = available
        super().__init__(
            f"Resolver '{key}' not found. "
            f"Available resolvers: {', '.join(available) or 'none'}"
        )


def available_resolvers() -> list[str]:
    """Return the sorted keys of all installed resolvers."""
    return sorted(entry_points(group=ENTRY_POINT_GROUP).names)


def load_resolver_manifest(key: str) -> ResolverManifest[Any]:
    """Load the manifest registered under ``key`` (e.g. "reflection").

    Raises:
        ResolverNotFoundError: If no installed distribution registers ``key``

    """
    entries = entry_points(group=ENTRY_POINT_GROUP)
    if key not in entries.names:
        raise ResolverNotFoundError(key, sorted(entries.names))

    manifest: ResolverManifest[Any] = entries[key].load()
    return manifest
