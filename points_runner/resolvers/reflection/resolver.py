"""Resolve points by introspecting test functions and their pytest marks."""

import importlib
import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from types import ModuleType
from typing import Any

from points_runner.resolvers.base import PointsResolver
from points_runner.resolvers.reflection.config import ReflectionResolverConfig

log = logging.getLogger(__name__)

ModuleLoader = Callable[[str], ModuleType]


def _is_parent_module(missing: str | None, module_name: str) -> bool:
    if missing is None:
        return False
    return module_name == missing or module_name.startswith(f"{missing}.")


def _unwrap(member: Any) -> Any:
    if isinstance(member, (staticmethod, classmethod)):
        return member.__func__
    return member


def _iter_marks(function: Any) -> Iterator[Any]:
    marks = getattr(function, "pytestmark", None) or []
    if not isinstance(marks, (list, tuple)):
        marks = [marks]
    for mark in marks:
        # MarkDecorator wraps the Mark in ``.mark``
        yield getattr(mark, "mark", mark)


@dataclass(frozen=True, kw_only=True)
class ReflectionResolver(PointsResolver):
    """Reads points from the ``points`` mark on the test function.

    Modules are obtained through ``loader`` rather than any ambient import
    context, so callers decide where test code comes from. Resolution is by
    name only: per-parameter marks and class-level marks are not consulted.
    """

    marker_name: str = "points"
    loader: ModuleLoader = field(default=importlib.import_module, repr=False)

    @classmethod
    def from_config(cls, config: ReflectionResolverConfig) -> "ReflectionResolver":
        """Create resolver from configuration."""
        return cls(marker_name=config.marker_name)

    def resolve(self, type_name: str, method_name: str) -> int:
        """Return the points declared on ``type_name.method_name``."""
        owner = self.load_type(type_name)
        function = self.find_method(owner, method_name)
        if function is None:
            log.debug("No method %s found on %s", method_name, type_name)
            return 0
        return self.read_points(function)

    def load_type(self, type_name: str) -> Any:
        """Locate a module or class by its dotted name.

        The longest importable prefix is taken as the module; the remaining
        parts are looked up as nested attributes.

        Raises:
            LookupError: If no prefix can be imported or an attribute is missing

        """
        parts = type_name.split(".")
        for split in range(len(parts), 0, -1):
            module_name = ".".join(parts[:split])
            try:
                owner: Any = self.loader(module_name)
            except ModuleNotFoundError as exc:
                if _is_parent_module(exc.name, module_name):
                    continue
                raise

            for attribute in parts[split:]:
                try:
                    owner = getattr(owner, attribute)
                except AttributeError:
                    raise LookupError(
                        f"Cannot locate type '{type_name}': "
                        f"'{attribute}' not found in {owner!r}"
                    ) from None
            return owner

        raise LookupError(f"Cannot locate type '{type_name}': no importable module")

    def find_method(self, owner: Any, method_name: str) -> Any | None:
        """Find a function by name on a class hierarchy or module.

        Classes are searched along the MRO, most-derived first, including
        private names. If that fails, public attributes are tried as a fallback.
        """
        if isinstance(owner, type):
            for klass in owner.__mro__:
                if method_name in vars(klass):
                    return _unwrap(vars(klass)[method_name])
        elif isinstance(owner, ModuleType):
            if method_name in vars(owner):
                return vars(owner)[method_name]

        if method_name.startswith("_"):
            return None

        candidate = getattr(owner, method_name, None)
        return candidate if callable(candidate) else None

    def read_points(self, function: Any) -> int:
        """Return the value of the first matching mark, or 0 if absent."""
        for mark in _iter_marks(function):
            if getattr(mark, "name", None) != self.marker_name:
                continue

            if mark.args:
                value = mark.args[0]
            else:
                value = mark.kwargs.get("value", 0)

            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                log.warning(
                    "Ignoring invalid %s value %r on %s",
                    self.marker_name,
                    value,
                    getattr(function, "__qualname__", function),
                )
                return 0
            return value

        return 0
