"""Abstract base class for point value resolvers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True, kw_only=True)
class PointsResolver(ABC):
    """Looks up the points declared for a test.

    Implementations are read-only: resolving never changes the resolver or the
    code it inspects.
    """

    @abstractmethod
    def resolve(self, type_name: str, method_name: str) -> int:
        """Return the points declared for ``type_name#method_name``.

        Args:
            type_name: Dotted name of the declaring type, e.g.
                "tests.test_math.TestAdd", or of the module for plain
                test functions
            method_name: Name of the test function

        Returns:
            Declared points, 0 when the test declares none

        Raises:
            LookupError: If the declaring type cannot be located

        """
