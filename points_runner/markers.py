"""Point declarations for test functions."""

import pytest

MARKER_NAME = "points"
MARKER_HELP = f"{MARKER_NAME}(value): points awarded when the test passes"


def points(value: int) -> pytest.MarkDecorator:
    """Declare how many points a test is worth.

    Equivalent to ``@pytest.mark.points(value)`` with the value checked up
    front.

    Raises:
        ValueError: If value is not a non-negative integer

    """
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"points must be a non-negative integer, got {value!r}")
    return getattr(pytest.mark, MARKER_NAME)(value)
