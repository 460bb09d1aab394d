"""Encoding and parsing of structured test identities.

An identity is a ``/``-separated path of ``[tag:value]`` segments, e.g.
``[engine:pytest]/[class:tests.test_math.TestAdd]/[method:test_add()]``.
Parametrized invocations use a ``test-template-invocation`` segment in place
of ``method``.
"""

from collections.abc import Sequence

SEGMENT_SEPARATOR = "/"

ENGINE_TAG = "engine"
CLASS_TAG = "class"
METHOD_TAG = "method"
TEMPLATE_INVOCATION_TAG = "test-template-invocation"
ITEM_TAG = "item"

METHOD_TAGS = frozenset({METHOD_TAG, TEMPLATE_INVOCATION_TAG})


def build_unique_id(segments: Sequence[tuple[str, str]]) -> str:
    """Join ``(tag, value)`` pairs into an identity string."""
    return SEGMENT_SEPARATOR.join(f"[{tag}:{value}]" for tag, value in segments)


def split_segments(unique_id: str) -> Sequence[tuple[str, str]]:
    """Split an identity into ``(tag, value)`` pairs.

    Parts without a ``tag:`` prefix are kept with an empty tag so that a
    separator inside a value never shifts the segments that follow it.
    """
    segments: list[tuple[str, str]] = []
    for part in unique_id.split(SEGMENT_SEPARATOR):
        body = part.removeprefix("[").removesuffix("]")
        tag, sep, value = body.partition(":")
        segments.append((tag, value) if sep else ("", body))
    return segments


def parse_test_class(unique_id: str) -> str | None:
    """Return the declaring type name encoded in an identity, if any."""
    for tag, value in split_segments(unique_id):
        if tag == CLASS_TAG:
            return value or None
    return None


def parse_test_method(unique_id: str) -> str | None:
    """Return the test method name encoded in an identity, if any.

    Any parameter-list suffix such as ``(1-2)`` is stripped.
    """
    for tag, value in split_segments(unique_id):
        if tag in METHOD_TAGS:
            return value.split("(", 1)[0] or None
    return None
