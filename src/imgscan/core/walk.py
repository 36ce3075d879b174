"""Checked accessors used to walk the untyped structures parsed from YAML.

Every accessor returns `None` instead of raising when the value has an
unexpected shape, so that a malformed manifest is skipped rather than
aborting a scan.
"""
from typing import Any, List, Mapping, Optional, Sequence

__all__ = ["as_mapping", "as_sequence", "as_string", "get_in", "mappings"]


def as_mapping(value: Any) -> Optional[Mapping[str, Any]]:
    """Returns the value if it is a mapping, otherwise `None`."""
    if isinstance(value, Mapping):
        return value

    return None


def as_sequence(value: Any) -> Optional[Sequence[Any]]:
    """Returns the value if it is a list-like sequence, otherwise `None`.

    Strings and bytes are sequences for Python but never for a manifest.
    """
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        return value

    return None


def as_string(value: Any) -> Optional[str]:
    """Returns the value if it is a string, otherwise `None`."""
    if isinstance(value, str):
        return value

    return None


def get_in(value: Any, *keys: str) -> Any:
    """Follows a path of keys through nested mappings.

    Arguments:
        value: the root of the structure.
        keys: the keys to follow, in order.

    Returns:
        The value found at the end of the path or `None` if any of the
        intermediate values is missing or is not a mapping.
    """
    current = value

    for key in keys:
        mapping = as_mapping(current)
        if mapping is None:
            return None

        current = mapping.get(key)

    return current


def mappings(value: Any) -> List[Mapping[str, Any]]:
    """Returns the mapping items of a sequence, dropping anything else.

    A value that is not a sequence produces an empty list.
    """
    items = as_sequence(value)
    if items is None:
        return []

    return [item for item in items if isinstance(item, Mapping)]
