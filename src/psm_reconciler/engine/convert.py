"""Primitive converters between sequences and native values.

Accessors are typed: a value of the wrong type raises ConversionError
instead of being stringified.
"""
from typing import Any, Iterable, Optional


class ConversionError(ValueError):
    """A raw value does not have the expected type."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def string_list(value: Any, path: str = "") -> list[str]:
    """Convert a sequence of strings to a list, rejecting other items."""
    if value is None:
        return []
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        raise ConversionError(path, f"expected a list of strings, got {type(value).__name__}")

    result = []
    for i, item in enumerate(value):
        if not isinstance(item, str):
            raise ConversionError(
                f"{path}[{i}]", f"expected a string, got {type(item).__name__}"
            )
        result.append(item)
    return result


def string_set(values: Iterable[str]) -> list[str]:
    """De-duplicate strings, keeping first-seen order."""
    seen: set[str] = set()
    result = []
    for v in values:
        if v not in seen:
            seen.add(v)
            result.append(v)
    return result


def get_str(
    mapping: dict[str, Any],
    key: str,
    default: str = "",
    path: str = "",
) -> str:
    """Get a string field. Numbers are accepted (YAML writes ``3600`` unquoted)."""
    value = mapping.get(key)
    if value is None:
        return default
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise ConversionError(_join(path, key), f"expected a string, got {type(value).__name__}")


def get_optional_str(mapping: dict[str, Any], key: str, path: str = "") -> Optional[str]:
    """Like get_str, but missing and empty values become None."""
    return non_empty(get_str(mapping, key, "", path))


def get_bool(
    mapping: dict[str, Any],
    key: str,
    default: bool = False,
    path: str = "",
) -> bool:
    value = mapping.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    raise ConversionError(_join(path, key), f"expected a boolean, got {type(value).__name__}")


def get_str_list(mapping: dict[str, Any], key: str, path: str = "") -> list[str]:
    return string_list(mapping.get(key), _join(path, key))


def get_block(mapping: dict[str, Any], key: str, path: str = "") -> Optional[dict[str, Any]]:
    """Get an optional singleton block.

    Storage formats often model a single nested block as a list. A list
    of zero items is absent, a list of one item is that item, anything
    longer is rejected rather than truncated.
    """
    value = mapping.get(key)
    field_path = _join(path, key)
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        if len(value) == 0:
            return None
        if len(value) > 1:
            raise ConversionError(
                field_path, f"expected at most one block, got {len(value)}"
            )
        value = value[0]
        if value is None:
            # A declared but empty block, e.g. `translated_source: [{}]`
            return {}
    if not isinstance(value, dict):
        raise ConversionError(field_path, f"expected a mapping, got {type(value).__name__}")
    return value


def get_blocks(mapping: dict[str, Any], key: str, path: str = "") -> list[dict[str, Any]]:
    """Get a true list of nested mappings."""
    value = mapping.get(key)
    field_path = _join(path, key)
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise ConversionError(field_path, f"expected a list, got {type(value).__name__}")

    blocks = []
    for i, item in enumerate(value):
        if not isinstance(item, dict):
            raise ConversionError(
                f"{field_path}[{i}]", f"expected a mapping, got {type(item).__name__}"
            )
        blocks.append(item)
    return blocks


def non_empty(value: Optional[str]) -> Optional[str]:
    """Map "" to None."""
    if value is None or value == "":
        return None
    return value


def omit_none(mapping: dict[str, Any]) -> dict[str, Any]:
    """Drop keys whose value is None."""
    return {k: v for k, v in mapping.items() if v is not None}
