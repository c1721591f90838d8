"""In-memory desired-state record for one managed object."""
import copy
from typing import Any, Optional

DEFAULT_IDENTITY = "default"

# Identity fields default to "default" when unspecified.
IDENTITY_DEFAULTS = {
    "tenant": DEFAULT_IDENTITY,
    "namespace": DEFAULT_IDENTITY,
    "policy_distribution_target": DEFAULT_IDENTITY,
}


class ResourceData:
    """Typed field values plus the server-assigned identifier.

    Holds the last-applied projection of one object: the desired-state
    fields, an ``id`` (empty until created) and the server metadata under
    the ``meta`` key.
    """

    def __init__(self, values: Optional[dict[str, Any]] = None, id: str = ""):
        self._values: dict[str, Any] = dict(values or {})
        self.id = id

    def get(self, key: str, default: Any = None) -> Any:
        if key in self._values and self._values[key] is not None:
            return self._values[key]
        if default is None and key in IDENTITY_DEFAULTS:
            return IDENTITY_DEFAULTS[key]
        return default

    def get_ok(self, key: str) -> tuple[Any, bool]:
        """Return (value, True) if key is set to a non-empty value."""
        value = self._values.get(key)
        if value is None or value == "" or value == [] or value == {}:
            return value, False
        return value, True

    def require(self, key: str) -> Any:
        value, ok = self.get_ok(key)
        if not ok:
            raise TypeError(f"{key} is required")
        return value

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value

    def unset(self, key: str) -> None:
        self._values.pop(key, None)

    def set_id(self, id: str) -> None:
        self.id = id

    def keys(self) -> list[str]:
        return list(self._values.keys())

    def snapshot(self) -> dict[str, Any]:
        """Deep copy of the current field values."""
        return copy.deepcopy(self._values)

    def __repr__(self) -> str:
        return f"ResourceData(id={self.id!r}, keys={sorted(self._values)})"
