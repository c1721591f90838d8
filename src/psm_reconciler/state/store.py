"""State Store for the last-applied projection of managed objects.

Handles:
- Reading/writing one YAML file per object
- Metadata header (id, kind, checksum, timestamps)
- Listing and removing stored objects

Directory structure:
    ~/.psm-reconciler/
    └── state/
        ├── networksecuritypolicy/
        │   └── <name>.yaml
        ├── rule/
        ├── tunnel/
        ├── natpolicy/
        └── role/
"""
import hashlib
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional

import yaml

from ..engine.desired import to_config
from .resource_data import ResourceData

logger = logging.getLogger(__name__)

# Default state directory
DEFAULT_STATE_DIR = Path.home() / ".psm-reconciler"

# Header keys written ahead of the field values
_HEADER_KEYS = ("id", "kind", "checksum", "updated_at")


def compute_checksum(values: dict[str, Any]) -> str:
    """SHA256 over the canonical JSON form of plain field values."""
    config_str = json.dumps(values, sort_keys=True, separators=(",", ":"))
    return f"sha256:{hashlib.sha256(config_str.encode()).hexdigest()[:16]}"


@dataclass
class StoredState:
    """A stored object projection with metadata."""
    kind: str
    name: str
    id: str
    values: dict[str, Any]
    checksum: str = ""
    updated_at: Optional[datetime] = None

    def to_yaml(self) -> str:
        header = {
            "id": self.id,
            "kind": self.kind,
            "checksum": self.checksum,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        return yaml.safe_dump({**header, **self.values}, default_flow_style=False, sort_keys=False)

    @classmethod
    def from_yaml(cls, yaml_str: str, kind: str, name: str) -> "StoredState":
        data = yaml.safe_load(yaml_str) or {}
        if not isinstance(data, dict):
            raise ValueError(f"State file for {kind}/{name} is not a mapping")

        header = {k: data.pop(k, None) for k in _HEADER_KEYS}

        updated_at = None
        if header["updated_at"]:
            try:
                updated_at = datetime.fromisoformat(header["updated_at"])
            except (ValueError, TypeError):
                pass

        return cls(
            kind=kind,
            name=name,
            id=header["id"] or "",
            values=data,
            checksum=header["checksum"] or "",
            updated_at=updated_at,
        )


class StateStore:
    """
    Persists ResourceData records between runs.

    Field values are written as plain YAML (desired-state records go
    through to_config) and re-typed on load by the caller-supplied field
    parser, normally Resource.parse_fields.
    """

    def __init__(self, base_dir: Optional[Path] = None):
        self.base_dir = Path(base_dir) if base_dir else DEFAULT_STATE_DIR
        self.state_dir.mkdir(parents=True, exist_ok=True)
        logger.debug(f"State store initialized at {self.base_dir}")

    @classmethod
    def from_settings(cls, settings) -> "StateStore":
        """Store under settings.state_dir, or the default directory."""
        return cls(settings.get_state_dir())

    @property
    def state_dir(self) -> Path:
        return self.base_dir / "state"

    def _path(self, kind: str, name: str) -> Path:
        return self.state_dir / kind / f"{name}.yaml"

    def save(self, kind: str, name: str, data: ResourceData) -> StoredState:
        """Write the current projection of data."""
        values = to_config(data.snapshot())
        stored = StoredState(
            kind=kind,
            name=name,
            id=data.id,
            values=values,
            checksum=compute_checksum(values),
            updated_at=datetime.now(timezone.utc),
        )

        path = self._path(kind, name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(stored.to_yaml(), encoding="utf-8")

        logger.info(f"Saved state for {kind}/{name} ({stored.checksum})")
        return stored

    def load_raw(self, kind: str, name: str) -> Optional[StoredState]:
        """Read a stored projection without re-typing its values."""
        path = self._path(kind, name)
        if not path.exists():
            return None
        return StoredState.from_yaml(path.read_text(encoding="utf-8"), kind, name)

    def load(
        self,
        kind: str,
        name: str,
        parse_fields: Callable[[dict[str, Any]], dict[str, Any]],
    ) -> Optional[ResourceData]:
        """
        Load a stored projection as ResourceData.

        Args:
            kind: Resource kind (directory name)
            name: Object name
            parse_fields: Converts plain values to typed field values

        Returns:
            ResourceData, or None if nothing is stored
        """
        stored = self.load_raw(kind, name)
        if stored is None:
            return None

        if stored.checksum and stored.checksum != compute_checksum(stored.values):
            logger.warning(f"Checksum mismatch for {kind}/{name}; file was edited by hand")

        return ResourceData(parse_fields(stored.values), id=stored.id)

    def delete(self, kind: str, name: str) -> bool:
        path = self._path(kind, name)
        if path.exists():
            path.unlink()
            logger.info(f"Deleted state for {kind}/{name}")
            return True
        return False

    def list_names(self, kind: str) -> list[str]:
        """List names of stored objects of one kind."""
        kind_dir = self.state_dir / kind
        if not kind_dir.exists():
            return []
        return sorted(p.stem for p in kind_dir.glob("*.yaml"))
