"""Provider settings loaded from YAML.

Example psm.yaml:

```yaml
server: https://psm.example.com
sid_env: PSM_SID          # or sid: <value>, or sid_file: ~/.psm/sid
tenant: default           # for objects that name no tenant
timeout: 30
verify_ssl: true
state_dir: ~/.psm-reconciler
```
"""
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlsplit

import yaml

from ..errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_ENV = "PSM_CONFIG"
SERVER_ENV = "PSM_SERVER"
SID_ENV = "PSM_SID"


@dataclass
class ProviderSettings:
    """Connection settings for the policy manager."""
    server: str
    sid: Optional[str] = None
    sid_env: str = SID_ENV
    sid_file: Optional[str] = None
    tenant: str = "default"
    timeout: float = 30
    verify_ssl: bool = True
    state_dir: Optional[str] = None

    def __post_init__(self):
        self.server = normalize_server(self.server)

    def get_sid(self) -> str:
        """Get the session id from config, environment variable or file."""
        if self.sid:
            return self.sid

        sid = os.environ.get(self.sid_env, "")
        if sid:
            return sid

        if self.sid_file:
            path = Path(self.sid_file).expanduser()
            try:
                return path.read_text(encoding="utf-8").strip()
            except OSError as e:
                raise ConfigError(f"Cannot read sid_file {path}: {e}") from e

        raise ConfigError(
            f"No session id: set 'sid', export {self.sid_env} or point 'sid_file' at one"
        )

    def get_state_dir(self) -> Optional[Path]:
        return Path(self.state_dir).expanduser() if self.state_dir else None


def normalize_server(server: Any) -> str:
    """Strip trailing slashes and require a scheme and host."""
    if not isinstance(server, str) or not server.strip():
        raise ConfigError("server is required")

    server = server.strip().rstrip("/")
    parts = urlsplit(server)
    if parts.scheme not in ("http", "https"):
        raise ConfigError(f"server must be an http(s) URL, got: {server}")
    if not parts.hostname:
        raise ConfigError(f"server has no host: {server}")
    return server


def _find_config() -> Optional[Path]:
    """Find the psm.yaml config file."""
    env_path = os.environ.get(CONFIG_ENV)
    if env_path:
        path = Path(env_path).expanduser()
        if not path.exists():
            raise ConfigError(f"{CONFIG_ENV} points at a missing file: {path}")
        return path

    search_paths = [
        Path.cwd() / "configs" / "psm.yaml",
        Path.cwd() / "psm.yaml",
        Path.home() / ".config" / "psm-reconciler" / "psm.yaml",
    ]

    for path in search_paths:
        if path.exists():
            return path

    return None


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at top level")
    return data


def load_settings(path: Optional[str] = None) -> ProviderSettings:
    """
    Load provider settings.

    Args:
        path: Explicit config file. Otherwise $PSM_CONFIG, then
              ./configs/psm.yaml, ./psm.yaml and
              ~/.config/psm-reconciler/psm.yaml are tried in order.

    PSM_SERVER and PSM_SID in the environment override the file. With
    no file at all, PSM_SERVER alone is enough.

    Raises:
        ConfigError: If the file is unreadable or the settings are invalid
    """
    if path:
        config_path: Optional[Path] = Path(path).expanduser()
        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")
    else:
        config_path = _find_config()

    data = _read_yaml(config_path) if config_path else {}

    known = {f.name for f in fields(ProviderSettings)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown settings: {', '.join(unknown)}")

    if os.environ.get(SERVER_ENV):
        data["server"] = os.environ[SERVER_ENV]
    if os.environ.get(SID_ENV):
        data["sid"] = os.environ[SID_ENV]

    if not data.get("server"):
        raise ConfigError(
            "No server configured. Create ./configs/psm.yaml or set " + SERVER_ENV
        )

    try:
        timeout = float(data.get("timeout", 30))
    except (TypeError, ValueError):
        raise ConfigError(f"timeout must be a number, got: {data.get('timeout')!r}")
    if timeout <= 0:
        raise ConfigError(f"timeout must be positive, got: {timeout}")
    data["timeout"] = timeout

    if not isinstance(data.get("verify_ssl", True), bool):
        raise ConfigError("verify_ssl must be true or false")

    settings = ProviderSettings(**data)
    logger.debug(f"Loaded settings from {config_path or 'environment'}: server={settings.server}")
    return settings
