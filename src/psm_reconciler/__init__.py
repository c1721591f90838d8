"""psm-reconciler - reconcile declarative network security objects with a policy manager."""

__version__ = "0.1.0"

from .client import PSMClient
from .config import ProviderSettings, load_settings
from .errors import (
    ConfigError,
    DecodeError,
    ParseError,
    PSMError,
    RemoteRejectedError,
    TransportError,
    ValidationError,
)
from .resources import RESOURCE_TYPES, Resource, create_resource
from .state import ResourceData, StateStore

__all__ = [
    "__version__",
    "PSMClient",
    "ProviderSettings",
    "load_settings",
    "ConfigError",
    "DecodeError",
    "ParseError",
    "PSMError",
    "RemoteRejectedError",
    "TransportError",
    "ValidationError",
    "RESOURCE_TYPES",
    "Resource",
    "create_resource",
    "ResourceData",
    "StateStore",
]
