"""Resource handlers for the managed object kinds."""
from ..client import PSMClient
from .base import Resource
from .nat import NatPolicyResource
from .policy import NetworkSecurityPolicyResource
from .role import RoleResource
from .rule import RuleResource
from .tunnel import TunnelResource

__all__ = [
    "Resource",
    "NatPolicyResource",
    "NetworkSecurityPolicyResource",
    "RoleResource",
    "RuleResource",
    "TunnelResource",
    "RESOURCE_TYPES",
    "create_resource",
]

# Resource kind registry
RESOURCE_TYPES = {
    "networksecuritypolicy": NetworkSecurityPolicyResource,
    "rule": RuleResource,
    "tunnel": TunnelResource,
    "natpolicy": NatPolicyResource,
    "role": RoleResource,
}


def create_resource(kind: str, client: PSMClient) -> Resource:
    """Factory function to create resource handlers."""
    kind = kind.lower()
    if kind not in RESOURCE_TYPES:
        raise ValueError(f"Unknown resource kind: {kind}")

    return RESOURCE_TYPES[kind](client)
