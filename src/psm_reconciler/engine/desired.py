"""Desired-state records.

The flat, user-authored side of the reconciliation. Nested blocks that
storage formats express as one-element lists are plain Optional fields
here: None means the block was not declared.
"""
from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from typing import Any, Optional


class RuleAction(str, Enum):
    """Action applied to traffic matching a rule."""
    PERMIT = "permit"
    DENY = "deny"
    REJECT = "reject"


class AuthType(str, Enum):
    """IKE authentication method."""
    PSK = "psk"
    CERTIFICATES = "certificates"


# --- Network security policy ---

@dataclass
class RuleState:
    """A rule inside a network security policy."""
    rule_name: str
    action: RuleAction
    description: str = ""
    from_ip_collections: list[str] = field(default_factory=list)
    to_ip_collections: list[str] = field(default_factory=list)
    from_ip_addresses: list[str] = field(default_factory=list)
    to_ip_addresses: list[str] = field(default_factory=list)
    apps: list[str] = field(default_factory=list)
    disable: Optional[bool] = None


# --- IPsec tunnel ---

@dataclass
class LifetimeState:
    """Security-association lifetimes. Often not echoed by the server."""
    sa_lifetime: Optional[str] = None
    ike_lifetime: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.sa_lifetime and not self.ike_lifetime


@dataclass
class IdentifierState:
    type: str = ""
    value: str = ""


@dataclass
class IKESAState:
    """IKE (phase 1) security association."""
    encryption_algorithms: list[str] = field(default_factory=list)
    hash_algorithms: list[str] = field(default_factory=list)
    dh_groups: list[str] = field(default_factory=list)
    rekey_lifetime: str = ""
    pre_shared_key: Optional[str] = None  # write-only
    reauth_lifetime: str = ""
    dpd_delay: str = ""
    ikev1_dpd_timeout: str = ""
    ike_initiator: bool = True
    auth_type: AuthType = AuthType.PSK
    local_identity_certificates: Optional[str] = None
    remote_ca_certificates: list[str] = field(default_factory=list)


@dataclass
class IPSecSAState:
    """IPsec (phase 2) security association."""
    encryption_algorithms: list[str] = field(default_factory=list)
    dh_groups: list[str] = field(default_factory=list)
    rekey_lifetime: str = ""


@dataclass
class EndpointState:
    """One side of a tunnel, bound to a distributed services entity."""
    interface_name: str = ""
    dse: str = ""
    ike_version: str = ""
    ike_sa: Optional[IKESAState] = None
    ipsec_sa: Optional[IPSecSAState] = None
    local_identifier: Optional[IdentifierState] = None
    remote_identifier: Optional[IdentifierState] = None
    lifetime: Optional[LifetimeState] = None


@dataclass
class TunnelState:
    ha_mode: str = ""
    tunnel_endpoints: list[EndpointState] = field(default_factory=list)
    policy_distribution_targets: list[str] = field(default_factory=list)
    disable_tcp_mss_adjust: bool = False
    lifetime: Optional[LifetimeState] = None


# --- NAT ---

@dataclass
class AddressBlock:
    """Literal addresses or references to named IP collections."""
    addresses: list[str] = field(default_factory=list)
    ipcollections: list[str] = field(default_factory=list)

    @property
    def any(self) -> bool:
        return not self.addresses and not self.ipcollections


@dataclass
class ProtoPortBlock:
    protocol: str = ""
    ports: Optional[str] = None


@dataclass
class NatRuleState:
    name: str
    type: str
    disable: bool = False
    source: Optional[AddressBlock] = None
    destination: Optional[AddressBlock] = None
    destination_proto_port: Optional[ProtoPortBlock] = None
    translated_source: Optional[AddressBlock] = None
    translated_destination: Optional[AddressBlock] = None
    translated_destination_port: str = ""


# --- RBAC ---

@dataclass
class PermissionState:
    """A permission granted by a role.

    resource_namespace is accepted on input only; the server always
    receives the all-namespaces wildcard.
    """
    resource_group: str
    resource_kind: str
    actions: list[str] = field(default_factory=list)
    resource_namespace: Optional[str] = None


def to_config(obj: Any) -> Any:
    """Convert a desired-state tree back into plain mappings.

    Enums become their values and unset (None) fields are dropped, so the
    result round-trips through ConfigParser and yaml.safe_dump.
    """
    if is_dataclass(obj) and not isinstance(obj, type):
        out = {}
        for f in fields(obj):
            value = getattr(obj, f.name)
            if value is None:
                continue
            out[f.name] = to_config(value)
        return out
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (list, tuple)):
        return [to_config(v) for v in obj]
    if isinstance(obj, dict):
        return {k: to_config(v) for k, v in obj.items()}
    return obj
