"""Wire-format documents exchanged with the policy manager.

Field names on the wire are kebab-case. from_dict() tolerates missing
keys (the server omits empty fields) but raises DecodeError when a value
has the wrong shape.
"""
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Optional

from ..errors import DecodeError
from .convert import (
    ConversionError,
    get_block,
    get_blocks,
    get_bool,
    get_str,
    get_str_list,
    omit_none,
)

API_VERSION = "v1"

# Resource namespace sent for every role permission.
ALL_NAMESPACES = "*_ALL_*"


def _mapping(data: Any, what: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise DecodeError(f"{what}: expected a JSON object, got {type(data).__name__}")
    return data


@contextmanager
def _decoding(what: str):
    """Turn ConversionError raised while decoding into DecodeError."""
    try:
        yield
    except ConversionError as exc:
        raise DecodeError(f"{what}: {exc}") from exc


# --- Metadata ---

@dataclass
class ObjectMeta:
    """Object metadata. Everything but name/tenant/namespace is server-owned."""
    name: str = ""
    tenant: str = ""
    namespace: str = ""
    generation_id: str = ""
    resource_version: str = ""
    uuid: str = ""
    labels: Optional[dict[str, str]] = None
    self_link: str = ""
    display_name: Optional[str] = None
    creation_time: str = ""
    mod_time: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "ObjectMeta":
        data = _mapping(data, "meta")
        with _decoding("meta"):
            labels = data.get("labels")
            if labels is not None and not isinstance(labels, dict):
                raise DecodeError("meta.labels: expected a JSON object")
            display_name = data.get("display-name")
            return cls(
                name=get_str(data, "name"),
                tenant=get_str(data, "tenant"),
                namespace=get_str(data, "namespace"),
                generation_id=get_str(data, "generation-id"),
                resource_version=get_str(data, "resource-version"),
                uuid=get_str(data, "uuid"),
                labels=labels,
                self_link=get_str(data, "self-link"),
                display_name=display_name if isinstance(display_name, str) else None,
                creation_time=get_str(data, "creation-time"),
                mod_time=get_str(data, "mod-time"),
            )


def _meta_for_write(meta: ObjectMeta) -> dict[str, Any]:
    """Metadata sent with a whole-document write.

    resource-version is echoed back so the server can reject a write
    based on a stale read; the other server-owned fields are left out.
    """
    return omit_none({
        "name": meta.name,
        "tenant": meta.tenant,
        "namespace": meta.namespace,
        "resource-version": meta.resource_version or None,
        "labels": meta.labels,
        "display-name": meta.display_name,
    })


# --- Network security policy ---

@dataclass
class RuleDetail:
    """A rule as embedded in a network security policy."""
    name: str = ""
    action: str = ""
    description: str = ""
    apps: list[str] = field(default_factory=list)
    from_ip_collections: list[str] = field(default_factory=list)
    to_ip_collections: list[str] = field(default_factory=list)
    from_ip_addresses: list[str] = field(default_factory=list)
    to_ip_addresses: list[str] = field(default_factory=list)
    disable: Optional[bool] = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "apps": list(self.apps),
            "action": self.action,
            "from-ip-addresses": list(self.from_ip_addresses),
            "to-ip-addresses": list(self.to_ip_addresses),
            "description": self.description,
            "name": self.name,
        }
        if self.from_ip_collections:
            out["from-ipcollections"] = list(self.from_ip_collections)
        if self.to_ip_collections:
            out["to-ipcollections"] = list(self.to_ip_collections)
        if self.disable is not None:
            out["disable"] = self.disable
        return out

    @classmethod
    def from_dict(cls, data: Any) -> "RuleDetail":
        data = _mapping(data, "rule")
        with _decoding("rule"):
            disable = data.get("disable")
            return cls(
                name=get_str(data, "name"),
                action=get_str(data, "action"),
                description=get_str(data, "description"),
                apps=get_str_list(data, "apps"),
                from_ip_collections=get_str_list(data, "from-ipcollections"),
                to_ip_collections=get_str_list(data, "to-ipcollections"),
                from_ip_addresses=get_str_list(data, "from-ip-addresses"),
                to_ip_addresses=get_str_list(data, "to-ip-addresses"),
                disable=disable if isinstance(disable, bool) else None,
            )


@dataclass
class PolicyRule:
    """A NetworkSecurityPolicy document."""
    meta: ObjectMeta = field(default_factory=ObjectMeta)
    rules: list[RuleDetail] = field(default_factory=list)
    policy_distribution_targets: list[str] = field(default_factory=list)
    attach_tenant: bool = True
    priority: Optional[int] = None
    status: dict[str, Any] = field(default_factory=dict)
    kind: str = "NetworkSecurityPolicy"
    api_version: str = API_VERSION

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "api-version": self.api_version,
            "meta": _meta_for_write(self.meta),
            "spec": omit_none({
                "attach-tenant": self.attach_tenant,
                "rules": [r.to_dict() for r in self.rules],
                "priority": self.priority,
                "policy-distribution-targets": list(self.policy_distribution_targets),
            }),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "PolicyRule":
        data = _mapping(data, "policy")
        spec = _mapping(data.get("spec") or {}, "policy.spec")
        with _decoding("policy"):
            priority = spec.get("priority")
            status = data.get("status") or {}
            return cls(
                meta=ObjectMeta.from_dict(data.get("meta") or {}),
                rules=[RuleDetail.from_dict(r) for r in get_blocks(spec, "rules", "spec")],
                policy_distribution_targets=get_str_list(
                    spec, "policy-distribution-targets", "spec"
                ),
                attach_tenant=get_bool(spec, "attach-tenant", True, "spec"),
                priority=priority if isinstance(priority, int) else None,
                status=status if isinstance(status, dict) else {},
                kind=get_str(data, "kind", "NetworkSecurityPolicy"),
                api_version=get_str(data, "api-version", API_VERSION),
            )


# --- IPsec tunnel ---

@dataclass
class Lifetime:
    sa_lifetime: str = ""
    ike_lifetime: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"sa-lifetime": self.sa_lifetime, "ike-lifetime": self.ike_lifetime}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Lifetime":
        return cls(
            sa_lifetime=get_str(data, "sa-lifetime"),
            ike_lifetime=get_str(data, "ike-lifetime"),
        )


@dataclass
class Identifier:
    type: str = ""
    value: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "value": self.value}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Identifier":
        return cls(type=get_str(data, "type"), value=get_str(data, "value"))


@dataclass
class IKESA:
    encryption_algorithms: list[str] = field(default_factory=list)
    hash_algorithms: list[str] = field(default_factory=list)
    dh_groups: list[str] = field(default_factory=list)
    rekey_lifetime: str = ""
    pre_shared_key: str = ""
    reauth_lifetime: str = ""
    dpd_delay: str = ""
    ikev1_dpd_timeout: str = ""
    ike_initiator: bool = True
    auth_type: str = ""
    local_identity_certificates: str = ""
    remote_ca_certificates: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "encryption-algorithms": list(self.encryption_algorithms),
            "hash-algorithms": list(self.hash_algorithms),
            "dh-groups": list(self.dh_groups),
            "rekey-lifetime": self.rekey_lifetime,
            "reauth-lifetime": self.reauth_lifetime,
            "dpd-delay": self.dpd_delay,
            "ikev1-dpd-timeout": self.ikev1_dpd_timeout,
            "ike-initiator": self.ike_initiator,
            "auth-type": self.auth_type,
        }
        if self.pre_shared_key:
            out["pre-shared-key"] = self.pre_shared_key
        if self.local_identity_certificates:
            out["local-identity-certificates"] = self.local_identity_certificates
        if self.remote_ca_certificates:
            out["remote-ca-certificates"] = list(self.remote_ca_certificates)
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IKESA":
        return cls(
            encryption_algorithms=get_str_list(data, "encryption-algorithms"),
            hash_algorithms=get_str_list(data, "hash-algorithms"),
            dh_groups=get_str_list(data, "dh-groups"),
            rekey_lifetime=get_str(data, "rekey-lifetime"),
            pre_shared_key=get_str(data, "pre-shared-key"),
            reauth_lifetime=get_str(data, "reauth-lifetime"),
            dpd_delay=get_str(data, "dpd-delay"),
            ikev1_dpd_timeout=get_str(data, "ikev1-dpd-timeout"),
            ike_initiator=get_bool(data, "ike-initiator", True),
            auth_type=get_str(data, "auth-type"),
            local_identity_certificates=get_str(data, "local-identity-certificates"),
            remote_ca_certificates=get_str_list(data, "remote-ca-certificates"),
        )


@dataclass
class IPSecSA:
    encryption_algorithms: list[str] = field(default_factory=list)
    dh_groups: list[str] = field(default_factory=list)
    rekey_lifetime: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "encryption-algorithms": list(self.encryption_algorithms),
            "dh-groups": list(self.dh_groups),
            "rekey-lifetime": self.rekey_lifetime,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IPSecSA":
        return cls(
            encryption_algorithms=get_str_list(data, "encryption-algorithms"),
            dh_groups=get_str_list(data, "dh-groups"),
            rekey_lifetime=get_str(data, "rekey-lifetime"),
        )


@dataclass
class TunnelEndpoint:
    interface_name: str = ""
    dse: str = ""
    ike_version: str = ""
    ike_sa: Optional[IKESA] = None
    ipsec_sa: Optional[IPSecSA] = None
    local_identifier: Identifier = field(default_factory=Identifier)
    remote_identifier: Identifier = field(default_factory=Identifier)
    lifetime: Optional[Lifetime] = None

    def to_dict(self) -> dict[str, Any]:
        return omit_none({
            "interface-name": self.interface_name,
            "dse": self.dse,
            "ike-version": self.ike_version,
            "ike-sa": self.ike_sa.to_dict() if self.ike_sa else None,
            "ipsec-sa": self.ipsec_sa.to_dict() if self.ipsec_sa else None,
            "local-identifier": self.local_identifier.to_dict(),
            "remote-identifier": self.remote_identifier.to_dict(),
            "lifetime": self.lifetime.to_dict() if self.lifetime else None,
        })

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TunnelEndpoint":
        ike_sa = get_block(data, "ike-sa")
        ipsec_sa = get_block(data, "ipsec-sa")
        lifetime = get_block(data, "lifetime")
        return cls(
            interface_name=get_str(data, "interface-name"),
            dse=get_str(data, "dse"),
            ike_version=get_str(data, "ike-version"),
            ike_sa=IKESA.from_dict(ike_sa) if ike_sa is not None else None,
            ipsec_sa=IPSecSA.from_dict(ipsec_sa) if ipsec_sa is not None else None,
            local_identifier=Identifier.from_dict(get_block(data, "local-identifier") or {}),
            remote_identifier=Identifier.from_dict(get_block(data, "remote-identifier") or {}),
            lifetime=Lifetime.from_dict(lifetime) if lifetime is not None else None,
        )


@dataclass
class TunnelSpec:
    ha_mode: str = ""
    tunnel_endpoints: list[TunnelEndpoint] = field(default_factory=list)
    policy_distribution_targets: list[str] = field(default_factory=list)
    disable_tcp_mss_adjust: bool = False
    config: Optional[Lifetime] = None

    def to_dict(self) -> dict[str, Any]:
        return omit_none({
            "ha-mode": self.ha_mode,
            "tunnel-endpoints": [e.to_dict() for e in self.tunnel_endpoints],
            "policy-distribution-targets": list(self.policy_distribution_targets),
            "disable-tcp-mss-adjust": self.disable_tcp_mss_adjust,
            "config": self.config.to_dict() if self.config else None,
        })

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TunnelSpec":
        config = get_block(data, "config")
        return cls(
            ha_mode=get_str(data, "ha-mode"),
            tunnel_endpoints=[
                TunnelEndpoint.from_dict(e) for e in get_blocks(data, "tunnel-endpoints")
            ],
            policy_distribution_targets=get_str_list(data, "policy-distribution-targets"),
            disable_tcp_mss_adjust=get_bool(data, "disable-tcp-mss-adjust", False),
            config=Lifetime.from_dict(config) if config is not None else None,
        )


@dataclass
class Tunnel:
    meta: ObjectMeta = field(default_factory=ObjectMeta)
    spec: TunnelSpec = field(default_factory=TunnelSpec)
    status: dict[str, Any] = field(default_factory=dict)
    kind: str = "Tunnel"
    api_version: str = API_VERSION

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "api-version": self.api_version,
            "meta": _meta_for_write(self.meta),
            "spec": self.spec.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Tunnel":
        data = _mapping(data, "tunnel")
        with _decoding("tunnel"):
            status = data.get("status") or {}
            return cls(
                meta=ObjectMeta.from_dict(data.get("meta") or {}),
                spec=TunnelSpec.from_dict(_mapping(data.get("spec") or {}, "tunnel.spec")),
                status=status if isinstance(status, dict) else {},
                kind=get_str(data, "kind", "Tunnel"),
                api_version=get_str(data, "api-version", API_VERSION),
            )


# --- NAT ---

@dataclass
class AddressCollection:
    addresses: list[str] = field(default_factory=list)
    ipcollections: list[str] = field(default_factory=list)
    any: bool = True

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"any": self.any}
        if self.addresses:
            out["addresses"] = list(self.addresses)
        if self.ipcollections:
            out["ipcollections"] = list(self.ipcollections)
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AddressCollection":
        addresses = get_str_list(data, "addresses")
        ipcollections = get_str_list(data, "ipcollections")
        return cls(
            addresses=addresses,
            ipcollections=ipcollections,
            any=get_bool(data, "any", not addresses and not ipcollections),
        )


@dataclass
class ProtoPort:
    protocol: str = ""
    ports: str = ""

    def to_dict(self) -> dict[str, Any]:
        out = {"protocol": self.protocol}
        if self.ports:
            out["ports"] = self.ports
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProtoPort":
        return cls(protocol=get_str(data, "protocol"), ports=get_str(data, "ports"))


@dataclass
class NatRule:
    name: str = ""
    type: str = ""
    disable: bool = False
    source: AddressCollection = field(default_factory=AddressCollection)
    destination: AddressCollection = field(default_factory=AddressCollection)
    destination_proto_port: Optional[ProtoPort] = None
    translated_source: AddressCollection = field(default_factory=AddressCollection)
    translated_destination: AddressCollection = field(default_factory=AddressCollection)
    translated_destination_port: str = ""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "name": self.name,
            "type": self.type,
            "disable": self.disable,
            "source": self.source.to_dict(),
            "destination": self.destination.to_dict(),
            "translated-source": self.translated_source.to_dict(),
            "translated-destination": self.translated_destination.to_dict(),
        }
        if self.destination_proto_port is not None:
            out["destination-proto-port"] = self.destination_proto_port.to_dict()
        if self.translated_destination_port:
            out["translated-destination-port"] = self.translated_destination_port
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NatRule":
        proto_port = get_block(data, "destination-proto-port")
        return cls(
            name=get_str(data, "name"),
            type=get_str(data, "type"),
            disable=get_bool(data, "disable", False),
            source=AddressCollection.from_dict(get_block(data, "source") or {}),
            destination=AddressCollection.from_dict(get_block(data, "destination") or {}),
            destination_proto_port=ProtoPort.from_dict(proto_port)
            if proto_port is not None else None,
            translated_source=AddressCollection.from_dict(
                get_block(data, "translated-source") or {}
            ),
            translated_destination=AddressCollection.from_dict(
                get_block(data, "translated-destination") or {}
            ),
            translated_destination_port=get_str(data, "translated-destination-port"),
        )


@dataclass
class NatPolicy:
    meta: ObjectMeta = field(default_factory=ObjectMeta)
    rules: list[NatRule] = field(default_factory=list)
    policy_distribution_targets: list[str] = field(default_factory=list)
    status: dict[str, Any] = field(default_factory=dict)
    kind: str = "NetworkAddressTranslationPolicy"
    api_version: str = API_VERSION

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "api-version": self.api_version,
            "meta": _meta_for_write(self.meta),
            "spec": {
                "rules": [r.to_dict() for r in self.rules],
                "policy-distribution-targets": list(self.policy_distribution_targets),
            },
        }

    @classmethod
    def from_dict(cls, data: Any) -> "NatPolicy":
        data = _mapping(data, "nat policy")
        spec = _mapping(data.get("spec") or {}, "nat policy.spec")
        with _decoding("nat policy"):
            status = data.get("status") or {}
            return cls(
                meta=ObjectMeta.from_dict(data.get("meta") or {}),
                rules=[NatRule.from_dict(r) for r in get_blocks(spec, "rules", "spec")],
                policy_distribution_targets=get_str_list(
                    spec, "policy-distribution-targets", "spec"
                ),
                status=status if isinstance(status, dict) else {},
                kind=get_str(data, "kind", "NetworkAddressTranslationPolicy"),
                api_version=get_str(data, "api-version", API_VERSION),
            )


# --- RBAC ---

@dataclass
class Permission:
    resource_group: str = ""
    resource_kind: str = ""
    resource_namespace: str = ALL_NAMESPACES
    actions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "resource-group": self.resource_group,
            "resource-kind": self.resource_kind,
            "resource-namespace": self.resource_namespace,
            "actions": list(self.actions),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Permission":
        return cls(
            resource_group=get_str(data, "resource-group"),
            resource_kind=get_str(data, "resource-kind"),
            resource_namespace=get_str(data, "resource-namespace", ALL_NAMESPACES),
            actions=get_str_list(data, "actions"),
        )


@dataclass
class Role:
    meta: ObjectMeta = field(default_factory=ObjectMeta)
    permissions: list[Permission] = field(default_factory=list)
    status: dict[str, Any] = field(default_factory=dict)
    kind: str = "Role"
    api_version: str = API_VERSION

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "api-version": self.api_version,
            "meta": _meta_for_write(self.meta),
            "spec": {"permissions": [p.to_dict() for p in self.permissions]},
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Role":
        data = _mapping(data, "role")
        spec = _mapping(data.get("spec") or {}, "role.spec")
        with _decoding("role"):
            status = data.get("status") or {}
            return cls(
                meta=ObjectMeta.from_dict(data.get("meta") or {}),
                permissions=[
                    Permission.from_dict(p) for p in get_blocks(spec, "permissions", "spec")
                ],
                status=status if isinstance(status, dict) else {},
                kind=get_str(data, "kind", "Role"),
                api_version=get_str(data, "api-version", API_VERSION),
            )
