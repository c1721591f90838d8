"""Expanders: desired state -> wire documents.

Pure functions with no I/O. Optional blocks that are unset stay absent
on the wire. A required scalar left unset is a caller bug and raises
TypeError, never ValidationError.
"""
import copy
from typing import Any, Optional

from .convert import string_set

from .desired import (
    AddressBlock,
    AuthType,
    EndpointState,
    IdentifierState,
    IKESAState,
    IPSecSAState,
    LifetimeState,
    NatRuleState,
    PermissionState,
    RuleAction,
    RuleState,
    TunnelState,
)
from .schema import (
    ALL_NAMESPACES,
    IKESA,
    AddressCollection,
    Identifier,
    IPSecSA,
    Lifetime,
    NatPolicy,
    NatRule,
    ObjectMeta,
    Permission,
    PolicyRule,
    ProtoPort,
    Role,
    RuleDetail,
    Tunnel,
    TunnelEndpoint,
    TunnelSpec,
)


def _require(value: Any, name: str, expected: type) -> Any:
    if value is None:
        raise TypeError(f"{name} is required")
    if not isinstance(value, expected):
        raise TypeError(
            f"{name} must be {expected.__name__}, got {type(value).__name__}"
        )
    return value


def expand_meta(name: str, tenant: str, namespace: str) -> ObjectMeta:
    return ObjectMeta(
        name=_require(name, "name", str),
        tenant=_require(tenant, "tenant", str),
        namespace=_require(namespace, "namespace", str),
    )


# --- Network security policy ---

def expand_rule(rule: RuleState) -> RuleDetail:
    action = _require(rule.action, "action", str)
    return RuleDetail(
        name=_require(rule.rule_name, "rule_name", str),
        action=action.value if isinstance(action, RuleAction) else action,
        description=rule.description or "",
        apps=list(rule.apps),
        from_ip_collections=list(rule.from_ip_collections),
        to_ip_collections=list(rule.to_ip_collections),
        from_ip_addresses=list(rule.from_ip_addresses),
        to_ip_addresses=list(rule.to_ip_addresses),
        disable=rule.disable,
    )


def expand_policy(
    name: str,
    tenant: str,
    namespace: str,
    targets: list[str],
    rules: list[RuleState],
) -> PolicyRule:
    return PolicyRule(
        meta=expand_meta(name, tenant, namespace),
        rules=[expand_rule(r) for r in rules],
        policy_distribution_targets=string_set(targets),
    )


def merge_rule(policy: PolicyRule, rule: RuleDetail) -> PolicyRule:
    """Return a copy of policy with rule replacing its namesake, or appended.

    Replacing by name keeps a repeated create idempotent.
    """
    merged = copy.deepcopy(policy)
    for i, existing in enumerate(merged.rules):
        if existing.name == rule.name:
            merged.rules[i] = rule
            break
    else:
        merged.rules.append(rule)
    return merged


# --- IPsec tunnel ---

def expand_lifetime(lifetime: LifetimeState) -> Lifetime:
    return Lifetime(
        sa_lifetime=lifetime.sa_lifetime or "",
        ike_lifetime=lifetime.ike_lifetime or "",
    )


def expand_identifier(identifier: Optional[IdentifierState]) -> Identifier:
    if identifier is None:
        return Identifier()
    return Identifier(type=identifier.type, value=identifier.value)


def expand_ike_sa(sa: IKESAState) -> IKESA:
    """Expand an IKE SA.

    Certificate fields are only sent when auth_type is certificates, even
    if the input carries them.
    """
    auth_type = sa.auth_type.value if isinstance(sa.auth_type, AuthType) else sa.auth_type
    ikesa = IKESA(
        encryption_algorithms=list(sa.encryption_algorithms),
        hash_algorithms=list(sa.hash_algorithms),
        dh_groups=list(sa.dh_groups),
        rekey_lifetime=sa.rekey_lifetime,
        pre_shared_key=sa.pre_shared_key or "",
        reauth_lifetime=sa.reauth_lifetime,
        dpd_delay=sa.dpd_delay,
        ikev1_dpd_timeout=sa.ikev1_dpd_timeout,
        ike_initiator=sa.ike_initiator,
        auth_type=auth_type,
    )

    if auth_type == AuthType.CERTIFICATES.value:
        ikesa.local_identity_certificates = sa.local_identity_certificates or ""
        ikesa.remote_ca_certificates = list(sa.remote_ca_certificates)

    return ikesa


def expand_ipsec_sa(sa: IPSecSAState) -> IPSecSA:
    return IPSecSA(
        encryption_algorithms=list(sa.encryption_algorithms),
        dh_groups=list(sa.dh_groups),
        rekey_lifetime=sa.rekey_lifetime,
    )


def expand_tunnel_endpoint(endpoint: EndpointState) -> TunnelEndpoint:
    return TunnelEndpoint(
        interface_name=endpoint.interface_name,
        dse=endpoint.dse,
        ike_version=endpoint.ike_version,
        ike_sa=expand_ike_sa(endpoint.ike_sa) if endpoint.ike_sa else None,
        ipsec_sa=expand_ipsec_sa(endpoint.ipsec_sa) if endpoint.ipsec_sa else None,
        local_identifier=expand_identifier(endpoint.local_identifier),
        remote_identifier=expand_identifier(endpoint.remote_identifier),
        lifetime=expand_lifetime(endpoint.lifetime) if endpoint.lifetime else None,
    )


def expand_tunnel_spec(tunnel: TunnelState) -> TunnelSpec:
    return TunnelSpec(
        ha_mode=tunnel.ha_mode,
        tunnel_endpoints=[expand_tunnel_endpoint(e) for e in tunnel.tunnel_endpoints],
        policy_distribution_targets=string_set(tunnel.policy_distribution_targets),
        disable_tcp_mss_adjust=tunnel.disable_tcp_mss_adjust,
        config=expand_lifetime(tunnel.lifetime) if tunnel.lifetime else None,
    )


def expand_tunnel(name: str, tenant: str, namespace: str, tunnel: TunnelState) -> Tunnel:
    return Tunnel(
        meta=expand_meta(name, tenant, namespace),
        spec=expand_tunnel_spec(_require(tunnel, "tunnel", TunnelState)),
    )


# --- NAT ---

def expand_address_collection(block: Optional[AddressBlock]) -> AddressCollection:
    if block is None:
        return AddressCollection()
    return AddressCollection(
        addresses=list(block.addresses),
        ipcollections=list(block.ipcollections),
        any=block.any,
    )


def expand_nat_rule(rule: NatRuleState) -> NatRule:
    """Expand a NAT rule.

    A static rule with a concrete destination and no translated_destination
    block translates the destination to itself.
    """
    nat_rule = NatRule(
        name=_require(rule.name, "name", str),
        type=_require(rule.type, "type", str),
        disable=_require(rule.disable, "disable", bool),
        source=expand_address_collection(rule.source),
        destination=expand_address_collection(rule.destination),
        translated_source=expand_address_collection(rule.translated_source),
        translated_destination_port=rule.translated_destination_port or "",
    )

    if rule.destination_proto_port is not None:
        nat_rule.destination_proto_port = ProtoPort(
            protocol=_require(
                rule.destination_proto_port.protocol, "destination_proto_port.protocol", str
            ),
            ports=rule.destination_proto_port.ports or "",
        )

    if rule.translated_destination is not None:
        nat_rule.translated_destination = expand_address_collection(
            rule.translated_destination
        )
    elif nat_rule.type == "static" and not nat_rule.destination.any:
        nat_rule.translated_destination = copy.deepcopy(nat_rule.destination)

    return nat_rule


def expand_nat_policy(
    name: str,
    tenant: str,
    namespace: str,
    targets: list[str],
    rules: list[NatRuleState],
) -> NatPolicy:
    return NatPolicy(
        meta=expand_meta(name, tenant, namespace),
        rules=[expand_nat_rule(r) for r in rules],
        policy_distribution_targets=string_set(targets),
    )


# --- RBAC ---

def expand_permission(perm: PermissionState) -> Permission:
    # resource_namespace is always the wildcard, whatever the input says
    return Permission(
        resource_group=_require(perm.resource_group, "resource_group", str),
        resource_kind=_require(perm.resource_kind, "resource_kind", str),
        resource_namespace=ALL_NAMESPACES,
        actions=list(perm.actions),
    )


def expand_role(
    name: str,
    tenant: str,
    namespace: str,
    permissions: list[PermissionState],
) -> Role:
    return Role(
        meta=expand_meta(name, tenant, namespace),
        permissions=[expand_permission(p) for p in permissions],
    )
