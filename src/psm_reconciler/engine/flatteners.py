"""Flatteners: wire documents (+ previous desired state) -> desired state.

The server is authoritative for everything it returns. Some fields are
write-only (the pre-shared key) or may be left out of responses
(lifetimes); for those the previous snapshot is carried forward through
merge_optional(). The previous snapshot is always an explicit argument:
nothing here reads stored state or performs I/O.
"""
from typing import Optional, TypeVar

from ..errors import DecodeError
from .convert import non_empty
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
    ProtoPortBlock,
    RuleAction,
    RuleState,
    TunnelState,
)
from .schema import (
    IKESA,
    AddressCollection,
    Identifier,
    IPSecSA,
    Lifetime,
    NatRule,
    ProtoPort,
    ObjectMeta,
    Permission,
    RuleDetail,
    TunnelEndpoint,
    TunnelSpec,
)

T = TypeVar("T")


def merge_optional(new: Optional[T], previous: Optional[T]) -> Optional[T]:
    """Pick the freshly decoded value unless it is empty.

    Absence in a response is not deletion: an empty new value falls back
    to the previous one, and stays unset only when both are missing.
    """
    if new is not None and new != "":
        return new
    if previous is not None:
        return previous
    return None


def flatten_meta(meta: ObjectMeta) -> dict[str, str]:
    """Server-managed metadata to keep alongside the desired state."""
    return {
        "uuid": meta.uuid,
        "generation_id": meta.generation_id,
        "resource_version": meta.resource_version,
        "self_link": meta.self_link,
    }


# --- Network security policy ---

def flatten_rule(rule: RuleDetail) -> RuleState:
    try:
        action = RuleAction(rule.action)
    except ValueError:
        raise DecodeError(f"rule {rule.name!r}: unknown action {rule.action!r}")

    return RuleState(
        rule_name=rule.name,
        action=action,
        description=rule.description,
        from_ip_collections=list(rule.from_ip_collections),
        to_ip_collections=list(rule.to_ip_collections),
        from_ip_addresses=list(rule.from_ip_addresses),
        to_ip_addresses=list(rule.to_ip_addresses),
        apps=list(rule.apps),
        disable=rule.disable,
    )


def flatten_policy_rules(rules: list[RuleDetail]) -> list[RuleState]:
    return [flatten_rule(r) for r in rules]


# --- IPsec tunnel ---

def flatten_lifetime(
    lifetime: Optional[Lifetime],
    previous: Optional[LifetimeState],
) -> Optional[LifetimeState]:
    """Merge lifetimes field by field. None when nothing survives."""
    merged = LifetimeState(
        sa_lifetime=merge_optional(
            non_empty(lifetime.sa_lifetime) if lifetime else None,
            previous.sa_lifetime if previous else None,
        ),
        ike_lifetime=merge_optional(
            non_empty(lifetime.ike_lifetime) if lifetime else None,
            previous.ike_lifetime if previous else None,
        ),
    )
    if merged.is_empty:
        return None
    return merged


def flatten_identifier(identifier: Identifier) -> Optional[IdentifierState]:
    if not identifier.type and not identifier.value:
        return None
    return IdentifierState(type=identifier.type, value=identifier.value)


def flatten_ike_sa(sa: IKESA, previous: Optional[IKESAState]) -> IKESAState:
    try:
        auth_type = AuthType(sa.auth_type or AuthType.PSK.value)
    except ValueError:
        raise DecodeError(f"ike-sa: unknown auth-type {sa.auth_type!r}")

    return IKESAState(
        encryption_algorithms=list(sa.encryption_algorithms),
        hash_algorithms=list(sa.hash_algorithms),
        dh_groups=list(sa.dh_groups),
        rekey_lifetime=sa.rekey_lifetime,
        # never returned by the server
        pre_shared_key=merge_optional(
            non_empty(sa.pre_shared_key),
            previous.pre_shared_key if previous else None,
        ),
        reauth_lifetime=sa.reauth_lifetime,
        dpd_delay=sa.dpd_delay,
        ikev1_dpd_timeout=sa.ikev1_dpd_timeout,
        ike_initiator=sa.ike_initiator,
        auth_type=auth_type,
        local_identity_certificates=non_empty(sa.local_identity_certificates),
        remote_ca_certificates=list(sa.remote_ca_certificates),
    )


def flatten_ipsec_sa(sa: IPSecSA) -> IPSecSAState:
    return IPSecSAState(
        encryption_algorithms=list(sa.encryption_algorithms),
        dh_groups=list(sa.dh_groups),
        rekey_lifetime=sa.rekey_lifetime,
    )


def flatten_tunnel_endpoint(
    endpoint: TunnelEndpoint,
    previous: Optional[EndpointState],
) -> EndpointState:
    return EndpointState(
        interface_name=endpoint.interface_name,
        dse=endpoint.dse,
        ike_version=endpoint.ike_version,
        ike_sa=flatten_ike_sa(endpoint.ike_sa, previous.ike_sa if previous else None)
        if endpoint.ike_sa is not None else None,
        ipsec_sa=flatten_ipsec_sa(endpoint.ipsec_sa)
        if endpoint.ipsec_sa is not None else None,
        local_identifier=flatten_identifier(endpoint.local_identifier),
        remote_identifier=flatten_identifier(endpoint.remote_identifier),
        lifetime=flatten_lifetime(endpoint.lifetime, previous.lifetime if previous else None),
    )


def flatten_tunnel_spec(spec: TunnelSpec, previous: Optional[TunnelState]) -> TunnelState:
    """Flatten a tunnel spec. Endpoints are paired with the previous ones by position."""
    previous_endpoints = previous.tunnel_endpoints if previous else []

    endpoints = []
    for i, endpoint in enumerate(spec.tunnel_endpoints):
        prev = previous_endpoints[i] if i < len(previous_endpoints) else None
        endpoints.append(flatten_tunnel_endpoint(endpoint, prev))

    return TunnelState(
        ha_mode=spec.ha_mode,
        tunnel_endpoints=endpoints,
        policy_distribution_targets=list(spec.policy_distribution_targets),
        disable_tcp_mss_adjust=spec.disable_tcp_mss_adjust,
        lifetime=flatten_lifetime(spec.config, previous.lifetime if previous else None),
    )


# --- NAT ---

def flatten_address_collection(
    collection: AddressCollection,
    previous: Optional[AddressBlock],
) -> Optional[AddressBlock]:
    """Flatten an address collection.

    The wire always carries every collection, marking unused ones Any. An
    Any collection is reported as a declared empty block only if the
    previous snapshot declared one.
    """
    if collection.addresses or collection.ipcollections:
        return AddressBlock(
            addresses=list(collection.addresses),
            ipcollections=list(collection.ipcollections),
        )
    if previous is not None:
        return AddressBlock()
    return None


def flatten_proto_port(
    proto_port: Optional[ProtoPort],
    previous: Optional[ProtoPortBlock],
) -> Optional[ProtoPortBlock]:
    """Flatten a destination proto-port.

    The server may echo an unset proto-port as an empty object; that is
    only a declared block if the previous snapshot declared one.
    """
    if proto_port is None:
        return None
    if proto_port.protocol or proto_port.ports:
        return ProtoPortBlock(protocol=proto_port.protocol, ports=non_empty(proto_port.ports))
    if previous is not None:
        return ProtoPortBlock()
    return None


def flatten_nat_rule(rule: NatRule, previous: Optional[NatRuleState]) -> NatRuleState:
    state = NatRuleState(
        name=rule.name,
        type=rule.type,
        disable=rule.disable,
        source=flatten_address_collection(
            rule.source, previous.source if previous else None
        ),
        destination=flatten_address_collection(
            rule.destination, previous.destination if previous else None
        ),
        translated_source=flatten_address_collection(
            rule.translated_source, previous.translated_source if previous else None
        ),
        translated_destination=flatten_address_collection(
            rule.translated_destination, previous.translated_destination if previous else None
        ),
        destination_proto_port=flatten_proto_port(
            rule.destination_proto_port, previous.destination_proto_port if previous else None
        ),
        translated_destination_port=rule.translated_destination_port,
    )

    # The translated destination of a static rule may have been inferred
    # from its destination; keep it undeclared if it was never declared.
    if (previous is not None and previous.translated_destination is None
            and rule.type == "static"
            and state.translated_destination is not None
            and state.translated_destination == state.destination):
        state.translated_destination = None

    return state


def flatten_nat_rules(
    rules: list[NatRule],
    previous: Optional[list[NatRuleState]],
) -> list[NatRuleState]:
    """Flatten NAT rules, pairing each with the previous rule of the same name."""
    previous_by_name = {r.name: r for r in previous or []}
    return [flatten_nat_rule(r, previous_by_name.get(r.name)) for r in rules]


# --- RBAC ---

def flatten_permission(perm: Permission) -> PermissionState:
    # resource_namespace is normalized on the way out and never read back
    return PermissionState(
        resource_group=perm.resource_group,
        resource_kind=perm.resource_kind,
        actions=list(perm.actions),
    )


def flatten_permissions(permissions: list[Permission]) -> list[PermissionState]:
    return [flatten_permission(p) for p in permissions]

