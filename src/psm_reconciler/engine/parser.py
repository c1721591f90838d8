"""Parser for user-authored desired state.

Converts dict/YAML input to the typed records in desired.py.
"""
from contextlib import contextmanager
from typing import Any

from ..errors import ParseError
from .convert import (
    ConversionError,
    get_block,
    get_blocks,
    get_bool,
    get_optional_str,
    get_str,
    get_str_list,
)
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

# Optional identity fields; all default to "default".
IDENTITY_KEYS = ("tenant", "namespace", "policy_distribution_target")


def parse_action(value: Any, path: str = "action") -> RuleAction:
    """Parse a rule action, rejecting anything but permit/deny/reject."""
    try:
        return RuleAction(value)
    except ValueError:
        raise ParseError(
            f"{path}: must be either 'permit', 'deny', or 'reject', got: {value!r}"
        )


def parse_auth_type(value: Any, path: str = "auth_type") -> AuthType:
    try:
        return AuthType(value)
    except ValueError:
        raise ParseError(
            f"{path}: must be either 'psk' or 'certificates', got: {value!r}"
        )


class ConfigParser:
    """Parse desired-state records from dict/YAML format.

    Every method raises ParseError naming the offending field path.
    Singleton blocks may be written either as a mapping or as a list
    holding one mapping; longer lists are rejected.
    """

    def parse_identity(
        self,
        config: dict[str, Any],
        path: str = "",
        keys: tuple[str, ...] = IDENTITY_KEYS,
    ) -> dict[str, Any]:
        """Parse the identity fields of a managed object.

        name is required. The other keys are left out when unspecified so
        the stored record falls back to its defaults.
        """
        if not isinstance(config, dict):
            raise ParseError(f"{path or 'config'}: expected a mapping, got {type(config).__name__}")

        with _conversion(path):
            name = get_str(config, "name", path=path)
            if not name:
                raise ParseError(f"{path or 'config'}: missing required field: name")

            identity: dict[str, Any] = {"name": name}
            for key in keys:
                value = get_optional_str(config, key, path)
                if value:
                    identity[key] = value
            return identity

    def required_block(self, config: dict[str, Any], key: str, path: str = "") -> dict[str, Any]:
        """Get a singleton block that must be declared."""
        with _conversion(path):
            block = get_block(config, key, path)
        if block is None:
            raise ParseError(f"{path + '.' if path else ''}{key}: missing required block")
        return block

    def parse_rule(self, config: dict[str, Any], path: str = "rule") -> RuleState:
        with _conversion(path):
            rule_name = get_str(config, "rule_name", path=path)
            if not rule_name:
                raise ParseError(f"{path}: missing required field: rule_name")

            if config.get("action") is None:
                raise ParseError(f"{path}: missing required field: action")
            action = parse_action(config["action"], f"{path}.action")

            disable = config.get("disable")
            if disable is not None:
                disable = get_bool(config, "disable", path=path)

            return RuleState(
                rule_name=rule_name,
                action=action,
                description=get_str(config, "description", path=path),
                from_ip_collections=get_str_list(config, "from_ip_collections", path),
                to_ip_collections=get_str_list(config, "to_ip_collections", path),
                from_ip_addresses=get_str_list(config, "from_ip_addresses", path),
                to_ip_addresses=get_str_list(config, "to_ip_addresses", path),
                apps=get_str_list(config, "apps", path),
                disable=disable,
            )

    def parse_rules(self, configs: Any, path: str = "rules") -> list[RuleState]:
        with _conversion(path):
            blocks = get_blocks({path: configs}, path)
        return [self.parse_rule(b, f"{path}[{i}]") for i, b in enumerate(blocks)]

    # --- Tunnel ---

    def parse_tunnel(self, config: dict[str, Any], path: str = "tunnel") -> TunnelState:
        """Parse the tunnel block of a tunnel resource."""
        with _conversion(path):
            endpoints = [
                self.parse_endpoint(e, f"{path}.tunnel_endpoints[{i}]")
                for i, e in enumerate(get_blocks(config, "tunnel_endpoints", path))
            ]
            lifetime = get_block(config, "lifetime", path)

            return TunnelState(
                ha_mode=get_str(config, "ha_mode", path=path),
                tunnel_endpoints=endpoints,
                policy_distribution_targets=get_str_list(
                    config, "policy_distribution_targets", path
                ),
                disable_tcp_mss_adjust=get_bool(
                    config, "disable_tcp_mss_adjust", False, path
                ),
                lifetime=self.parse_lifetime(lifetime, f"{path}.lifetime")
                if lifetime is not None else None,
            )

    def parse_endpoint(self, config: dict[str, Any], path: str = "endpoint") -> EndpointState:
        with _conversion(path):
            endpoint = EndpointState(
                interface_name=get_str(config, "interface_name", path=path),
                dse=get_str(config, "dse", path=path),
                ike_version=get_str(config, "ike_version", path=path),
            )

            block = get_block(config, "ike_sa", path)
            if block is not None:
                endpoint.ike_sa = self.parse_ike_sa(block, f"{path}.ike_sa")

            block = get_block(config, "ipsec_sa", path)
            if block is not None:
                endpoint.ipsec_sa = self.parse_ipsec_sa(block, f"{path}.ipsec_sa")

            block = get_block(config, "local_identifier", path)
            if block is not None:
                endpoint.local_identifier = self.parse_identifier(
                    block, f"{path}.local_identifier"
                )

            block = get_block(config, "remote_identifier", path)
            if block is not None:
                endpoint.remote_identifier = self.parse_identifier(
                    block, f"{path}.remote_identifier"
                )

            block = get_block(config, "lifetime", path)
            if block is not None:
                endpoint.lifetime = self.parse_lifetime(block, f"{path}.lifetime")

            return endpoint

    def parse_ike_sa(self, config: dict[str, Any], path: str = "ike_sa") -> IKESAState:
        with _conversion(path):
            return IKESAState(
                encryption_algorithms=get_str_list(config, "encryption_algorithms", path),
                hash_algorithms=get_str_list(config, "hash_algorithms", path),
                dh_groups=get_str_list(config, "dh_groups", path),
                rekey_lifetime=get_str(config, "rekey_lifetime", path=path),
                pre_shared_key=get_optional_str(config, "pre_shared_key", path),
                reauth_lifetime=get_str(config, "reauth_lifetime", path=path),
                dpd_delay=get_str(config, "dpd_delay", path=path),
                ikev1_dpd_timeout=get_str(config, "ikev1_dpd_timeout", path=path),
                ike_initiator=get_bool(config, "ike_initiator", True, path),
                auth_type=parse_auth_type(
                    config.get("auth_type") or AuthType.PSK.value, f"{path}.auth_type"
                ),
                local_identity_certificates=get_optional_str(
                    config, "local_identity_certificates", path
                ),
                remote_ca_certificates=get_str_list(config, "remote_ca_certificates", path),
            )

    def parse_ipsec_sa(self, config: dict[str, Any], path: str = "ipsec_sa") -> IPSecSAState:
        with _conversion(path):
            return IPSecSAState(
                encryption_algorithms=get_str_list(config, "encryption_algorithms", path),
                dh_groups=get_str_list(config, "dh_groups", path),
                rekey_lifetime=get_str(config, "rekey_lifetime", path=path),
            )

    def parse_identifier(self, config: dict[str, Any], path: str = "identifier") -> IdentifierState:
        with _conversion(path):
            return IdentifierState(
                type=get_str(config, "type", path=path),
                value=get_str(config, "value", path=path),
            )

    def parse_lifetime(self, config: dict[str, Any], path: str = "lifetime") -> LifetimeState:
        with _conversion(path):
            return LifetimeState(
                sa_lifetime=get_optional_str(config, "sa_lifetime", path),
                ike_lifetime=get_optional_str(config, "ike_lifetime", path),
            )

    # --- NAT ---

    def parse_nat_rule(self, config: dict[str, Any], path: str = "rule") -> NatRuleState:
        """Parse one NAT rule.

        name and type are not checked here beyond their types: the
        structural validator reports them with the rule index.
        """
        with _conversion(path):
            rule = NatRuleState(
                name=get_str(config, "name", path=path),
                type=get_str(config, "type", path=path),
                disable=get_bool(config, "disable", False, path),
                translated_destination_port=get_str(
                    config, "translated_destination_port", path=path
                ),
            )

            for key in ("source", "destination", "translated_source", "translated_destination"):
                block = get_block(config, key, path)
                if block is not None:
                    setattr(rule, key, self.parse_address_block(block, f"{path}.{key}"))

            block = get_block(config, "destination_proto_port", path)
            if block is not None:
                rule.destination_proto_port = ProtoPortBlock(
                    protocol=get_str(block, "protocol", path=f"{path}.destination_proto_port"),
                    ports=get_optional_str(block, "ports", f"{path}.destination_proto_port"),
                )

            return rule

    def parse_nat_rules(self, configs: Any, path: str = "rules") -> list[NatRuleState]:
        with _conversion(path):
            blocks = get_blocks({path: configs}, path)
        return [self.parse_nat_rule(b, f"{path}[{i}]") for i, b in enumerate(blocks)]

    def parse_address_block(self, config: dict[str, Any], path: str = "address") -> AddressBlock:
        with _conversion(path):
            return AddressBlock(
                addresses=get_str_list(config, "addresses", path),
                ipcollections=get_str_list(config, "ipcollections", path),
            )

    # --- RBAC ---

    def parse_permission(self, config: dict[str, Any], path: str = "permission") -> PermissionState:
        with _conversion(path):
            group = get_str(config, "resource_group", path=path)
            kind = get_str(config, "resource_kind", path=path)
            for key, value in (("resource_group", group), ("resource_kind", kind)):
                if not value:
                    raise ParseError(f"{path}: missing required field: {key}")

            return PermissionState(
                resource_group=group,
                resource_kind=kind,
                actions=get_str_list(config, "actions", path),
                resource_namespace=get_optional_str(config, "resource_namespace", path),
            )

    def parse_permissions(self, configs: Any, path: str = "permissions") -> list[PermissionState]:
        with _conversion(path):
            blocks = get_blocks({path: configs}, path)
        return [self.parse_permission(b, f"{path}[{i}]") for i, b in enumerate(blocks)]


@contextmanager
def _conversion(path: str):
    """Re-raise ConversionError as ParseError."""
    try:
        yield
    except ConversionError as exc:
        raise ParseError(str(exc) or path) from exc
