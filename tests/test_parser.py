"""Tests for the desired-state parser."""
import pytest

from psm_reconciler.engine import ConfigParser, parse_action
from psm_reconciler.engine.desired import (
    AddressBlock,
    AuthType,
    LifetimeState,
    RuleAction,
)
from psm_reconciler.errors import ParseError, ValidationError


class TestParseRule:
    """Tests for network security policy rules."""

    def test_parse_allow_ssh(self):
        """A complete rule parses into a RuleState."""
        rule = ConfigParser().parse_rule({
            "rule_name": "AllowSSH",
            "from_ip_collections": ["net1"],
            "to_ip_collections": ["net2"],
            "apps": ["SSH"],
            "action": "permit",
        })

        assert rule.rule_name == "AllowSSH"
        assert rule.action == RuleAction.PERMIT
        assert rule.from_ip_collections == ["net1"]
        assert rule.to_ip_collections == ["net2"]
        assert rule.from_ip_addresses == []
        assert rule.apps == ["SSH"]
        assert rule.disable is None

    @pytest.mark.parametrize("action", ["permit", "deny", "reject"])
    def test_valid_actions_accepted_unchanged(self, action):
        """The three valid actions are accepted as-is."""
        assert parse_action(action).value == action

    @pytest.mark.parametrize("action", ["allow", "PERMIT", "", None, 1])
    def test_invalid_action_rejected(self, action):
        """Anything else is rejected with the accepted values listed."""
        with pytest.raises(ParseError, match="must be either 'permit', 'deny', or 'reject'"):
            parse_action(action)

    def test_invalid_action_in_rule_names_path(self):
        with pytest.raises(ParseError, match=r"rules\[1\]\.action"):
            ConfigParser().parse_rules([
                {"rule_name": "a", "action": "deny"},
                {"rule_name": "b", "action": "allow"},
            ])

    def test_missing_action(self):
        with pytest.raises(ParseError, match="missing required field: action"):
            ConfigParser().parse_rule({"rule_name": "AllowSSH"})

    def test_missing_rule_name(self):
        with pytest.raises(ParseError, match="missing required field: rule_name"):
            ConfigParser().parse_rule({"action": "permit"})

    def test_wrong_type_is_parse_error(self):
        """A ConversionError surfaces as ParseError, a ValidationError."""
        with pytest.raises(ValidationError, match=r"rule\.apps: expected a list of strings"):
            ConfigParser().parse_rule({"rule_name": "a", "action": "deny", "apps": "SSH"})

    def test_disable_kept_when_given(self):
        rule = ConfigParser().parse_rule({"rule_name": "a", "action": "deny", "disable": True})
        assert rule.disable is True

    def test_rules_must_be_list(self):
        with pytest.raises(ParseError, match="rules: expected a list, got dict"):
            ConfigParser().parse_rules({"rule_name": "a"})


class TestParseIdentity:
    """Tests for identity fields shared by every kind."""

    def test_name_required(self):
        with pytest.raises(ParseError, match="tunnel: missing required field: name"):
            ConfigParser().parse_identity({"tenant": "t1"}, "tunnel")

    def test_unspecified_fields_left_out(self):
        """Defaults are applied by the stored record, not the parser."""
        assert ConfigParser().parse_identity({"name": "p1"}) == {"name": "p1"}

    def test_given_fields_kept(self):
        identity = ConfigParser().parse_identity({
            "name": "p1", "tenant": "acme", "namespace": "prod",
            "policy_distribution_target": "dc1", "ignored": "x",
        })
        assert identity == {
            "name": "p1", "tenant": "acme", "namespace": "prod",
            "policy_distribution_target": "dc1",
        }

    def test_rejects_non_mapping(self):
        with pytest.raises(ParseError, match="expected a mapping, got list"):
            ConfigParser().parse_identity([], "role")


class TestParseTunnel:
    """Tests for tunnels, endpoints and security associations."""

    def tunnel_config(self, **endpoint_overrides):
        endpoint = {
            "interface_name": "uplink0",
            "dse": "dse-01",
            "ike_version": "ikev2",
            "ike_sa": [{
                "encryption_algorithms": ["aes256"],
                "hash_algorithms": ["sha256"],
                "dh_groups": ["group14"],
                "rekey_lifetime": "8h",
                "pre_shared_key": "s3cret",
            }],
            "ipsec_sa": [{"encryption_algorithms": ["aes256gcm"], "dh_groups": ["group14"]}],
            "local_identifier": [{"type": "ip", "value": "192.0.2.1"}],
            "lifetime": [{"sa_lifetime": "1h"}],
        }
        endpoint.update(endpoint_overrides)
        return {
            "ha_mode": "no_ha",
            "tunnel_endpoints": [endpoint],
            "policy_distribution_targets": ["default"],
            "lifetime": {"ike_lifetime": "8h"},
        }

    def test_parse_tunnel(self):
        """Singleton lists become optional single values."""
        tunnel = ConfigParser().parse_tunnel(self.tunnel_config())

        assert tunnel.ha_mode == "no_ha"
        assert tunnel.lifetime == LifetimeState(ike_lifetime="8h")
        assert len(tunnel.tunnel_endpoints) == 1

        endpoint = tunnel.tunnel_endpoints[0]
        assert endpoint.ike_sa.pre_shared_key == "s3cret"
        assert endpoint.ike_sa.auth_type == AuthType.PSK
        assert endpoint.ike_sa.ike_initiator is True
        assert endpoint.ipsec_sa.encryption_algorithms == ["aes256gcm"]
        assert endpoint.local_identifier.value == "192.0.2.1"
        assert endpoint.remote_identifier is None
        assert endpoint.lifetime == LifetimeState(sa_lifetime="1h")

    def test_multiple_ike_sa_rejected(self):
        """A second IKE SA block is rejected, not silently ignored."""
        config = self.tunnel_config(ike_sa=[{}, {}])

        with pytest.raises(ParseError, match=r"tunnel_endpoints\[0\]\.ike_sa: expected at most one block"):
            ConfigParser().parse_tunnel(config)

    def test_unknown_auth_type(self):
        config = self.tunnel_config(ike_sa={"auth_type": "kerberos"})

        with pytest.raises(ParseError, match="must be either 'psk' or 'certificates'"):
            ConfigParser().parse_tunnel(config)

    def test_certificates_auth(self):
        config = self.tunnel_config(ike_sa={
            "auth_type": "certificates",
            "local_identity_certificates": "gw-cert",
            "remote_ca_certificates": ["root-ca"],
        })

        sa = ConfigParser().parse_tunnel(config).tunnel_endpoints[0].ike_sa

        assert sa.auth_type == AuthType.CERTIFICATES
        assert sa.local_identity_certificates == "gw-cert"
        assert sa.remote_ca_certificates == ["root-ca"]

    def test_required_block(self):
        parser = ConfigParser()
        assert parser.required_block({"tunnel": [{"ha_mode": "x"}]}, "tunnel") == {"ha_mode": "x"}
        with pytest.raises(ParseError, match="tunnel: missing required block"):
            parser.required_block({}, "tunnel")


class TestParseNatRule:
    """Tests for NAT rules."""

    def test_parse_static_rule(self):
        rule = ConfigParser().parse_nat_rule({
            "name": "web",
            "type": "static",
            "destination": [{"addresses": ["10.0.0.5"]}],
            "translated_source": {"addresses": ["1.2.3.4"]},
            "destination_proto_port": {"protocol": "tcp", "ports": 443},
        })

        assert rule.destination == AddressBlock(addresses=["10.0.0.5"])
        assert rule.translated_source == AddressBlock(addresses=["1.2.3.4"])
        assert rule.source is None
        assert rule.translated_destination is None
        assert rule.destination_proto_port.protocol == "tcp"
        assert rule.destination_proto_port.ports == "443"
        assert rule.disable is False

    def test_declared_empty_block_is_present(self):
        """An empty translated block is declared, distinct from absent."""
        rule = ConfigParser().parse_nat_rule({
            "name": "r", "type": "dynamic", "translated_source": [{}],
        })

        assert rule.translated_source == AddressBlock()
        assert rule.translated_source.any
        assert rule.translated_destination is None

    def test_name_and_type_left_to_validator(self):
        """Missing name/type parse; the validator reports them with the index."""
        rule = ConfigParser().parse_nat_rule({})
        assert rule.name == ""
        assert rule.type == ""

    def test_parse_nat_rules_paths(self):
        with pytest.raises(ParseError, match=r"rules\[0\]\.source\.addresses"):
            ConfigParser().parse_nat_rules([{"source": {"addresses": "10.0.0.1"}}])


class TestParsePermission:
    """Tests for role permissions."""

    def test_parse_permission(self):
        perm = ConfigParser().parse_permission({
            "resource_group": "security",
            "resource_kind": "NetworkSecurityPolicy",
            "resource_namespace": "prod",
            "actions": ["read", "update"],
        })

        assert perm.resource_group == "security"
        assert perm.resource_namespace == "prod"
        assert perm.actions == ["read", "update"]

    def test_missing_kind(self):
        with pytest.raises(ParseError, match=r"permissions\[0\]: missing required field: resource_kind"):
            ConfigParser().parse_permissions([{"resource_group": "security"}])
