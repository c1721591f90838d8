"""Tests for wire document decoding."""
import pytest

from psm_reconciler.engine.schema import (
    NatPolicy,
    Permission,
    PolicyRule,
    Role,
    Tunnel,
)
from psm_reconciler.errors import DecodeError


class TestDecode:
    """from_dict tolerates missing keys and rejects wrong shapes."""

    def test_policy_from_response(self):
        policy = PolicyRule.from_dict({
            "kind": "NetworkSecurityPolicy",
            "api-version": "v1",
            "meta": {
                "name": "corp", "tenant": "default", "namespace": "default",
                "uuid": "u-1", "resource-version": "12", "labels": None,
            },
            "spec": {
                "attach-tenant": True,
                "rules": [{
                    "name": "AllowSSH", "action": "permit", "apps": ["SSH"],
                    "from-ipcollections": ["net1"], "to-ipcollections": ["net2"],
                }],
                "policy-distribution-targets": ["default"],
            },
            "status": {"propagation-status": {"status": "complete"}},
        })

        assert policy.meta.uuid == "u-1"
        assert policy.meta.resource_version == "12"
        assert policy.rules[0].from_ip_collections == ["net1"]
        assert policy.rules[0].from_ip_addresses == []
        assert policy.rules[0].disable is None
        assert policy.status["propagation-status"]["status"] == "complete"

    def test_empty_document(self):
        """Everything is optional on the way in."""
        policy = PolicyRule.from_dict({})
        assert policy.rules == []
        assert policy.meta.uuid == ""

    def test_resource_version_echoed_on_write(self):
        """Only client-owned metadata and resource-version are written back."""
        policy = PolicyRule.from_dict({
            "meta": {"name": "corp", "tenant": "default", "namespace": "default",
                     "uuid": "u-1", "resource-version": "12", "self-link": "/x"},
        })

        assert policy.to_dict()["meta"] == {
            "name": "corp", "tenant": "default", "namespace": "default",
            "resource-version": "12",
        }

    @pytest.mark.parametrize("cls", [PolicyRule, Tunnel, NatPolicy, Role])
    def test_not_an_object(self, cls):
        with pytest.raises(DecodeError, match="expected a JSON object, got list"):
            cls.from_dict([])

    def test_wrong_rule_field_type(self):
        with pytest.raises(DecodeError, match="apps"):
            PolicyRule.from_dict({"spec": {"rules": [{"name": "r", "apps": "SSH"}]}})

    def test_rules_not_a_list(self):
        with pytest.raises(DecodeError, match="rules"):
            PolicyRule.from_dict({"spec": {"rules": {"name": "r"}}})

    def test_tunnel_wrong_shape(self):
        with pytest.raises(DecodeError):
            Tunnel.from_dict({"spec": {"tunnel-endpoints": [{"ike-sa": [{}, {}]}]}})

    def test_nat_policy_any_derived(self):
        """A collection without an explicit any flag is Any iff it is empty."""
        nat = NatPolicy.from_dict({"spec": {"rules": [{
            "name": "r", "type": "static",
            "destination": {"addresses": ["10.0.0.5"]},
            "source": {},
        }]}})

        assert nat.rules[0].destination.any is False
        assert nat.rules[0].source.any is True
        assert nat.rules[0].translated_destination.any is True

    def test_permission_namespace_default(self):
        assert Permission.from_dict({"resource-group": "auth"}).resource_namespace == "*_ALL_*"
