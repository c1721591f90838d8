"""NAT policy resource."""
from typing import Any

from ..engine.expanders import expand_nat_policy
from ..engine.flatteners import flatten_nat_rules
from ..engine.schema import NatPolicy
from ..engine.validator import NatRuleValidator, ValidationResult
from ..state.resource_data import ResourceData
from .base import Resource
from .policy import policy_targets


class NatPolicyResource(Resource):
    """A NetworkAddressTranslationPolicy and its rules.

    Rules are validated before any request is sent.
    """

    kind = "natpolicy"
    group = "security"
    collection = "natpolicies"

    def parse_fields(self, config: dict[str, Any]) -> dict[str, Any]:
        return {"rules": self.parser.parse_nat_rules(config.get("rules") or [])}

    def validate(self, data: ResourceData) -> ValidationResult:
        return NatRuleValidator().validate(data.get("rules", []))

    def build_document(self, data: ResourceData) -> NatPolicy:
        return expand_nat_policy(
            name=data.require("name"),
            tenant=data.get("tenant"),
            namespace=data.get("namespace"),
            targets=policy_targets(data),
            rules=data.get("rules", []),
        )

    def decode(self, body: Any) -> NatPolicy:
        return NatPolicy.from_dict(body)

    def apply_document(self, document: NatPolicy, data: ResourceData) -> None:
        if document.policy_distribution_targets:
            data.set("policy_distribution_target", document.policy_distribution_targets[0])
        data.set("rules", flatten_nat_rules(document.rules, data.get("rules")))
