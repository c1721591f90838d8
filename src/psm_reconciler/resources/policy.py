"""Network security policy resource."""
from typing import Any

from ..engine.expanders import expand_policy
from ..engine.flatteners import flatten_policy_rules
from ..engine.schema import PolicyRule
from ..engine.validator import RuleValidator, ValidationResult
from ..state.resource_data import ResourceData
from .base import Resource


def policy_targets(data: ResourceData) -> list[str]:
    return [data.get("policy_distribution_target")]


def apply_policy_meta(policy: PolicyRule, data: ResourceData) -> None:
    """Copy the identity and targets the server reports into data."""
    if policy.meta.name:
        data.set("name", policy.meta.name)
    if policy.meta.tenant:
        data.set("tenant", policy.meta.tenant)
    if policy.meta.namespace:
        data.set("namespace", policy.meta.namespace)
    if policy.policy_distribution_targets:
        data.set("policy_distribution_target", policy.policy_distribution_targets[0])


class NetworkSecurityPolicyResource(Resource):
    """A whole NetworkSecurityPolicy with its ordered rules."""

    kind = "networksecuritypolicy"
    group = "security"
    collection = "networksecuritypolicies"

    def parse_fields(self, config: dict[str, Any]) -> dict[str, Any]:
        return {"rules": self.parser.parse_rules(config.get("rules") or [])}

    def validate(self, data: ResourceData) -> ValidationResult:
        return RuleValidator().validate(data.get("rules", []))

    def build_document(self, data: ResourceData) -> PolicyRule:
        return expand_policy(
            name=data.require("name"),
            tenant=data.get("tenant"),
            namespace=data.get("namespace"),
            targets=policy_targets(data),
            rules=data.get("rules", []),
        )

    def decode(self, body: Any) -> PolicyRule:
        return PolicyRule.from_dict(body)

    def apply_document(self, document: PolicyRule, data: ResourceData) -> None:
        apply_policy_meta(document, data)
        data.set("rules", flatten_policy_rules(document.rules))
