"""A single rule embedded in a network security policy.

The rule has no URL of its own. Creating it rewrites the whole parent
policy: read the policy, put the rule in place of its namesake (or at
the end), and PUT the result back.
"""
import logging
from dataclasses import fields
from typing import Any, Optional

from ..engine.expanders import expand_rule, merge_rule
from ..engine.flatteners import flatten_rule
from ..engine.desired import RuleState
from ..engine.schema import PolicyRule, RuleDetail
from ..engine.validator import RuleValidator, ValidationResult
from ..state.resource_data import ResourceData
from ..utils.logging_config import timed, timed_section
from .base import CREATED, OK, Resource
from .policy import apply_policy_meta

logger = logging.getLogger(__name__)

RULE_FIELDS = tuple(f.name for f in fields(RuleState))


def rule_state(data: ResourceData) -> RuleState:
    """Rebuild the RuleState kept as flat fields in data."""
    values = {}
    for key in RULE_FIELDS:
        value = data.get(key)
        if value is not None:
            values[key] = value
    return RuleState(**values)


def find_rule(policy: PolicyRule, rule_name: str) -> Optional[RuleDetail]:
    for rule in policy.rules:
        if rule.name == rule_name:
            return rule
    return None


class RuleResource(Resource):
    """One rule of a NetworkSecurityPolicy. ``name`` is the policy name.

    Create merges the rule into the policy and PUTs the whole policy back.
    Delete is inherited and sends DELETE to the policy URL: it removes the
    entire policy, every other rule included, not just this rule.
    """

    kind = "rule"
    group = "security"
    collection = "networksecuritypolicies"
    create_method = "PUT"

    def parse_fields(self, config: dict[str, Any]) -> dict[str, Any]:
        rule = self.parser.parse_rule(config, self.kind)
        return {key: getattr(rule, key) for key in RULE_FIELDS}

    def validate(self, data: ResourceData) -> ValidationResult:
        return RuleValidator().validate([rule_state(data)])

    def build_document(self, data: ResourceData) -> RuleDetail:
        return expand_rule(rule_state(data))

    def decode(self, body: Any) -> PolicyRule:
        return PolicyRule.from_dict(body)

    def apply_document(self, document: PolicyRule, data: ResourceData) -> None:
        rule_name = data.require("rule_name")
        detail = find_rule(document, rule_name)
        if detail is None:
            logger.warning(
                f"Rule {rule_name} not found in policy {document.meta.name}; treating as deleted"
            )
            data.set_id("")
            return

        apply_policy_meta(document, data)
        state = flatten_rule(detail)
        for key in RULE_FIELDS:
            data.set(key, getattr(state, key))

    @timed("create")
    def create(self, data: ResourceData) -> ResourceData:
        self._validate(data)
        rule = self.build_document(data)
        path = self.object_path(data)
        label = f"{self.kind}/{data.get('name')}/{rule.name}"

        with timed_section("get_policy", resource=label):
            resp = self.client.request("GET", path)
        self._check_status(resp, OK, "read policy")
        policy = self._decode(resp)

        merged = merge_rule(policy, rule)
        with timed_section("put_policy", resource=label, rules=len(merged.rules)):
            resp = self.client.request(self.create_method, path, merged.to_dict())
        self._check_status(resp, CREATED, "update rule")
        updated = self._decode(resp)

        self._store_id(updated, data)
        logger.info(f"Applied rule {rule.name} to policy {data.get('name')} ({data.id})")
        return self.read(data)
