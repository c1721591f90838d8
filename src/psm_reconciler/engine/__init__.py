"""Reconciliation engine - desired state <-> policy manager documents.

The engine is pure: no requests, no stored state.
- ConfigParser turns user-authored mappings into typed desired state
- Validators catch structural errors before anything is sent
- Expanders build wire documents from desired state
- Flatteners rebuild desired state from wire documents, carrying
  write-only fields forward from the previous snapshot

Usage:
    from psm_reconciler.engine import ConfigParser, NatRuleValidator, expand_nat_rule

    rules = ConfigParser().parse_nat_rules(config["rules"])
    NatRuleValidator().validate_or_raise(rules)
    wire = [expand_nat_rule(r).to_dict() for r in rules]
"""

from .convert import ConversionError, string_list, string_set
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
    to_config,
)
from .parser import ConfigParser, parse_action
from .schema import (
    ALL_NAMESPACES,
    NatPolicy,
    NatRule,
    ObjectMeta,
    PolicyRule,
    Role,
    RuleDetail,
    Tunnel,
    TunnelSpec,
)
from .validator import (
    NatRuleValidator,
    PermissionValidator,
    RuleValidator,
    ValidationResult,
    validate_action,
)
from .expanders import (
    expand_nat_policy,
    expand_nat_rule,
    expand_permission,
    expand_policy,
    expand_role,
    expand_rule,
    expand_tunnel,
    expand_tunnel_spec,
    merge_rule,
)
from .flatteners import (
    flatten_meta,
    flatten_nat_rules,
    flatten_permissions,
    flatten_proto_port,
    flatten_policy_rules,
    flatten_rule,
    flatten_tunnel_spec,
    merge_optional,
)

__all__ = [
    # Converters
    "ConversionError",
    "string_list",
    "string_set",
    # Desired state
    "AddressBlock",
    "AuthType",
    "EndpointState",
    "IdentifierState",
    "IKESAState",
    "IPSecSAState",
    "LifetimeState",
    "NatRuleState",
    "PermissionState",
    "ProtoPortBlock",
    "RuleAction",
    "RuleState",
    "TunnelState",
    "to_config",
    # Parser
    "ConfigParser",
    "parse_action",
    # Wire documents
    "ALL_NAMESPACES",
    "NatPolicy",
    "NatRule",
    "ObjectMeta",
    "PolicyRule",
    "Role",
    "RuleDetail",
    "Tunnel",
    "TunnelSpec",
    # Validators
    "NatRuleValidator",
    "PermissionValidator",
    "RuleValidator",
    "ValidationResult",
    "validate_action",
    # Expanders
    "expand_nat_policy",
    "expand_nat_rule",
    "expand_permission",
    "expand_policy",
    "expand_role",
    "expand_rule",
    "expand_tunnel",
    "expand_tunnel_spec",
    "merge_rule",
    # Flatteners
    "flatten_meta",
    "flatten_nat_rules",
    "flatten_permissions",
    "flatten_proto_port",
    "flatten_policy_rules",
    "flatten_rule",
    "flatten_tunnel_spec",
    "merge_optional",
]
