"""Pre-flight validation for desired state.

Catches structural errors before any request reaches the server. Nothing
here mutates its input.
"""
from dataclasses import dataclass, field
from typing import Any, Optional

from ..errors import ValidationError
from .desired import AddressBlock, NatRuleState, PermissionState, RuleAction, RuleState

VALID_ACTIONS = tuple(a.value for a in RuleAction)


@dataclass
class ValidationResult:
    """Result of validation."""
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def raise_for_errors(self) -> None:
        """Raise ValidationError carrying every error, first one as message."""
        if not self.valid:
            raise ValidationError(self.errors[0], list(self.errors))


def validate_action(value: Any, key: str = "action") -> Optional[str]:
    """Return an error message if value is not a valid rule action."""
    if isinstance(value, RuleAction):
        return None
    if value not in VALID_ACTIONS:
        return f"{key!r} must be either 'permit', 'deny', or 'reject', got: {value}"
    return None


def _address_error(block: Optional[AddressBlock], name: str, index: int) -> Optional[str]:
    if block is None:
        return f"rule {index}: {name} is required"
    if not block.addresses and not block.ipcollections:
        return f"rule {index}: {name} must have either addresses or ipcollections"
    return None


class NatRuleValidator:
    """Validate NAT rules before they are sent upstream.

    Checks run in a fixed order and stop at the first failure of each
    rule, so every rule contributes at most one error. errors[0] is the
    first violated constraint overall.
    """

    def validate(self, rules: list[NatRuleState]) -> ValidationResult:
        errors: list[str] = []
        warnings: list[str] = []

        for i, rule in enumerate(rules):
            error = self._check_rule(i, rule)
            if error:
                errors.append(error)
                continue

            if (rule.type == "static" and rule.translated_destination is None
                    and (rule.destination is None or rule.destination.any)):
                warnings.append(
                    f"rule {i}: static rule without destination gets no "
                    f"inferred translated_destination"
                )

        return ValidationResult(valid=not errors, errors=errors, warnings=warnings)

    def validate_or_raise(self, rules: list[NatRuleState]) -> ValidationResult:
        result = self.validate(rules)
        result.raise_for_errors()
        return result

    def _check_rule(self, i: int, rule: NatRuleState) -> Optional[str]:
        if not rule.name:
            return f"rule {i}: name is required"

        if not rule.type:
            return f"rule {i}: type is required"

        error = _address_error(rule.source, "source", i)
        if error:
            return error

        if rule.destination is not None:
            error = _address_error(rule.destination, "destination", i)
            if error:
                return error

        if rule.destination_proto_port is not None and not rule.destination_proto_port.protocol:
            return (
                f"rule {i}: protocol in destination_proto_port is required "
                f"if destination_proto_port is specified"
            )

        # Presence only: a declared but empty block counts.
        has_translated_source = rule.translated_source is not None
        has_translated_dest = rule.translated_destination is not None

        if not has_translated_source and not has_translated_dest:
            return (
                f"rule {i}: either translated_source or translated_destination "
                f"must be specified"
            )

        if rule.translated_destination_port and not has_translated_dest:
            return (
                f"rule {i}: translated_destination is required when "
                f"translated_destination_port is specified"
            )

        return None


class RuleValidator:
    """Validate network security policy rules."""

    def validate(self, rules: list[RuleState]) -> ValidationResult:
        errors: list[str] = []
        warnings: list[str] = []
        seen: dict[str, int] = {}

        for i, rule in enumerate(rules):
            if not rule.rule_name:
                errors.append(f"rule {i}: rule_name is required")
                continue

            error = validate_action(rule.action)
            if error:
                errors.append(f"rule {i}: {error}")
                continue

            if not rule.from_ip_addresses and not rule.from_ip_collections:
                errors.append(
                    f"rule {i}: from must have either ip addresses or ip collections"
                )
                continue

            if not rule.to_ip_addresses and not rule.to_ip_collections:
                errors.append(
                    f"rule {i}: to must have either ip addresses or ip collections"
                )
                continue

            if rule.rule_name in seen:
                warnings.append(
                    f"rule {i}: duplicate rule_name {rule.rule_name!r} "
                    f"(also rule {seen[rule.rule_name]})"
                )
            else:
                seen[rule.rule_name] = i

            if not rule.apps:
                warnings.append(f"rule {i}: no apps listed")

        return ValidationResult(valid=not errors, errors=errors, warnings=warnings)


class PermissionValidator:
    """Validate role permissions."""

    def validate(self, permissions: list[PermissionState]) -> ValidationResult:
        errors: list[str] = []
        warnings: list[str] = []

        for i, perm in enumerate(permissions):
            if not perm.resource_group:
                errors.append(f"permission {i}: resource_group is required")
                continue
            if not perm.resource_kind:
                errors.append(f"permission {i}: resource_kind is required")
                continue
            if not perm.actions:
                errors.append(f"permission {i}: at least one action is required")
                continue

            if perm.resource_namespace is not None:
                warnings.append(
                    f"permission {i}: resource_namespace {perm.resource_namespace!r} "
                    f"is replaced by the all-namespaces wildcard"
                )

        return ValidationResult(valid=not errors, errors=errors, warnings=warnings)
