"""RBAC role resource."""
from typing import Any

from ..engine.expanders import expand_role
from ..engine.flatteners import flatten_permissions
from ..engine.schema import Role
from ..engine.validator import PermissionValidator, ValidationResult
from ..state.resource_data import ResourceData
from .base import Resource


class RoleResource(Resource):
    kind = "role"
    group = "auth"
    collection = "roles"

    def parse_fields(self, config: dict[str, Any]) -> dict[str, Any]:
        return {"permissions": self.parser.parse_permissions(config.get("permissions") or [])}

    def validate(self, data: ResourceData) -> ValidationResult:
        return PermissionValidator().validate(data.get("permissions", []))

    def build_document(self, data: ResourceData) -> Role:
        return expand_role(
            name=data.require("name"),
            tenant=data.get("tenant"),
            namespace=data.get("namespace"),
            permissions=data.get("permissions", []),
        )

    def decode(self, body: Any) -> Role:
        return Role.from_dict(body)

    def apply_document(self, document: Role, data: ResourceData) -> None:
        data.set("permissions", flatten_permissions(document.permissions))
