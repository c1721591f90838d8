"""IPsec tunnel resource."""
from typing import Any

from ..engine.expanders import expand_tunnel
from ..engine.flatteners import flatten_tunnel_spec
from ..engine.schema import Tunnel
from ..state.resource_data import ResourceData
from .base import Resource


class TunnelResource(Resource):
    """A Tunnel with its endpoints and security associations.

    The pre-shared key and lifetimes are not always echoed back; read()
    keeps the previously stored values for them.
    """

    kind = "tunnel"
    group = "network"
    collection = "tunnels"

    def parse_fields(self, config: dict[str, Any]) -> dict[str, Any]:
        block = self.parser.required_block(config, "tunnel", self.kind)
        return {"tunnel": self.parser.parse_tunnel(block, f"{self.kind}.tunnel")}

    def build_document(self, data: ResourceData) -> Tunnel:
        return expand_tunnel(
            name=data.require("name"),
            tenant=data.get("tenant"),
            namespace=data.get("namespace"),
            tunnel=data.get("tunnel"),
        )

    def decode(self, body: Any) -> Tunnel:
        return Tunnel.from_dict(body)

    def apply_document(self, document: Tunnel, data: ResourceData) -> None:
        data.set("tunnel", flatten_tunnel_spec(document.spec, data.get("tunnel")))
