"""Base resource abstraction for policy manager objects.

Every kind follows the same state machine:

- create: validate -> expand -> send -> store uuid -> read
- read:   GET -> decode -> flatten against the stored snapshot
- delete: DELETE -> clear the id

There is no update. Any change to desired state recreates the object.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Container

import httpx

from ..client import PSMClient
from ..engine.flatteners import flatten_meta
from ..engine.parser import ConfigParser
from ..engine.schema import API_VERSION
from ..engine.validator import ValidationResult
from ..errors import DecodeError, RemoteRejectedError
from ..state.resource_data import ResourceData
from ..utils.logging_config import timed

logger = logging.getLogger(__name__)

CREATED = range(200, 300)
OK = (200,)
DELETED = (200, 204)


class Resource(ABC):
    """Abstract base class for one kind of managed object."""

    kind: str = ""
    group: str = "security"
    collection: str = ""
    create_method: str = "POST"

    def __init__(self, client: PSMClient):
        self.client = client
        self.parser = ConfigParser()

    # --- Desired state ---

    def parse_config(self, config: dict[str, Any]) -> dict[str, Any]:
        """Typed field values from a user-authored or stored mapping.

        Stored server metadata under ``meta`` is carried through as-is.
        """
        values = self.parser.parse_identity(config, self.kind)
        values.update(self.parse_fields(config))
        meta = config.get("meta")
        if isinstance(meta, dict):
            values["meta"] = dict(meta)
        return values

    def new_data(self, config: dict[str, Any]) -> ResourceData:
        """ResourceData for an object that does not exist yet.

        An object whose config names no tenant lives in the client's tenant.
        """
        values = self.parse_config(config)
        if "tenant" not in values and self.client is not None:
            values["tenant"] = self.client.tenant
        return ResourceData(values)

    @abstractmethod
    def parse_fields(self, config: dict[str, Any]) -> dict[str, Any]:
        """Kind-specific typed fields."""
        pass

    def validate(self, data: ResourceData) -> ValidationResult:
        return ValidationResult(valid=True)

    @abstractmethod
    def build_document(self, data: ResourceData) -> Any:
        """Expand desired state into the document sent on create."""
        pass

    @abstractmethod
    def decode(self, body: Any) -> Any:
        """Decode a JSON response body into a wire document."""
        pass

    @abstractmethod
    def apply_document(self, document: Any, data: ResourceData) -> None:
        """Flatten a wire document into data, merging with its previous values."""
        pass

    # --- URLs ---

    def collection_path(self, data: ResourceData) -> str:
        return (
            f"/configs/{self.group}/{API_VERSION}/tenant/{data.get('tenant')}"
            f"/{self.collection}"
        )

    def object_path(self, data: ResourceData) -> str:
        return f"{self.collection_path(data)}/{data.require('name')}"

    def create_path(self, data: ResourceData) -> str:
        if self.create_method == "POST":
            return self.collection_path(data)
        return self.object_path(data)

    # --- Operations ---

    @timed("create")
    def create(self, data: ResourceData) -> ResourceData:
        """
        Create the object and read it back.

        Raises:
            ValidationError: Before any request if desired state is invalid
            TransportError, RemoteRejectedError, DecodeError: From the call
        """
        self._validate(data)
        document = self.build_document(data)

        resp = self.client.request(
            self.create_method, self.create_path(data), document.to_dict()
        )
        self._check_status(resp, CREATED, f"create {self.kind}")
        created = self._decode(resp)

        self._store_id(created, data)
        logger.info(f"Created {self.kind} {data.get('name')} ({data.id})")
        return self.read(data)

    @timed("read")
    def read(self, data: ResourceData) -> ResourceData:
        """Refresh data from the server."""
        resp = self.client.request("GET", self.object_path(data))
        self._check_status(resp, OK, f"read {self.kind}")
        document = self._decode(resp)

        self.apply_document(document, data)
        data.set("meta", flatten_meta(document.meta))
        return data

    @timed("delete")
    def delete(self, data: ResourceData) -> ResourceData:
        resp = self.client.request("DELETE", self.object_path(data))
        self._check_status(resp, DELETED, f"delete {self.kind}")

        logger.info(f"Deleted {self.kind} {data.get('name')}")
        data.set_id("")
        return data

    # --- Helpers ---

    def _validate(self, data: ResourceData) -> None:
        result = self.validate(data)
        for warning in result.warnings:
            logger.warning(f"{self.kind} {data.get('name')}: {warning}")
        result.raise_for_errors()

    def _store_id(self, document: Any, data: ResourceData) -> None:
        uuid = document.meta.uuid
        if not uuid:
            raise DecodeError(f"{self.kind} {data.get('name')}: response has no meta.uuid")
        data.set_id(uuid)

    def _check_status(self, resp: httpx.Response, ok: Container[int], action: str) -> None:
        """Raise RemoteRejectedError with the body verbatim unless status is in ok."""
        if resp.status_code not in ok:
            raise RemoteRejectedError(action, resp.status_code, resp.reason_phrase, resp.text)

    def _decode(self, resp: httpx.Response) -> Any:
        try:
            body = resp.json()
        except ValueError as e:
            raise DecodeError(f"{self.kind}: response is not JSON: {e}") from e
        return self.decode(body)
