"""Shared fixtures: an in-memory policy manager behind httpx.MockTransport."""
import copy
import json

import httpx
import pytest

from psm_reconciler.client import PSMClient

SERVER = "https://psm.test"
SID = "test-sid"

POLICY_PATH = "/configs/security/v1/tenant/default/networksecuritypolicies/corp-policy"


def _strip(document, hidden):
    if isinstance(document, dict):
        return {k: _strip(v, hidden) for k, v in document.items() if k not in hidden}
    if isinstance(document, list):
        return [_strip(v, hidden) for v in document]
    return document


class FakePSM:
    """Stores documents by path and answers like the policy manager.

    POST creates below a collection, PUT replaces at an object path. The
    pre-shared key is never returned, as on the real server.
    """

    def __init__(self):
        self.documents: dict[str, dict] = {}
        self.requests: list[tuple[str, str, object]] = []
        self.responses: dict[tuple[str, str], httpx.Response] = {}
        self.hidden_keys = {"pre-shared-key"}
        self._version = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, path, body))

        if request.headers.get("cookie") != f"sid={SID}":
            return httpx.Response(401, text="missing session")

        if (request.method, path) in self.responses:
            return self.responses[(request.method, path)]

        if request.method == "GET":
            if path not in self.documents:
                return httpx.Response(404, json={"message": f"{path} not found"})
            return httpx.Response(200, json=self._public(self.documents[path]))

        if request.method in ("POST", "PUT"):
            target = path if request.method == "PUT" else f"{path}/{body['meta']['name']}"
            return httpx.Response(200, json=self._public(self._store(target, body)))

        if request.method == "DELETE":
            if self.documents.pop(path, None) is None:
                return httpx.Response(404, json={"message": f"{path} not found"})
            return httpx.Response(200, json={})

        return httpx.Response(405)

    def _store(self, target: str, body: dict) -> dict:
        self._version += 1
        stored = copy.deepcopy(body)
        previous = self.documents.get(target)
        stored["meta"].update({
            "uuid": previous["meta"]["uuid"] if previous else f"uuid-{self._version}",
            "generation-id": str(self._version),
            "resource-version": str(1000 + self._version),
            "self-link": target,
        })
        self.documents[target] = stored
        return stored

    def _public(self, document: dict) -> dict:
        return _strip(document, self.hidden_keys)

    @property
    def methods(self) -> list[tuple[str, str]]:
        return [(method, path) for method, path, _ in self.requests]


def policy_document(rules=None, uuid="policy-uuid"):
    return {
        "kind": "NetworkSecurityPolicy",
        "api-version": "v1",
        "meta": {
            "name": "corp-policy",
            "tenant": "default",
            "namespace": "default",
            "uuid": uuid,
            "resource-version": "7",
            "generation-id": "1",
            "self-link": POLICY_PATH,
        },
        "spec": {
            "attach-tenant": True,
            "rules": rules or [],
            "policy-distribution-targets": ["default"],
        },
    }


@pytest.fixture
def fake_psm():
    return FakePSM()


@pytest.fixture
def client(fake_psm):
    with PSMClient(SERVER, SID, transport=httpx.MockTransport(fake_psm.handler)) as c:
        yield c
