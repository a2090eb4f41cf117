from __future__ import annotations

import json
from typing import Any

import pytest
import requests

REGISTRY = "example"
HOST = "example.azurecr.io"
REPOSITORY = "raptor/frontend"
BASE = f"https://{HOST}/v2/{REPOSITORY}"
TOKEN_URL = f"https://{HOST}/oauth2/token"

IMAGE_DIGEST = "sha256:" + "a" * 64
CHILD_DIGEST = "sha256:" + "b" * 64
OTHER_CHILD_DIGEST = "sha256:" + "c" * 64
CONFIG_DIGEST = "sha256:" + "d" * 64
OTHER_CONFIG_DIGEST = "sha256:" + "e" * 64

OCI_MANIFEST = "application/vnd.oci.image.manifest.v1+json"
OCI_INDEX = "application/vnd.oci.image.index.v1+json"
DOCKER_LIST = "application/vnd.docker.distribution.manifest.list.v2+json"
REVISION = "org.opencontainers.image.revision"


class FakeResponse:
    """Just enough of requests.Response for the registry client."""

    def __init__(self, status_code: int = 200, body: Any = None, text: str | None = None) -> None:
        self.status_code = status_code
        if text is None:
            text = "" if body is None else json.dumps(body)
        self.text = text

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self) -> Any:
        return json.loads(self.text)


class FakeRegistry:
    """In-memory registry answering the token, manifest and blob endpoints.

    Behaves like a requests.Session: routes are keyed by (method, url) and
    every call is recorded together with the Authorization header it carried.
    """

    def __init__(self) -> None:
        self.headers: dict[str, str] = {}
        self.routes: dict[tuple[str, str], Any] = {}
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    def token(self, access: str = "access-123", status: int = 200, body: Any = None) -> "FakeRegistry":
        payload = {"access_token": access} if body is None else body
        self.routes[("POST", TOKEN_URL)] = FakeResponse(status, payload)
        return self

    def manifest(self, digest: str, body: Any, status: int = 200) -> "FakeRegistry":
        self.routes[("GET", f"{BASE}/manifests/{digest}")] = FakeResponse(status, body)
        return self

    def blob(self, digest: str, body: Any, status: int = 200) -> "FakeRegistry":
        self.routes[("GET", f"{BASE}/blobs/{digest}")] = FakeResponse(status, body)
        return self

    def route(self, method: str, url: str, response: Any) -> "FakeRegistry":
        self.routes[(method, url)] = response
        return self

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append(
            {
                "method": method,
                "url": url,
                "authorization": self.headers.get("Authorization"),
                **kwargs,
            }
        )
        response = self.routes.get((method, url))
        if isinstance(response, Exception):
            raise response
        if response is None:
            return FakeResponse(404, {"errors": [{"code": "MANIFEST_UNKNOWN"}]})
        return response

    def close(self) -> None:
        self.closed = True

    def urls(self) -> list[str]:
        return [call["url"] for call in self.calls]


def single_manifest(config_digest: str = CONFIG_DIGEST) -> dict[str, Any]:
    return {
        "schemaVersion": 2,
        "mediaType": OCI_MANIFEST,
        "config": {"mediaType": "application/vnd.oci.image.config.v1+json", "digest": config_digest, "size": 1234},
        "layers": [],
    }


def index_manifest(*digests: str, media_type: str = OCI_INDEX) -> dict[str, Any]:
    return {
        "schemaVersion": 2,
        "mediaType": media_type,
        "manifests": [
            {"mediaType": OCI_MANIFEST, "digest": d, "size": 500, "platform": {"os": "linux", "architecture": arch}}
            for d, arch in zip(digests, ["amd64", "arm64", "s390x", "ppc64le"])
        ],
    }


def config_blob(labels: dict[str, str] | None) -> dict[str, Any]:
    return {"architecture": "amd64", "os": "linux", "config": {"Labels": labels}}


@pytest.fixture
def registry() -> FakeRegistry:
    return FakeRegistry().token()


@pytest.fixture
def patched_session(monkeypatch: pytest.MonkeyPatch, registry: FakeRegistry) -> FakeRegistry:
    """Route every requests.Session() the code opens to the fake registry."""
    monkeypatch.setattr(requests, "Session", lambda: registry)
    return registry
