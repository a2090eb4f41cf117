"""
Image manifest and config blob lookups.

Resolves a digest to the config blob of a single-platform image manifest,
following multi-arch indexes to their first listed platform, and reads
labels out of that config blob.
"""

from typing import Optional

import requests

from revseeker.modules.errors import LabelExtractionError, ManifestResolutionError
from revseeker.modules.formatters import is_digest, registry_base_url, short_digest

OCI_MANIFEST = "application/vnd.oci.image.manifest.v1+json"
DOCKER_MANIFEST = "application/vnd.docker.distribution.manifest.v2+json"
OCI_INDEX = "application/vnd.oci.image.index.v1+json"
DOCKER_MANIFEST_LIST = "application/vnd.docker.distribution.manifest.list.v2+json"

SINGLE_MANIFEST_TYPES = (OCI_MANIFEST, DOCKER_MANIFEST)
INDEX_TYPES = (OCI_INDEX, DOCKER_MANIFEST_LIST)

# Everything the resolver knows how to parse
ACCEPT_ALL = ", ".join(SINGLE_MANIFEST_TYPES + INDEX_TYPES)
ACCEPT_SINGLE = ", ".join(SINGLE_MANIFEST_TYPES)

REVISION_LABEL = "org.opencontainers.image.revision"


def _get_json(auth, url: str, error_cls, what: str, headers: Optional[dict] = None) -> dict:
    try:
        resp = auth.request("GET", url, headers=headers or {})
    except requests.RequestException as e:
        raise error_cls(f"request for {what} failed: {e}") from e

    if not 200 <= resp.status_code < 300:
        raise error_cls(f"registry returned HTTP {resp.status_code} for {what}")
    try:
        payload = resp.json()
    except ValueError as e:
        raise error_cls(f"{what} is not valid JSON") from e
    if not isinstance(payload, dict):
        raise error_cls(f"{what} is not a JSON object")
    return payload


def fetch_manifest(auth, reference: str, accept: str = ACCEPT_ALL) -> dict:
    """
    Fetch the manifest stored under a digest.

    Raises:
        TokenExchangeError: If the access token cannot be obtained
        ManifestResolutionError: On network/HTTP errors or a non-JSON body
    """
    url = f"{registry_base_url(auth.registry, auth.repository)}/manifests/{reference}"
    return _get_json(
        auth,
        url,
        ManifestResolutionError,
        f"manifest {short_digest(reference)}",
        headers={"Accept": accept},
    )


def is_index(manifest: dict) -> bool:
    """True for OCI image indexes and Docker manifest lists."""
    media_type = manifest.get("mediaType")
    if media_type:
        return media_type in INDEX_TYPES
    # Older OCI indexes may omit mediaType
    return "manifests" in manifest and "config" not in manifest


def _first_platform_digest(index: dict, reference: str) -> str:
    manifests = index.get("manifests")
    if not isinstance(manifests, list) or not manifests:
        raise ManifestResolutionError(
            f"index {short_digest(reference)} lists no platform manifests"
        )
    first = manifests[0]
    digest = first.get("digest") if isinstance(first, dict) else None
    if not isinstance(digest, str) or not is_digest(digest):
        raise ManifestResolutionError(
            f"first platform entry of index {short_digest(reference)} has no digest"
        )
    return digest


def resolve_config_digest(auth, digest: str) -> str:
    """
    Resolve an image digest to the digest of its config blob.

    Handles both multi-arch indexes and single-arch manifests. For an index
    the first listed platform manifest is used; labels are expected to be
    identical across platforms.

    Returns:
        The config blob digest (e.g. "sha256:...")

    Raises:
        TokenExchangeError: If the access token cannot be obtained
        ManifestResolutionError: If any manifest is missing, malformed, or
            lacks a config digest
    """
    manifest = fetch_manifest(auth, digest)

    # CASE 1: Multi-arch index
    if is_index(manifest):
        child = _first_platform_digest(manifest, digest)
        manifest = fetch_manifest(auth, child, accept=ACCEPT_SINGLE)
        if is_index(manifest):
            raise ManifestResolutionError(
                f"platform entry {short_digest(child)} is itself an index"
            )
        digest = child

    # CASE 2: Single-arch manifest (or resolved from the index above)
    config = manifest.get("config")
    config_digest = config.get("digest") if isinstance(config, dict) else None
    if not isinstance(config_digest, str) or not is_digest(config_digest):
        raise ManifestResolutionError(
            f"manifest {short_digest(digest)} does not contain config.digest"
        )
    return config_digest


def fetch_config_blob(auth, config_digest: str) -> dict:
    """
    Fetch and parse the image config blob.

    Raises:
        TokenExchangeError: If the access token cannot be obtained
        LabelExtractionError: On network/HTTP errors or a non-JSON body
    """
    url = f"{registry_base_url(auth.registry, auth.repository)}/blobs/{config_digest}"
    return _get_json(
        auth,
        url,
        LabelExtractionError,
        f"config blob {short_digest(config_digest)}",
    )


def extract_label(auth, config_digest: str, label_key: str = REVISION_LABEL) -> str:
    """
    Read a label from an image config blob.

    Returns the label value, or "" when the label is missing or empty.
    Only fetch and parse failures raise.
    """
    config_json = fetch_config_blob(auth, config_digest)
    return label_from_config(config_json, label_key)


def label_from_config(config_json: dict, label_key: str = REVISION_LABEL) -> str:
    config = config_json.get("config")
    if not isinstance(config, dict):
        return ""
    labels = config.get("Labels") or {}
    if not isinstance(labels, dict):
        return ""
    value = labels.get(label_key)
    if not isinstance(value, str):
        return ""
    return value.strip()
