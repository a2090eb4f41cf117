# Registry naming helpers for revseeker

import re

from revseeker import config

# <algorithm>:<hex>, e.g. sha256:4f1c...
DIGEST_PATTERN = re.compile(r"^[a-z0-9]+(?:[.+_-][a-z0-9]+)*:[a-fA-F0-9]+$")

REPOSITORY_PATTERN = re.compile(r"^[a-z0-9]+(?:(?:[._]|__|-+)[a-z0-9]+)*(?:/[a-z0-9]+(?:(?:[._]|__|-+)[a-z0-9]+)*)*$")

# Registry names, suffix stripped: 5-50 lowercase alphanumerics
REGISTRY_PATTERN = re.compile(r"^[a-z0-9]{5,50}$")


def registry_name(name: str) -> str:
    """Strip the registry suffix if the caller passed a full login server."""
    name = name.strip().lower()
    if name.endswith(config.REGISTRY_SUFFIX):
        name = name[: -len(config.REGISTRY_SUFFIX)]
    return name


def registry_host(name: str) -> str:
    """Login server for a registry name. Raises ValueError for names that are not valid."""
    if not is_registry(name):
        raise ValueError(f"invalid registry name: {name!r}")
    return f"{registry_name(name)}{config.REGISTRY_SUFFIX}"


def registry_base_url(name: str, repository: str) -> str:
    return f"https://{registry_host(name)}/v2/{repository}"


def token_url(name: str) -> str:
    return f"https://{registry_host(name)}/oauth2/token"


def is_registry(value: str) -> bool:
    return bool(REGISTRY_PATTERN.match(registry_name(value or "")))


def is_digest(value: str) -> bool:
    return bool(DIGEST_PATTERN.match(value or ""))


def is_repository(value: str) -> bool:
    return bool(REPOSITORY_PATTERN.match(value or ""))


## Handle references in the <name>.azurecr.io/<repo>@<digest> form used by deploy tooling

def parse_image_ref(image_ref):
    """
    Split a digest-pinned image reference into (registry name, repository, digest).

    Raises ValueError if the reference is not pinned by digest or does not
    point at a registry under the configured suffix.
    """
    if "@" not in image_ref:
        raise ValueError(f"Image reference must be pinned by digest (name/repo@sha256:...): {image_ref}")
    name, digest = image_ref.rsplit("@", 1)
    if "/" not in name:
        raise ValueError(f"Image reference is missing a registry host: {image_ref}")
    host, repo = name.split("/", 1)
    # A tag before the digest is ignored, the digest wins
    if ":" in repo.rsplit("/", 1)[-1]:
        repo = repo.rsplit(":", 1)[0]
    if not host.lower().endswith(config.REGISTRY_SUFFIX):
        raise ValueError(f"Registry host {host} does not end in {config.REGISTRY_SUFFIX}")
    if not is_registry(host):
        raise ValueError(f"Invalid registry name in host {host}")
    if not is_repository(repo):
        raise ValueError(f"Invalid repository path: {repo}")
    if not is_digest(digest):
        raise ValueError(f"Malformed digest: {digest}")
    return registry_name(host), repo, digest


def short_digest(digest, length=19):
    """sha256:abcdef... trimmed for diagnostics."""
    if len(digest) <= length:
        return digest
    return digest[:length] + "..."
