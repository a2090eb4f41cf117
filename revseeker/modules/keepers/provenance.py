# Commit lookup for container images
# Token exchange -> manifest resolution -> revision label, failing soft to ""

import sys

from revseeker.modules.auth import get_auth
from revseeker.modules.errors import RegistryLookupError
from revseeker.modules.finders import REVISION_LABEL, extract_label, resolve_config_digest
from revseeker.modules.formatters import is_registry, parse_image_ref, registry_name, short_digest
from revseeker.modules.keepers.commit_lookup import CommitLookup


class Tee:
    """Duplicate stderr diagnostics to a file and the console."""
    def __init__(self, *files):
        self.files = files
    def write(self, data):
        for f in self.files:
            f.write(data)
    def flush(self):
        for f in self.files:
            f.flush()


def _say(message, out=None):
    print(message, file=out or sys.stderr)


def resolve_commit(
    registry,
    repository,
    digest,
    refresh_token,
    session=None,
    label_key=REVISION_LABEL,
    verbose=False,
    out=None,
):
    """
    Resolve an image digest to the commit recorded in its revision label.

    Runs token exchange, manifest resolution and label extraction in order
    and stops at the first failure. Registry failures never raise: they
    produce an empty CommitLookup and one "[!] <stage>: <reason>" line on
    the diagnostic stream (stderr by default).

    Args:
        registry: Registry name, short form (e.g., "example")
        repository: Repository path (e.g., "raptor/frontend")
        digest: Image digest (e.g., "sha256:...")
        refresh_token: Registry refresh token
        session: Optional requests.Session to send traffic through
        label_key: Config label holding the commit
        verbose: Print progress lines for each step
        out: Diagnostic stream (default: sys.stderr)

    Returns:
        CommitLookup; str() of it is the commit or ""

    Raises:
        ValueError: If the registry name is malformed
    """
    if not is_registry(registry):
        raise ValueError(f"invalid registry name: {registry!r}")
    registry = registry_name(registry)
    if not digest:
        _say("[!] input: no digest supplied, nothing to look up", out)
        return CommitLookup(registry, repository, "", stage="input", reason="no digest supplied")

    auth = get_auth(registry, repository, refresh_token, session=session)
    try:
        try:
            if verbose:
                _say(f"[*] Exchanging refresh token for {auth.scope} on {auth.host}", out)
            auth.exchange()

            if verbose:
                _say(f"[*] Resolving manifest {short_digest(digest)}", out)
            config_digest = resolve_config_digest(auth, digest)

            if verbose:
                _say(f"[*] Reading {label_key} from config {short_digest(config_digest)}", out)
            commit = extract_label(auth, config_digest, label_key)
        except RegistryLookupError as e:
            _say(f"[!] {e.stage}: {e}", out)
            return CommitLookup(registry, repository, digest, stage=e.stage, reason=str(e))

        if not commit:
            reason = f"config {short_digest(config_digest)} has no {label_key} label"
            _say(f"[!] label: {reason}", out)
            return CommitLookup(
                registry,
                repository,
                digest,
                config_digest=config_digest,
                stage="label",
                reason=reason,
            )

        if verbose:
            _say(f"[+] {registry}/{repository}@{short_digest(digest)} -> {commit}", out)
        return CommitLookup(registry, repository, digest, commit=commit, config_digest=config_digest)
    finally:
        # Always drop the access token when done
        auth.invalidate()


def resolve_image_ref(image_ref, refresh_token, **kwargs):
    """
    Resolve a <name>.azurecr.io/<repo>@sha256:... reference.

    Raises ValueError for a malformed reference; everything else behaves
    like resolve_commit().
    """
    registry, repository, digest = parse_image_ref(image_ref)
    return resolve_commit(registry, repository, digest, refresh_token, **kwargs)
