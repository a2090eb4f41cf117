# CLI argument parsing and entry point for revseeker
# Prints the commit (or an empty line) on stdout, diagnostics on stderr

import argparse
import sys

from revseeker.modules.auth import load_refresh_token
from revseeker.modules.formatters import is_digest, is_registry, is_repository, parse_image_ref
from revseeker.modules.keepers import Tee, resolve_commit


def build_parser():
    p = argparse.ArgumentParser(
        prog="revseeker",
        description="Print the git commit an image was built from, read from its "
                    "org.opencontainers.image.revision label.",
        epilog="The registry refresh token is read from ACR_REFRESH_TOKEN, "
               "falling back to `az acr login --expose-token`.",
    )
    p.add_argument("registry", nargs="?", help="Registry name without suffix (e.g., example)")
    p.add_argument("repository", nargs="?", help="Repository path (e.g., raptor/frontend)")
    p.add_argument("digest", nargs="?", help="Image digest (sha256:...)")
    p.add_argument(
        "--target-image", "-t",
        dest="image_ref",
        help="Digest-pinned image reference (name.azurecr.io/repo@sha256:...) "
             "instead of the three positional arguments",
    )
    p.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Print progress for each registry call on stderr",
    )
    p.add_argument(
        "--log-file", "-l",
        dest="log_file",
        help="Path to save a copy of the diagnostic output",
    )
    p.add_argument(
        "--api", "-A",
        action="store_true",
        help="Start the HTTP API server instead of running a single lookup",
    )
    p.add_argument("--host", default="127.0.0.1", help="API bind address (default: 127.0.0.1)")
    p.add_argument("--port", type=int, default=8000, help="API port (default: 8000)")
    return p


def parse_args(argv=None):
    p = build_parser()
    args = p.parse_args(argv)
    positionals = [args.registry, args.repository, args.digest]

    if args.api:
        if any(v is not None for v in positionals) or args.image_ref:
            p.error("--api does not take an image to look up")
        return args

    if args.image_ref:
        if any(v is not None for v in positionals):
            p.error("use either --target-image or <registry> <repository> <digest>, not both")
        try:
            args.registry, args.repository, args.digest = parse_image_ref(args.image_ref)
        except ValueError as e:
            p.error(str(e))
        return args

    if any(v is None for v in positionals):
        p.error("expected <registry> <repository> <digest>")
    if not is_registry(args.registry):
        p.error(f"invalid registry name: {args.registry!r} (expected 5-50 lowercase letters or digits)")
    if not is_repository(args.repository):
        p.error(f"invalid repository path: {args.repository!r}")
    # An empty digest is a benign "nothing deployed yet" lookup
    if args.digest and not is_digest(args.digest):
        p.error(f"malformed digest: {args.digest!r} (expected <algorithm>:<hex>)")
    return args


def main(argv=None):
    args = parse_args(argv)

    # --- API server mode ---
    if args.api:
        import uvicorn
        print(f"[*] Starting API server on http://{args.host}:{args.port}/docs", file=sys.stderr)
        uvicorn.run("revseeker.modules.api.api:app", host=args.host, port=args.port)
        return 0

    log_f = None
    stderr = sys.stderr
    if args.log_file:
        log_f = open(args.log_file, "w", encoding="utf-8")
        sys.stderr = Tee(stderr, log_f)

    try:
        refresh_token = load_refresh_token(args.registry) if args.digest else ""
        result = resolve_commit(
            args.registry,
            args.repository,
            args.digest,
            refresh_token,
            verbose=args.verbose,
        )
    finally:
        sys.stderr = stderr
        if log_f:
            log_f.close()

    print(result.commit)
    return 0
