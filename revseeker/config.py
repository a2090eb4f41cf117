# Runtime settings for revseeker, read from the environment.

import os
import sys


def _env_float(name: str, default: float) -> float:
    """Positive float from the environment; malformed values warn and keep the default."""
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        value = 0.0
    if not value > 0 or value == float("inf"):
        print(
            f"[!] config: {name}={raw!r} is not a positive number of seconds, using {default:g}",
            file=sys.stderr,
        )
        return default
    return value


# Name of the environment variable holding the registry refresh token
REFRESH_TOKEN_ENV = "ACR_REFRESH_TOKEN"

REGISTRY_SUFFIX = os.environ.get("REVSEEKER_REGISTRY_SUFFIX", ".azurecr.io")

HTTP_TIMEOUT = _env_float("REVSEEKER_HTTP_TIMEOUT", 30.0)

# Fall back to `az acr login --expose-token` when no refresh token is set
USE_AZ_CLI = os.environ.get("REVSEEKER_USE_AZ_CLI", "1").lower() not in ("0", "false", "no", "")

AZ_CLI_TIMEOUT = _env_float("REVSEEKER_AZ_CLI_TIMEOUT", 60.0)


def get_refresh_token() -> str:
    """Read the refresh token at call time so tests and servers can swap it."""
    return os.environ.get(REFRESH_TOKEN_ENV, "").strip()
