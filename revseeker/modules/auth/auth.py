"""
Registry authentication for revseeker.

Provides RegistryAuth, which turns a registry refresh token into an access
token scoped to `repository:<repo>:pull` and carries it on a requests
session for the manifest and blob calls of a single lookup:
- One token exchange per instance, no refresh ahead of expiry
- Session management
- Proper cleanup via invalidate()
"""

import subprocess
from typing import Optional

import requests

from revseeker import config
from revseeker.modules.errors import TokenExchangeError
from revseeker.modules.formatters import is_registry, registry_host, registry_name, token_url


class RegistryAuth:
    """
    Repository-scoped registry authentication.

    Usage:
        auth = RegistryAuth("example", "raptor/frontend", refresh_token)
        resp = auth.request("GET", url)
        # ... do work ...
        auth.invalidate()  # cleanup when done
    """

    GRANT_TYPE = "refresh_token"

    def __init__(
        self,
        registry: str,
        repository: str,
        refresh_token: str,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize auth for a specific repository.

        Args:
            registry: Registry name, short form (e.g., "example") or full host
            repository: Repository path (e.g., "raptor/frontend")
            refresh_token: Refresh token obtained by the caller
            session: Optional session to send requests through
            timeout: Per-request timeout in seconds (default: config.HTTP_TIMEOUT)

        Raises:
            ValueError: If the registry name is not a valid registry name
        """
        if not is_registry(registry):
            raise ValueError(f"invalid registry name: {registry!r}")
        self.registry = registry_name(registry)
        self.repository = repository
        self.timeout = config.HTTP_TIMEOUT if timeout is None else timeout
        self._refresh_token = refresh_token or ""
        self._token: Optional[str] = None
        self._session = session
        self._owns_session = session is None

    @property
    def host(self) -> str:
        return registry_host(self.registry)

    @property
    def scope(self) -> str:
        return f"repository:{self.repository}:pull"

    def _http(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
            self._owns_session = True
        return self._session

    def _fetch_token(self) -> str:
        """
        Exchange the refresh token for a pull-scoped access token.

        Raises:
            TokenExchangeError: On empty input, network/HTTP errors, or a
                response without an access token
        """
        if not self._refresh_token:
            raise TokenExchangeError(f"no refresh token available for registry {self.registry}")

        try:
            resp = self._http().request(
                "POST",
                token_url(self.registry),
                data={
                    "grant_type": self.GRANT_TYPE,
                    "service": self.host,
                    "scope": self.scope,
                    "refresh_token": self._refresh_token,
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TokenExchangeError(f"token request to {self.host} failed: {e}") from e

        if not 200 <= resp.status_code < 300:
            raise TokenExchangeError(
                f"token endpoint on {self.host} returned HTTP {resp.status_code}"
            )
        try:
            payload = resp.json()
        except ValueError as e:
            raise TokenExchangeError(f"token endpoint on {self.host} returned invalid JSON") from e

        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not token or not isinstance(token, str):
            raise TokenExchangeError(f"token endpoint on {self.host} returned no access_token")
        return token

    def _ensure_valid_token(self) -> str:
        """Get token, exchanging if not held yet."""
        if not self._token:
            self._token = self._fetch_token()
        return self._token

    def exchange(self) -> str:
        """Return the access token, exchanging the refresh token on first call."""
        return self._ensure_valid_token()

    def get_session(self) -> requests.Session:
        """
        Get authenticated session.

        Creates session on first call, reuses thereafter.
        Token is injected into Authorization header.
        """
        session = self._http()
        token = self._ensure_valid_token()
        session.headers["Authorization"] = f"Bearer {token}"
        return session

    def request(self, method: str, url: str, **kwargs) -> requests.Response:
        """
        Make an authenticated HTTP request.

        No retry on 401.

        Args:
            method: HTTP method ("GET", "HEAD", etc.)
            url: Full URL to request
            **kwargs: Passed to requests (e.g., headers=..., stream=True)

        Returns:
            requests.Response object
        """
        kwargs.setdefault("timeout", self.timeout)
        session = self.get_session()
        return session.request(method, url, **kwargs)

    def invalidate(self):
        """
        Drop the session and the access token after a lookup.

        Call this at operation boundaries to ensure tokens scoped
        to one repository are not accidentally reused for another.
        """
        if self._session is not None:
            self._session.headers.pop("Authorization", None)
            if self._owns_session:
                self._session.close()
                self._session = None
        self._token = None


def exchange_refresh_token(registry: str, repository: str, refresh_token: str, session=None) -> str:
    """Exchange a refresh token for a repository-scoped access token."""
    auth = RegistryAuth(registry, repository, refresh_token, session=session)
    try:
        return auth.exchange()
    finally:
        auth.invalidate()


def acquire_refresh_token(registry: str) -> str:
    """
    Ask the Azure CLI for a registry refresh token.

    Runs `az acr login --expose-token` for the registry. Returns "" if the CLI
    is missing, not logged in, or times out; the lookup then reports an
    auth failure instead of crashing.
    """
    command = [
        "az", "acr", "login",
        "-n", registry_name(registry),
        "--expose-token",
        "-o", "tsv",
        "--query", "accessToken",
    ]
    try:
        result = subprocess.run(
            command,
            check=False,
            capture_output=True,
            text=True,
            timeout=config.AZ_CLI_TIMEOUT,
        )
    except (OSError, subprocess.TimeoutExpired):
        return ""
    if result.returncode != 0:
        return ""
    return (result.stdout or "").strip()


# Convenience function for simple one-off lookups
def get_auth(registry: str, repository: str, refresh_token: str, session=None) -> RegistryAuth:
    """Factory function to create a RegistryAuth instance."""
    return RegistryAuth(registry, repository, refresh_token, session=session)


def load_refresh_token(registry: str) -> str:
    """
    Find a refresh token for the registry.

    Prefers the ACR_REFRESH_TOKEN environment variable, then the Azure CLI
    when enabled. Returns "" if neither yields a token.
    """
    token = config.get_refresh_token()
    if token:
        return token
    if config.USE_AZ_CLI:
        return acquire_refresh_token(registry)
    return ""
