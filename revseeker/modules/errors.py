"""Registry lookup errors.

Every error raised while talking to the registry derives from
RegistryLookupError and names the stage that failed. The orchestrator turns
these into an empty result plus a diagnostic line.
"""


class RegistryLookupError(RuntimeError):
    """Base registry interaction error."""

    stage = "registry"


class TokenExchangeError(RegistryLookupError):
    """Refresh token could not be exchanged for an access token."""

    stage = "auth"


class ManifestResolutionError(RegistryLookupError):
    """Manifest or index could not be resolved to a config digest."""

    stage = "manifest"


class LabelExtractionError(RegistryLookupError):
    """Config blob could not be fetched or parsed."""

    stage = "label"
