from .auth import (
    RegistryAuth,
    acquire_refresh_token,
    exchange_refresh_token,
    get_auth,
    load_refresh_token,
)
