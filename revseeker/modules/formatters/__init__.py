from .formatters import (
    is_digest,
    is_registry,
    is_repository,
    parse_image_ref,
    registry_base_url,
    registry_host,
    registry_name,
    short_digest,
    token_url,
)
