from .config_manifest import (
    ACCEPT_ALL,
    ACCEPT_SINGLE,
    INDEX_TYPES,
    REVISION_LABEL,
    SINGLE_MANIFEST_TYPES,
    extract_label,
    fetch_config_blob,
    fetch_manifest,
    is_index,
    label_from_config,
    resolve_config_digest,
)
