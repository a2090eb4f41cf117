from .commit_lookup import CommitLookup
from .provenance import Tee, resolve_commit, resolve_image_ref
