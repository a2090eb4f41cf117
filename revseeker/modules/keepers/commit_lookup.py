from dataclasses import dataclass
from typing import Optional

# =============================================================================
# Data Class for Commit Lookup Results
# =============================================================================

@dataclass(frozen=True)
class CommitLookup:
    """Result of resolving an image digest to its source commit."""
    registry: str
    repository: str
    digest: str
    commit: str = ""
    config_digest: Optional[str] = None
    stage: Optional[str] = None  # auth, manifest or label when a lookup step failed
    reason: Optional[str] = None

    @property
    def found(self) -> bool:
        return bool(self.commit)

    def __str__(self) -> str:
        return self.commit

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "registry": self.registry,
            "repository": self.repository,
            "digest": self.digest,
            "commit": self.commit,
            "found": self.found,
            "config_digest": self.config_digest,
            "stage": self.stage,
            "reason": self.reason,
        }
