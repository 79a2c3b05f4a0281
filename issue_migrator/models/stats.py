"""Per-run counters."""

from pydantic import BaseModel


class RunStats(BaseModel):
    """Counters accumulated during one run; never persisted."""

    processed: int = 0
    stale: int = 0
    active: int = 0
    pull_request: int = 0

    def merge(self, other: "RunStats") -> "RunStats":
        """Return the sum of both counters (stats aggregate across repositories)."""
        return RunStats(
            processed=self.processed + other.processed,
            stale=self.stale + other.stale,
            active=self.active + other.active,
            pull_request=self.pull_request + other.pull_request,
        )
