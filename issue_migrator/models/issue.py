"""GitHub issue model."""

from datetime import datetime

from pydantic import BaseModel


class Issue(BaseModel):
    """GitHub issue (or pull request, as listed by the issues API)."""

    number: int
    owner: str
    repo: str
    title: str
    body: str = ""
    author: str
    html_url: str
    state: str = "open"
    locked: bool = False
    is_pull_request: bool = False
    updated_at: datetime

    @property
    def full_name(self) -> str:
        """Repository as owner/name."""
        return f"{self.owner}/{self.repo}"
