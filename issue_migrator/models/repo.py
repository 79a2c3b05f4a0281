"""Repository reference."""

from pydantic import BaseModel


class RepoRef(BaseModel):
    """Repository whose open issues get migrated."""

    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"
