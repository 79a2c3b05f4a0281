"""Repository list from the step library spec file.

The spec file maps step ids to their versions; the latest version's source
URL points at the step's GitHub repository. Only repositories owned by one
of the configured organizations are migrated.
"""

import logging
from typing import Any, Dict, List

import requests
from pydantic import BaseModel, Field, ValidationError

from issue_migrator.models import RepoRef

LOG = logging.getLogger("issue_migrator.steplib")


class SteplibError(Exception):
    """Raised when the step library spec cannot be fetched or parsed."""

    pass


class StepSource(BaseModel):
    """source block of a step version."""

    git: str | None = None


class StepVersion(BaseModel):
    """One version of a step (only the fields needed to locate its repo)."""

    source_code_url: str | None = None
    source: StepSource | None = None

    model_config = {"extra": "ignore"}

    @property
    def repo_url(self) -> str | None:
        if self.source_code_url:
            return self.source_code_url
        if self.source and self.source.git:
            return self.source.git
        return None


class Step(BaseModel):
    """Step entry of the collection."""

    latest_version_number: str = ""
    versions: Dict[str, StepVersion] = Field(default_factory=dict)

    model_config = {"extra": "ignore"}


class StepCollection(BaseModel):
    """Top level of spec.json."""

    steps: Dict[str, Step] = Field(default_factory=dict)

    model_config = {"extra": "ignore"}


def repo_from_url(url: str) -> RepoRef | None:
    """https://github.com/owner/name(.git) -> RepoRef; None when too short."""
    fragments = url.rstrip("/").split("/")
    if len(fragments) < 2:
        return None
    name = fragments[-1]
    if name.endswith(".git"):
        name = name[: -len(".git")]
    owner = fragments[-2]
    if not owner or not name:
        return None
    return RepoRef(owner=owner, name=name)


def repos_from_spec(data: Dict[str, Any], organizations: List[str]) -> List[RepoRef]:
    """Filter the collection to latest-version repositories of the given owners.

    Output is deduplicated and sorted by full name.
    """
    try:
        collection = StepCollection.model_validate(data)
    except ValidationError as e:
        raise SteplibError(f"parse steplib spec: {e}") from e
    found: Dict[str, RepoRef] = {}
    for step_id, step in collection.steps.items():
        version = step.versions.get(step.latest_version_number)
        url = version.repo_url if version else None
        if not url:
            LOG.warning("Step %s: no source URL for latest version %s", step_id, step.latest_version_number)
            continue
        repo = repo_from_url(url)
        if repo is None or repo.owner not in organizations:
            continue
        found[repo.full_name] = repo
    return [found[k] for k in sorted(found)]


def load_repos(steplib_url: str, organizations: List[str]) -> List[RepoRef]:
    """Fetch spec.json and return the repositories to migrate."""
    try:
        resp = requests.get(steplib_url, timeout=60)
    except requests.RequestException as e:
        raise SteplibError(f"fetch steplib json: {e}") from e
    if resp.status_code >= 400:
        raise SteplibError(f"fetch steplib json: {resp.status_code} {resp.reason}")
    try:
        data = resp.json()
    except ValueError as e:
        raise SteplibError(f"unmarshal steplib json: {e}") from e
    repos = repos_from_spec(data, organizations)
    LOG.info("Found %d repos in step library, querying open issues", len(repos))
    return repos
