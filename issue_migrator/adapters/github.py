"""GitHub API adapter."""

import logging
from datetime import datetime
from typing import Any, Dict, List

import requests

from issue_migrator.adapters.base import GitPlatformAdapter, GitPlatformError
from issue_migrator.models import Issue, RepoRef

PER_PAGE = 100

LOG = logging.getLogger("issue_migrator.adapters.github")


def _parse_iso(s: str) -> datetime:
    return datetime.fromisoformat(s.replace("Z", "+00:00"))


def _split_repo(data: Dict[str, Any], repo: str | None) -> tuple[str, str]:
    """owner/name from the caller, else from repository_url of the payload."""
    full_name = repo
    if not full_name:
        repository_url = data.get("repository_url") or ""
        full_name = "/".join(repository_url.rstrip("/").split("/")[-2:])
    owner, _, name = full_name.partition("/")
    return owner, name


def _issue_from_api(data: Dict[str, Any], repo: str | None = None) -> Issue:
    user = data.get("user") or {}
    owner, name = _split_repo(data, repo)
    return Issue(
        number=data["number"],
        owner=owner,
        repo=name,
        title=data.get("title") or "",
        body=data.get("body") or "",
        author=user.get("login", ""),
        html_url=data.get("html_url") or "",
        state=data.get("state", "open"),
        locked=bool(data.get("locked", False)),
        is_pull_request="pull_request" in data,
        updated_at=_parse_iso(data["updated_at"]),
    )


def _repo_from_api(data: Dict[str, Any]) -> RepoRef:
    owner = data.get("owner") or {}
    return RepoRef(owner=owner.get("login", ""), name=data["name"])


def _json(resp: requests.Response) -> Any:
    try:
        return resp.json()
    except ValueError as e:
        raise GitPlatformError(f"invalid JSON from {resp.url}: {e}") from e


class GitHubAdapter(GitPlatformAdapter):
    """GitHub API implementation."""

    def __init__(self, token: str, api_url: str = "https://api.github.com") -> None:
        self._api_url = api_url.rstrip("/")
        self._session = requests.Session()
        self._session.headers["Authorization"] = f"token {token}"
        self._session.headers["Accept"] = "application/vnd.github.v3+json"

    def _request(
        self,
        method: str,
        path: str,
        params: Dict[str, Any] | None = None,
        json: Dict[str, Any] | None = None,
    ) -> requests.Response:
        url = f"{self._api_url}{path}" if path.startswith("/") else f"{self._api_url}/{path}"
        LOG.debug("%s %s", method, url)
        try:
            resp = self._session.request(method, url, params=params, json=json, timeout=30)
        except requests.RequestException as e:
            raise GitPlatformError(f"{method} {url}: {e}") from e
        if resp.status_code >= 400:
            msg = resp.text or resp.reason or str(resp.status_code)
            try:
                msg = resp.json().get("message", msg)
            except Exception:
                pass
            raise GitPlatformError(f"{resp.status_code}: {msg}")
        return resp

    def _paginate(self, path: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Collect every page; a short page is the last one."""
        out: List[Dict[str, Any]] = []
        page = 1
        while True:
            resp = self._request("GET", path, params={**params, "per_page": PER_PAGE, "page": page})
            data = _json(resp) or []
            if not isinstance(data, list):
                raise GitPlatformError(f"expected a list from {path}, got {type(data).__name__}")
            out.extend(data)
            if len(data) < PER_PAGE:
                return out
            page += 1

    def list_owned_repositories(self) -> List[RepoRef]:
        data = self._paginate("/user/repos", {"affiliation": "owner"})
        try:
            return [_repo_from_api(d) for d in data]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise GitPlatformError(f"unexpected repository payload: {e}") from e

    def list_open_issues(self, repo: str) -> List[Issue]:
        data = self._paginate(f"/repos/{repo}/issues", {"state": "open"})
        try:
            return [_issue_from_api(d, repo) for d in data]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise GitPlatformError(f"unexpected issue payload from {repo}: {e}") from e

    def get_issue(self, repo: str, issue_number: int) -> Issue:
        path = f"/repos/{repo}/issues/{issue_number}"
        try:
            resp = self._request("GET", path)
        except GitPlatformError as e:
            if str(e).startswith("404"):
                raise GitPlatformError(f"Not found: issue {repo}#{issue_number}") from e
            raise
        data = _json(resp)
        try:
            return _issue_from_api(data, repo)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise GitPlatformError(f"unexpected issue payload for {repo}#{issue_number}: {e}") from e

    def create_comment(self, repo: str, issue_number: int, body: str) -> None:
        self._request("POST", f"/repos/{repo}/issues/{issue_number}/comments", json={"body": body})

    def close_issue(self, repo: str, issue_number: int) -> None:
        self._request("PATCH", f"/repos/{repo}/issues/{issue_number}", json={"state": "closed"})

    def lock_issue(self, repo: str, issue_number: int) -> None:
        self._request("PUT", f"/repos/{repo}/issues/{issue_number}/lock")
