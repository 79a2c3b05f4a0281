"""Discourse API adapter (topic creation only)."""

import logging
from typing import Any, Dict

import requests

from issue_migrator.adapters.base import ForumAdapter, ForumError

LOG = logging.getLogger("issue_migrator.adapters.discourse")


class DiscourseAdapter(ForumAdapter):
    """Discourse API implementation."""

    def __init__(self, api_key: str, api_url: str, api_username: str = "system") -> None:
        self._api_url = api_url.rstrip("/")
        self._session = requests.Session()
        self._session.headers["Api-Key"] = api_key
        self._session.headers["Api-Username"] = api_username
        self._session.headers["Accept"] = "application/json"

    def topic_url(self, data: Dict[str, Any]) -> str:
        """Public URL of the topic a /posts.json response belongs to."""
        slug = data.get("topic_slug")
        topic_id = data["topic_id"]
        if slug:
            return f"{self._api_url}/t/{slug}/{topic_id}"
        return f"{self._api_url}/t/{topic_id}"

    def create_topic(self, title: str, body: str, category_id: int) -> str:
        url = f"{self._api_url}/posts.json"
        payload = {"title": title, "raw": body, "category": category_id}
        LOG.debug("POST %s (category %s)", url, category_id)
        try:
            resp = self._session.request("POST", url, json=payload, timeout=30)
        except requests.RequestException as e:
            raise ForumError(f"POST {url}: {e}") from e
        if resp.status_code >= 400:
            msg = resp.text or resp.reason or str(resp.status_code)
            try:
                errors = resp.json().get("errors")
                if errors:
                    msg = "; ".join(str(err) for err in errors)
            except Exception:
                pass
            raise ForumError(f"{resp.status_code}: {msg}")
        try:
            data = resp.json() or {}
        except ValueError as e:
            raise ForumError(f"invalid JSON from {url}: {e}") from e
        if not isinstance(data, dict) or "topic_id" not in data:
            raise ForumError(f"unexpected response for topic {title!r}: {data}")
        return self.topic_url(data)
