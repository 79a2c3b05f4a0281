"""Configuration loading from YAML and environment.

Secrets (GitHub token, Discourse API key) are taken from environment
variables or from files (Docker secrets). Never put real tokens in config
files committed to the repo.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_STEPLIB_URL = "https://bitrise-steplib-collection.s3.amazonaws.com/spec.json"

DEFAULT_ORGANIZATIONS = [
    "bitrise-steplib",
    "bitrise-io",
    "bitrise-core",
    "bitrise-community",
    "bitrise-tools",
    "bitrise-docker",
    "bitrise-samples",
]

ACTIVE_COMMENT = (
    "Hi {author}! We are migrating our GitHub issues to Discourse ({forum_url}). "
    "From now on, you can track this issue at: {topic_url}"
)
STALE_COMMENT = (
    "Hi {author}! We are migrating our GitHub issues to Discourse ({forum_url}). "
    "Because this issue has been inactive for more than three months, we will be closing it. "
    "If you feel it is still relevant, please open a ticket on Discourse!"
)


def _read_secret(env_key: str, file_env_key: str) -> str | None:
    """Read secret from env var or from file path in env (e.g. Docker
    secrets)."""
    value = _current_env.get(env_key)
    if value:
        return value.strip()
    file_path = _current_env.get(file_env_key)
    if file_path:
        return Path(file_path).read_text().strip()
    return None


# Injected by load_config so secret resolution can read env/file
_current_env: dict[str, str] = {}


def _is_placeholder(value: str | None) -> bool:
    return not value or value.startswith("${")


class GitHubConfig(BaseSettings):
    """GitHub API settings."""

    model_config = SettingsConfigDict(env_prefix="GITHUB_", extra="ignore")

    token: str | None = Field(default=None, description="PAT with repo scope; use env or secret file")
    api_url: str = Field(default="https://api.github.com", description="API base URL")


class DiscourseConfig(BaseSettings):
    """Discourse forum where migrated topics are created."""

    model_config = SettingsConfigDict(env_prefix="DISCOURSE_", extra="ignore")

    api_url: str = Field(default="https://discuss.bitrise.io", description="Forum base URL")
    api_key: str | None = Field(default=None, description="Admin API key; use env or secret file")
    api_username: str = Field(default="system", description="User the topics are posted as")
    category_id: int = Field(default=11, ge=1, description="Category for migrated topics")
    category_url: str = Field(
        default="https://discuss.bitrise.io/c/issues/build-issues",
        description="Public category link used in issue comments",
    )


class MigrationConfig(BaseSettings):
    """Batch run settings: checkpoint log, throttling, comment templates."""

    model_config = SettingsConfigDict(env_prefix="MIGRATION_", extra="ignore")

    checkpoint_log: Path = Field(default=Path("data.txt"), description="Append-only checkpoint log")
    # 0 disables the limit; pull requests never count against it
    max_count: int = Field(default=0, ge=0, description="Max issues processed per repository run")
    delay_seconds: float = Field(default=1.0, ge=0, description="Pause between issues (rate limits)")
    stale_months: int = Field(default=3, ge=1, description="Months without update before an issue is stale")
    run_id: str = Field(default="", description="Baked into topic titles to tell test runs apart")
    steplib_url: str = Field(default=DEFAULT_STEPLIB_URL, description="Step library spec.json")
    organizations: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ORGANIZATIONS),
        description="Owners whose step repositories are migrated",
    )
    active_comment: str = Field(default=ACTIVE_COMMENT, description="Comment for issues moved to Discourse")
    stale_comment: str = Field(default=STALE_COMMENT, description="Comment for stale issues being closed")


class LoggingConfig(BaseSettings):
    """Logging settings."""

    model_config = SettingsConfigDict(env_prefix="LOGGING_", extra="ignore")

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )


class AppConfig(BaseSettings):
    """Root application config from YAML + env."""

    model_config = SettingsConfigDict(extra="ignore")

    github: GitHubConfig = Field(default_factory=GitHubConfig)
    discourse: DiscourseConfig = Field(default_factory=DiscourseConfig)
    migration: MigrationConfig = Field(default_factory=MigrationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def github_token_resolved(self) -> str | None:
        """Resolve GitHub token from config, env or Docker secret file."""
        t = self.github.token
        if not _is_placeholder(t):
            return t
        return _read_secret("GITHUB_ACCESS_TOKEN", "GITHUB_TOKEN_FILE") or _read_secret(
            "GITHUB_TOKEN", "GITHUB_TOKEN_FILE"
        )

    @property
    def discourse_api_key_resolved(self) -> str | None:
        """Resolve Discourse API key from config, env or Docker secret
        file."""
        k = self.discourse.api_key
        if not _is_placeholder(k):
            return k
        return _read_secret("DISCOURSE_API_KEY", "DISCOURSE_API_KEY_FILE")


def _substitute_env(value: Any) -> Any:
    """Replace ${VAR} and $VAR in strings with os.environ."""
    if isinstance(value, str):
        if value.startswith("${") and value.endswith("}"):
            key = value[2:-1].strip()
            return _current_env.get(key, value)
        if value.startswith("$") and not value.startswith("${"):
            key = value[1:].strip()
            return _current_env.get(key, value)
        return value
    if isinstance(value, dict):
        return {k: _substitute_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute_env(v) for v in value]
    return value


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load config from YAML file and environment.

    Secrets: GITHUB_ACCESS_TOKEN / GITHUB_TOKEN or GITHUB_TOKEN_FILE,
    DISCOURSE_API_KEY or DISCOURSE_API_KEY_FILE.
    """
    global _current_env
    import os

    _current_env = dict(os.environ)

    path = config_path or Path("config.yaml")
    if not path.is_file():
        return AppConfig()

    raw = yaml.safe_load(path.read_text()) or {}
    raw = _substitute_env(raw)

    return AppConfig(
        github=GitHubConfig(**(raw.get("github") or {})),
        discourse=DiscourseConfig(**(raw.get("discourse") or {})),
        migration=MigrationConfig(**(raw.get("migration") or {})),
        logging=LoggingConfig(**(raw.get("logging") or {})),
    )
