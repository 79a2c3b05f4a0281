"""issue-migrator entry point.

Three sources of work: test (repositories owned by the token's account),
migrate (step library repositories) and continue (resume from the
checkpoint log). Usage: issue-migrator [test | migrate | continue] --run-mode dry|live.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List

from issue_migrator.adapters import DiscourseAdapter, GitHubAdapter, GitPlatformAdapter, GitPlatformError
from issue_migrator.config import AppConfig, load_config
from issue_migrator.logging import setup_logging
from issue_migrator.migration import MigrationError, ResumeController, RunHaltedError, RunMode, get_run_mode
from issue_migrator.migration.run_modes import RUN_MODES
from issue_migrator.models import RepoRef, RunStats
from issue_migrator.steplib import SteplibError, load_repos

SOURCES = ("test", "migrate", "continue")

LOG = logging.getLogger("issue_migrator.main")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI with optional subcommand (test | migrate | continue)."""
    argv = argv if argv is not None else sys.argv[1:]
    sub = "test"
    rest = list(argv)
    if argv and not argv[0].startswith("-") and argv[0] in SOURCES:
        sub = argv[0]
        rest = argv[1:]

    parser = argparse.ArgumentParser(
        prog="issue-migrator",
        description="Move open GitHub issues to Discourse: test | migrate | continue",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=Path("config.yaml"),
        help="Path to YAML config file",
    )
    parser.add_argument(
        "--run-mode",
        choices=RUN_MODES,
        default="dry",
        help="dry only classifies issues; live posts, comments, closes and locks",
    )
    parser.add_argument(
        "--run-id",
        default=None,
        help="Baked into created topic titles for easier identification",
    )
    parser.add_argument(
        "--max-count",
        type=int,
        default=None,
        help="Max issues processed per repository (0 = no limit)",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only load and validate config, then exit",
    )
    parsed = parser.parse_args(rest)
    parsed.subcommand = sub
    return parsed


def apply_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    """CLI flags win over config file and env."""
    if args.run_id is not None:
        config.migration.run_id = args.run_id
    if args.max_count is not None:
        config.migration.max_count = max(args.max_count, 0)
    return config


def build_run_mode(config: AppConfig, name: str, github: GitPlatformAdapter) -> RunMode:
    forum = None
    if name == "live":
        api_key = config.discourse_api_key_resolved
        if not api_key:
            raise MigrationError("live run needs a Discourse API key (DISCOURSE_API_KEY)")
        forum = DiscourseAdapter(
            api_key=api_key,
            api_url=config.discourse.api_url,
            api_username=config.discourse.api_username,
        )
    return get_run_mode(name, config.migration, config.discourse, github=github, forum=forum)


def list_repositories(config: AppConfig, source: str, github: GitPlatformAdapter) -> List[RepoRef]:
    if source == "migrate":
        return load_repos(config.migration.steplib_url, config.migration.organizations)
    return github.list_owned_repositories()


def migrate_repositories(repos: List[RepoRef], github: GitPlatformAdapter, mode: RunMode) -> RunStats:
    """Run ``mode`` over each repository's open issues; halts on the first failure."""
    total = RunStats()
    for index, repo in enumerate(repos, start=1):
        LOG.info("=" * 80)
        LOG.info("Processing repo (%d/%d): %s", index, len(repos), repo.full_name)
        LOG.info("=" * 80)
        try:
            issues = github.list_open_issues(repo.full_name)
        except GitPlatformError as e:
            LOG.warning("Fetch issues from %s: %s", repo.full_name, e)
            continue
        try:
            stats = mode.run(issues)
        except RunHaltedError as e:
            raise RunHaltedError(f"repo {repo.full_name}: {e}", total.merge(e.stats)) from e
        total = total.merge(stats)
    return total


def print_summary(stats: RunStats) -> None:
    print("==================================")
    print("=== Finished processing issues ===")
    print("==================================")
    print(f"stale: {stats.stale} active: {stats.active} total processed: {stats.processed}")
    print(f"PRs: {stats.pull_request}")


def run(config: AppConfig, source: str, mode_name: str) -> int:
    """Run one batch and print stats; 1 when it halted early."""
    token = config.github_token_resolved
    if not token:
        LOG.error("GitHub token missing (GITHUB_ACCESS_TOKEN, GITHUB_TOKEN or GITHUB_TOKEN_FILE)")
        return 1
    github = GitHubAdapter(token=token, api_url=config.github.api_url)

    stats = RunStats()
    try:
        mode = build_run_mode(config, mode_name, github)
        LOG.info("issue-migrator started | source=%s | mode=%s", source, mode_name)
        if source == "continue":
            stats = ResumeController(github, config.migration).run(mode)
        else:
            repos = list_repositories(config, source, github)
            stats = migrate_repositories(repos, github, mode)
    except RunHaltedError as e:
        LOG.error("mode: %s: %s", mode_name, e)
        print_summary(e.stats)
        return 1
    except (MigrationError, SteplibError, GitPlatformError) as e:
        LOG.error("mode: %s: %s", mode_name, e)
        return 1
    print_summary(stats)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point: load config, then dispatch to the selected source."""
    args = parse_args(argv)

    config_path = args.config
    if not config_path.is_file() and config_path == Path("config.yaml"):
        if Path("config.example.yaml").is_file():
            config_path = Path("config.example.yaml")
            logging.basicConfig(level=logging.INFO)
            LOG.warning("config.yaml not found, using config.example.yaml")

    config = apply_overrides(load_config(config_path), args)

    if args.check:
        print("Config OK:", config.discourse.api_url, config.migration.checkpoint_log)
        return 0

    setup_logging(config.logging)
    try:
        return run(config, args.subcommand, args.run_mode)
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
