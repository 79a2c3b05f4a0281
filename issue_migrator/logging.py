"""Logging from config and env.

Levels (inclusive):
- ERROR: halted runs and missing credentials
- WARNING: skipped repositories and issues, malformed checkpoint lines
- INFO: per-repository and per-issue progress, every checkpointed step
- DEBUG: each GitHub and Discourse request, plus urllib3 connection chatter

Configure via config.yaml (logging.level, logging.format) or env (LOGGING_LEVEL, LOGGING_FORMAT).
"""

import logging

from issue_migrator.config import LoggingConfig

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Loggers of HTTP libraries that only matter when debugging requests
NOISY_LOGGERS = ("urllib3",)


def _resolve_level(level: str) -> int:
    """Map level name to logging constant; unknown names give INFO."""
    return LEVELS.get(level.upper().strip(), logging.INFO)


def setup_logging(config: LoggingConfig) -> int:
    """Apply level and format to the root logger and return the level used.

    Below DEBUG the HTTP client libraries are held at WARNING so that a
    long batch logs one line per step, not one per connection.
    """
    level = _resolve_level(config.level)
    logging.basicConfig(level=level, format=config.format or DEFAULT_FORMAT, force=True)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if level <= logging.DEBUG else logging.WARNING)
    if config.level.upper().strip() not in LEVELS:
        logging.getLogger("issue_migrator").warning("Unknown log level %r, using INFO", config.level)
    return level
