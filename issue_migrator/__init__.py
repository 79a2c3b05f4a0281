"""Migrate open GitHub issues to Discourse topics, resumably."""

__version__ = "0.1.0"
