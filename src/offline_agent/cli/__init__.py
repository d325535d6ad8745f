"""Command line interface for the offline agent."""

from offline_agent.cli.main import app

__all__ = ["app"]
