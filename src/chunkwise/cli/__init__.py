"""Command line interface for chunkwise."""

from chunkwise.cli.main import cli

__all__ = ["cli"]
