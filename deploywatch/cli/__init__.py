"""deploywatch command-line interface.

Exposes:
    cli -- Click group entry point (registered as ``deploywatch`` script).
"""

from deploywatch.cli.main import cli

__all__ = ["cli"]
