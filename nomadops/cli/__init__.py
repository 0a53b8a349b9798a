"""nomadops command-line interface.

Exposes:
    cli -- Click group entry point (registered as ``nomadops`` script).
"""

from nomadops.cli.main import cli

__all__ = ["cli"]
