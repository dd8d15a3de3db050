"""status-informer command-line interface.

Exposes:
    cli -- Click command entry point (registered as ``status-informer`` script).
"""

from statusinformer.cli.main import cli

__all__ = ["cli"]
