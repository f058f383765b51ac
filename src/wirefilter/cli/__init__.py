"""
CLI layer for wirefilter.

Entry point::

    wirefilter --help
"""

from wirefilter.cli.app import app

__all__ = ["app"]
