"""
elcache Command-Line Interface

Typer application opening one cache context per invocation.
"""

from elcache import __version__

__all__ = ['__version__']
