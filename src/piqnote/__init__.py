"""
Top-level package for piqnote.

This package exposes the main CLI entry point via the
``piqnote.cli`` module.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
