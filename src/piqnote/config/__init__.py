"""
Configuration loading for piqnote.

Provides a loader for the ``.piqnoterc`` file located in the
repository root. See :mod:`piqnote.config.loader` for implementation
details.
"""

from .loader import (  # noqa: F401
    AiConfig,
    CommitConfig,
    ConfigError,
    PiqnoteConfig,
    default_config,
    load_config,
    save_config,
)
