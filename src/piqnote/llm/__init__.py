"""
Commit message generators for piqnote.

This package contains the interchangeable generators (local
heuristics, offline mock and a remote chat-completions backend) and
:func:`select_generator`, which picks one from the configuration.
"""

from .provider import GenerationRequest, GenerationResponse, Generator, generate_candidates  # noqa: F401
from .local_provider import LocalGenerator  # noqa: F401
from .mock_provider import MockGenerator  # noqa: F401
from .remote_provider import ChatCompletionClient, LLMError, RemoteGenerator  # noqa: F401
from .factory import resolve_api_key, select_generator  # noqa: F401
