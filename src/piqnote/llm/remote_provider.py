"""
Remote commit message generation over a chat-completions HTTP API.

:class:`ChatCompletionClient` wraps the HTTP request and raises
:class:`LLMError` on any failure (transport errors, non-2xx status,
invalid JSON, missing content). :class:`RemoteGenerator` never lets
that error escape: every failed attempt is turned into a
:class:`RemoteAttempt` carrying the reason, and the generator then
answers from its fallback generator instead.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from piqnote.llm.local_provider import LocalGenerator
from piqnote.llm.provider import (
    SUBJECT_LIMIT,
    GenerationRequest,
    GenerationResponse,
    Generator,
    generate_candidates,
)


logger = logging.getLogger(__name__)
# Attach a null handler to avoid errors when the root logger is missing a
# stream. Messages still propagate to the root logger once configured.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


REMOTE_BULLET_LIMIT = 5

SYSTEM_PROMPT = (
    "You are a commit message assistant. Produce a disciplined, short Git commit "
    "message (<=72 chars subject, max 2 bullets). Use Conventional Commits when "
    "style=conventional. Avoid file paths and build artifacts."
)

_SUBJECT_LABEL = re.compile(r"^subject[:\-]\s*", re.IGNORECASE)
_BULLET_MARKER = re.compile(r"^[-*•]\s*")


class LLMError(Exception):
    """Raised when communication with the text-generation endpoint fails."""

    pass


def strip_thinking_tags(text: str) -> str:
    """Remove reasoning blocks such as ``<think>...</think>`` from a response.

    >>> strip_thinking_tags("<think>reasoning...</think>feat(api): add retry")
    'feat(api): add retry'
    """
    result = text
    for tag in ("think", "thinking", "thought", "reasoning"):
        result = re.sub(rf"<{tag}>.*?</{tag}>", "", result, flags=re.DOTALL | re.IGNORECASE)
    return result.strip()


@dataclass
class ChatCompletionClient:
    """Client for an OpenAI-compatible ``/chat/completions`` endpoint.

    Parameters
    ----------
    endpoint : str
        Full URL of the chat-completions endpoint.
    api_key : str
        Bearer token sent in the ``Authorization`` header.
    model : str
        Model identifier, e.g. ``"gpt-4o-mini"``.
    temperature : float, optional
        Sampling temperature. Defaults to 0.4.
    max_tokens : int, optional
        Completion token limit; omitted from the payload when ``None``.
    request_timeout : float, optional
        Timeout in seconds for the HTTP request. Defaults to 60 seconds.
    """

    endpoint: str
    api_key: str
    model: str
    temperature: float = 0.4
    max_tokens: Optional[int] = None
    request_timeout: float = 60.0

    def complete(self, messages: List[Dict[str, str]]) -> str:
        """Send ``messages`` and return the assistant content.

        Raises
        ------
        LLMError
            If the request fails or the response has no usable content.
        """
        payload: Dict[str, Any] = {
            "model": self.model,
            "temperature": self.temperature,
            "messages": messages,
        }
        if self.max_tokens is not None:
            payload["max_tokens"] = self.max_tokens
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        logger.debug("Sending request to %s with model %s", self.endpoint, self.model)
        try:
            response = requests.post(
                self.endpoint,
                json=payload,
                headers=headers,
                timeout=self.request_timeout,
            )
        except requests.RequestException as exc:
            logger.debug("Failed to reach %s: %s", self.endpoint, exc)
            raise LLMError(str(exc)) from exc
        if not 200 <= response.status_code < 300:
            raise LLMError(f"endpoint returned status {response.status_code}")
        try:
            data = response.json()
        except ValueError as exc:
            raise LLMError("Failed to parse response body") from exc
        try:
            content = data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as exc:
            raise LLMError("Unexpected response structure") from exc
        if not isinstance(content, str):
            raise LLMError("Unexpected response structure")
        content = strip_thinking_tags(content)
        if not content:
            raise LLMError("Empty completion")
        return content


@dataclass
class RemoteAttempt:
    """Result of one remote attempt: a response, or the reason there is none."""

    response: Optional[GenerationResponse] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.response is not None


def build_prompt(request: GenerationRequest) -> List[Dict[str, str]]:
    insights = request.insights
    user_lines = [
        f"Language: {request.language}",
        f"Style: {request.style}",
        f"Scope: {insights.scope}" if insights.scope else "",
        f"Topics: {', '.join(insights.topics)}",
        f"Summary: {insights.summary}",
        f"File types: {', '.join(insights.file_kinds)}",
    ]
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": "\n".join(line for line in user_lines if line)},
    ]


def parse_content(content: str, provider: str = "remote") -> Optional[GenerationResponse]:
    """Split completion text into subject and bullets.

    The first non-empty line is the subject (an optional ``subject:``
    label is removed); later lines starting with ``-``, ``*`` or ``•``
    are bullets. Returns ``None`` when no subject remains.
    """
    lines = [line.strip() for line in content.splitlines() if line.strip()]
    if not lines:
        return None
    subject = _SUBJECT_LABEL.sub("", lines[0])[:SUBJECT_LIMIT].strip()
    if not subject:
        return None
    bullets = [_BULLET_MARKER.sub("", line).strip() for line in lines[1:] if _BULLET_MARKER.match(line)]
    return GenerationResponse(
        subject=subject,
        bullets=[bullet for bullet in bullets if bullet][:REMOTE_BULLET_LIMIT],
        rationale=[f"Generated via {provider}"],
    )


class RemoteGenerator(Generator):
    """Generator backed by a remote model, falling back to local heuristics.

    Parameters
    ----------
    client : ChatCompletionClient, optional
        HTTP client; ``None`` when no credential is available.
    name : str, optional
        Provider name used in logs and rationale.
    fallback : Generator, optional
        Generator answering whenever the remote attempt fails.
        Defaults to :class:`LocalGenerator`.
    warn_on_failure : bool, optional
        Log a warning (once per instance) when falling back.
    """

    def __init__(
        self,
        client: Optional[ChatCompletionClient],
        name: str = "openai",
        fallback: Optional[Generator] = None,
        warn_on_failure: bool = False,
    ) -> None:
        self.client = client
        self.name = name
        self.fallback = fallback or LocalGenerator()
        self.warn_on_failure = warn_on_failure
        self._warned = False

    def attempt(self, request: GenerationRequest) -> RemoteAttempt:
        """Try the remote endpoint once without falling back."""
        if self.client is None or not self.client.api_key:
            return RemoteAttempt(reason=f"missing API key for {self.name}")
        try:
            content = self.client.complete(build_prompt(request))
        except LLMError as exc:
            return RemoteAttempt(reason=f"{self.name} request failed: {exc}")
        parsed = parse_content(content, self.name)
        if parsed is None:
            return RemoteAttempt(reason=f"{self.name} returned no usable subject")
        return RemoteAttempt(response=parsed)

    def _note_fallback(self, reason: str) -> None:
        if self.warn_on_failure and not self._warned:
            logger.warning("%s; falling back to heuristic mode.", reason)
            self._warned = True
        else:
            logger.debug("%s; falling back to heuristic mode.", reason)

    def generate(self, request: GenerationRequest) -> GenerationResponse:
        result = self.attempt(request)
        if result.ok:
            return result.response
        self._note_fallback(result.reason or "remote generation unavailable")
        return self.fallback.generate(request)

    def generate_many(self, request: GenerationRequest, count: int) -> List[GenerationResponse]:
        """First candidate from the remote model, the rest from the fallback.

        Bounds the remote calls to one per round whatever ``count`` is.
        """
        if count <= 0:
            return []
        first = self.generate(request)
        extras = generate_candidates(self.fallback, request, count - 1) if count > 1 else []
        return [first] + extras
