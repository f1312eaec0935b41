"""Dataclasses for provider outcomes and the normalized generation result."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Union

TRUNCATE_REASON_MAX_OUTPUT_TOKENS = "max_output_tokens"


@dataclass(frozen=True)
class Success:
    """Decoded JSON body of a 2xx provider response."""
    raw: Any


@dataclass(frozen=True)
class HttpFailure:
    """Non-2xx provider response."""
    status_code: int
    raw_body: str


@dataclass(frozen=True)
class TransportFailure:
    """Connection error, timeout or undecodable body."""
    message: str


Outcome = Union[Success, HttpFailure, TransportFailure]


@dataclass(frozen=True)
class RequestContext:
    """Per-call values the normalizer needs from the dispatch side."""
    dispatched_at: float
    max_output_tokens: int


@dataclass(frozen=True)
class GenerationResult:
    """Normalized result of one generation call.

    Use the factories below rather than the constructor: they keep the
    reply populated and the failure paths free of usage and truncation.
    """
    reply: str
    latency_ms: int
    input_tokens: int | None = None
    output_tokens: int | None = None
    total_tokens: int | None = None
    truncated: bool = False
    truncate_reason: str | None = None

    @classmethod
    def success(
        cls,
        reply: str,
        latency_ms: int,
        usage: tuple[int | None, int | None, int | None] = (None, None, None),
        truncated: bool = False,
    ) -> "GenerationResult":
        input_tokens, output_tokens, total_tokens = usage
        return cls(
            reply=reply,
            latency_ms=max(0, latency_ms),
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            total_tokens=total_tokens,
            truncated=truncated,
            truncate_reason=TRUNCATE_REASON_MAX_OUTPUT_TOKENS if truncated else None,
        )

    @classmethod
    def http_failure(cls, status_code: int, raw_body: str, latency_ms: int) -> "GenerationResult":
        return cls(
            reply=f"OpenAI HTTP error {status_code}: {raw_body}",
            latency_ms=max(0, latency_ms),
        )

    @classmethod
    def transport_failure(cls, message: str, latency_ms: int) -> "GenerationResult":
        return cls(reply=f"Error: {message}", latency_ms=max(0, latency_ms))
