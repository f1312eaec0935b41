"""Normalize OpenAI Responses API outcomes into a GenerationResult.

The response body is untrusted JSON: any node with an unexpected shape is
treated as absent. ``normalize`` always returns a result and never raises.
"""
from __future__ import annotations
import logging
import time
from collections.abc import Iterator, Mapping
from typing import Any, Callable

from gptcompare.common.schema import (
    TRUNCATE_REASON_MAX_OUTPUT_TOKENS,
    GenerationResult,
    HttpFailure,
    Outcome,
    RequestContext,
    Success,
    TransportFailure,
)

LOGGER = logging.getLogger("gptcompare.core.normalizer")

OUTPUT_TEXT_TYPE = "output_text"

EMPTY_RESPONSE_REPLY = "Error: empty OpenAI response."
NO_OUTPUT_REPLY = "Error: OpenAI response has no output field."
NO_RESPONSE_REPLY = "Error: no response generated by OpenAI."


def _truncated_reply(max_output_tokens: int) -> str:
    return (
        "The response is too long and exceeded the output token limit "
        f"({max_output_tokens}). Increase maxOutputTokens or ask for a shorter answer."
    )


def _not_completed_reply(status: Any) -> str:
    return f"Error: OpenAI response not completed (status={status})."


def _objects(value: Any) -> Iterator[Mapping[str, Any]]:
    """Yield the mapping elements of ``value`` if it is a list; nothing otherwise."""
    if not isinstance(value, list):
        return
    for item in value:
        if isinstance(item, Mapping):
            yield item


def _content_entries(output: Any) -> Iterator[Mapping[str, Any]]:
    for item in _objects(output):
        yield from _objects(item.get("content"))


def _non_blank(text: Any) -> bool:
    return isinstance(text, str) and bool(text.strip())


def is_truncated(raw: Any) -> bool:
    """True iff the provider stopped because of ``max_output_tokens``."""
    if not isinstance(raw, Mapping):
        return False
    details = raw.get("incomplete_details")
    return (
        str(raw.get("status")) == "incomplete"
        and isinstance(details, Mapping)
        and str(details.get("reason")) == TRUNCATE_REASON_MAX_OUTPUT_TOKENS
    )


def extract_text(raw: Any, max_output_tokens: int) -> str:
    """
    Pick the user-facing reply from a response body.

    Order: first ``output_text`` entry with non-blank text, then the first
    non-blank text of any type, then a diagnostic (truncation, non-completed
    status, or nothing generated).

    Args:
        raw: Decoded response body.
        max_output_tokens: Effective ceiling used for the call, quoted in the
            truncation message.
    """
    if not isinstance(raw, Mapping):
        return EMPTY_RESPONSE_REPLY

    output = raw.get("output")
    if not isinstance(output, list):
        return NO_OUTPUT_REPLY

    for entry in _content_entries(output):
        text = entry.get("text")
        if entry.get("type") == OUTPUT_TEXT_TYPE and _non_blank(text):
            return text

    for entry in _content_entries(output):
        text = entry.get("text")
        if _non_blank(text):
            return text

    if is_truncated(raw):
        return _truncated_reply(max_output_tokens)

    status = raw.get("status")
    if status is not None and str(status) != "completed":
        return _not_completed_reply(status)

    return NO_RESPONSE_REPLY


def to_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return int(value)
        except (OverflowError, ValueError):
            return None
    try:
        return int(str(value))
    except ValueError:
        return None


def extract_usage(raw: Any) -> tuple[int | None, int | None, int | None]:
    """Read (input, output, total) token counts; each field independently optional."""
    if not isinstance(raw, Mapping):
        return None, None, None
    usage = raw.get("usage")
    if not isinstance(usage, Mapping):
        return None, None, None
    return (
        to_int(usage.get("input_tokens")),
        to_int(usage.get("output_tokens")),
        to_int(usage.get("total_tokens")),
    )


def _latency_ms(context: RequestContext, clock: Callable[[], float]) -> int:
    return max(0, int((clock() - context.dispatched_at) * 1000))


def normalize(
    outcome: Outcome,
    context: RequestContext,
    clock: Callable[[], float] = time.monotonic,
) -> GenerationResult:
    """
    Turn a provider outcome into exactly one GenerationResult.

    Args:
        outcome: Success, HttpFailure or TransportFailure.
        context: Dispatch time and effective max-output-tokens of the call.
        clock: Monotonic clock matching ``context.dispatched_at``.
    """
    latency = _latency_ms(context, clock)

    if isinstance(outcome, HttpFailure):
        return GenerationResult.http_failure(outcome.status_code, outcome.raw_body, latency)
    if isinstance(outcome, TransportFailure):
        return GenerationResult.transport_failure(outcome.message, latency)

    raw = outcome.raw if isinstance(outcome, Success) else None
    truncated = is_truncated(raw)
    if truncated:
        LOGGER.warning("Response truncated at max_output_tokens=%s", context.max_output_tokens)
    reply = extract_text(raw, context.max_output_tokens)
    return GenerationResult.success(reply, latency, extract_usage(raw), truncated)
