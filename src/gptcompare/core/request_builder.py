"""Build OpenAI Responses API payloads from loosely specified user parameters."""
from __future__ import annotations
from typing import Any

DEFAULT_MAX_OUTPUT_TOKENS = 800
HARD_MAX_OUTPUT_TOKENS = 8000

# Models whose name starts with this prefix reject the temperature parameter.
# This prefix test is the only model-capability rule in the project.
NO_TEMPERATURE_PREFIX = "gpt-5"


def supports_temperature(model: str | None) -> bool:
    return model is not None and not model.lower().startswith(NO_TEMPERATURE_PREFIX)


def resolve_model(model: str | None, default_model: str) -> str:
    if model is None or not model.strip():
        return default_model
    return model


def resolve_max_output_tokens(max_output_tokens: int | None) -> int:
    """Return the effective output-token ceiling sent to the provider.

    Missing or non-positive values fall back to the default; the hard ceiling
    applies to every source.
    """
    candidate = DEFAULT_MAX_OUTPUT_TOKENS
    if (
        isinstance(max_output_tokens, int)
        and not isinstance(max_output_tokens, bool)
        and max_output_tokens >= 1
    ):
        candidate = max_output_tokens
    return min(candidate, HARD_MAX_OUTPUT_TOKENS)


def build_payload(
    message: str,
    model: str | None,
    temperature: float | None,
    max_output_tokens: int | None,
    default_model: str,
) -> dict[str, Any]:
    """
    Build the JSON body for a single POST to the Responses endpoint.

    Args:
        message: User input, sent verbatim as ``input``.
        model: Requested model; blank or None selects ``default_model``.
        temperature: Requested temperature; omitted (not null) when absent or
            when the resolved model does not accept it.
        max_output_tokens: Requested output-token ceiling.
        default_model: Configured fallback model.

    Returns:
        Payload with ``model``, ``input``, ``max_output_tokens`` and maybe
        ``temperature``.
    """
    used_model = resolve_model(model, default_model)
    payload: dict[str, Any] = {
        "model": used_model,
        "input": message,
        "max_output_tokens": resolve_max_output_tokens(max_output_tokens),
    }
    if temperature is not None and supports_temperature(used_model):
        payload["temperature"] = temperature
    return payload
