from __future__ import annotations

from typing import Any

from gptcompare.common.schema import (
    HttpFailure,
    RequestContext,
    Success,
    TransportFailure,
)
from gptcompare.core.normalizer import (
    NO_OUTPUT_REPLY,
    NO_RESPONSE_REPLY,
    extract_text,
    extract_usage,
    is_truncated,
    normalize,
    to_int,
)


def _ctx(max_output_tokens: int = 800) -> RequestContext:
    return RequestContext(dispatched_at=10.0, max_output_tokens=max_output_tokens)


def _clock() -> float:
    return 10.25


def _truncated_body(text: str) -> dict[str, Any]:
    return {
        "status": "incomplete",
        "incomplete_details": {"reason": "max_output_tokens"},
        "output": [{"content": [{"type": "output_text", "text": text}]}],
    }


def test_completed_response_with_usage() -> None:
    raw = {
        "status": "completed",
        "output": [{"content": [{"type": "output_text", "text": "Bonjour !"}]}],
        "usage": {"input_tokens": 10, "output_tokens": 20, "total_tokens": 30},
    }
    r = normalize(Success(raw), _ctx(), clock=_clock)
    assert r.reply == "Bonjour !"
    assert (r.input_tokens, r.output_tokens, r.total_tokens) == (10, 20, 30)
    assert r.truncated is False
    assert r.truncate_reason is None
    assert r.latency_ms == 250


def test_output_text_wins_regardless_of_position() -> None:
    raw = {
        "output": [
            {"content": [{"type": "reasoning", "text": "thinking..."}]},
            {"content": [
                {"type": "something", "text": "Other"},
                {"type": "output_text", "text": "Main text"},
            ]},
        ]
    }
    assert extract_text(raw, 800) == "Main text"


def test_fallback_to_first_non_blank_text_of_any_type() -> None:
    raw = {
        "status": "completed",
        "output": [{"content": [{"type": "x", "text": "  "}, {"type": "y", "text": "Fallback"}]}],
    }
    assert extract_text(raw, 800) == "Fallback"


def test_output_text_type_is_case_sensitive() -> None:
    raw = {"output": [{"content": [
        {"type": "OUTPUT_TEXT", "text": "first"},
        {"type": "output_text", "text": "second"},
    ]}]}
    assert extract_text(raw, 800) == "second"


def test_truncated_without_text_names_effective_limit() -> None:
    r = normalize(Success(_truncated_body("")), _ctx(123), clock=_clock)
    assert r.truncated is True
    assert r.truncate_reason == "max_output_tokens"
    assert "output token limit" in r.reply
    assert "123" in r.reply


def test_truncated_with_text_keeps_text_and_flag() -> None:
    r = normalize(Success(_truncated_body("Beginning of answer...")), _ctx(200), clock=_clock)
    assert r.reply == "Beginning of answer..."
    assert r.truncated is True
    assert r.truncate_reason == "max_output_tokens"


def test_is_truncated_requires_status_and_reason() -> None:
    assert is_truncated(_truncated_body("x"))
    assert not is_truncated({"status": "incomplete"})
    assert not is_truncated({"status": "incomplete", "incomplete_details": {"reason": "content_filter"}})
    assert not is_truncated({"status": "completed", "incomplete_details": {"reason": "max_output_tokens"}})
    assert not is_truncated({"status": "incomplete", "incomplete_details": "max_output_tokens"})
    assert not is_truncated(None)


def test_missing_output_field() -> None:
    r = normalize(Success({"status": "completed", "usage": {"input_tokens": 1}}), _ctx(), clock=_clock)
    assert r.reply == NO_OUTPUT_REPLY
    assert r.input_tokens == 1
    assert r.output_tokens is None
    assert r.total_tokens is None


def test_output_of_wrong_type() -> None:
    assert extract_text({"output": {"content": []}}, 800) == NO_OUTPUT_REPLY


def test_non_completed_status_is_named() -> None:
    raw = {"status": "failed", "output": [{"content": [{"type": "output_text", "text": ""}]}]}
    assert "status=failed" in extract_text(raw, 800)


def test_nothing_generated() -> None:
    assert extract_text({"status": "completed", "output": []}, 800) == NO_RESPONSE_REPLY
    assert extract_text({"output": []}, 800) == NO_RESPONSE_REPLY


def test_malformed_nodes_are_skipped() -> None:
    raw = {
        "status": "completed",
        "output": [
            "junk",
            None,
            {"content": "not a list"},
            {"content": [42, {"type": "output_text", "text": 7}, {"type": "output_text"}]},
            {"content": [{"type": "output_text", "text": "ok"}]},
        ],
    }
    assert extract_text(raw, 800) == "ok"


def test_non_mapping_body_never_raises() -> None:
    for raw in (None, [], "text", 3):
        r = normalize(Success(raw), _ctx(), clock=_clock)
        assert r.reply
        assert r.input_tokens is None
        assert r.truncated is False


def test_usage_coercion_per_field() -> None:
    raw = {"usage": {"input_tokens": "12", "output_tokens": 3.9, "total_tokens": "n/a"}}
    assert extract_usage(raw) == (12, 3, None)
    assert extract_usage({"usage": [1, 2, 3]}) == (None, None, None)
    assert extract_usage({}) == (None, None, None)


def test_to_int() -> None:
    assert to_int(5) == 5
    assert to_int("42") == 42
    assert to_int(None) is None
    assert to_int(True) is None
    assert to_int(float("nan")) is None
    assert to_int({"a": 1}) is None


def test_http_failure() -> None:
    r = normalize(HttpFailure(400, '{"error":"bad request"}'), _ctx(), clock=_clock)
    assert r.reply.startswith("OpenAI HTTP error 400:")
    assert '{"error":"bad request"}' in r.reply
    assert (r.input_tokens, r.output_tokens, r.total_tokens) == (None, None, None)
    assert r.truncated is False
    assert r.truncate_reason is None
    assert r.latency_ms == 250


def test_transport_failure() -> None:
    r = normalize(TransportFailure("Connection reset by peer"), _ctx(), clock=_clock)
    assert r.reply.startswith("Error:")
    assert "Connection reset by peer" in r.reply
    assert (r.input_tokens, r.output_tokens, r.total_tokens) == (None, None, None)
    assert r.latency_ms >= 0


def test_latency_never_negative() -> None:
    r = normalize(TransportFailure("boom"), _ctx(), clock=lambda: 5.0)
    assert r.latency_ms == 0


def test_normalize_is_idempotent() -> None:
    outcome = Success(_truncated_body("partial"))
    assert normalize(outcome, _ctx(), clock=_clock) == normalize(outcome, _ctx(), clock=_clock)
