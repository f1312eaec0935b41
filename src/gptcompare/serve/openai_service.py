"""Single-call relay to the OpenAI Responses API."""
from __future__ import annotations
import json
import logging
import time

import httpx

from gptcompare.common.config import Settings
from gptcompare.common.schema import (
    GenerationResult,
    HttpFailure,
    Outcome,
    RequestContext,
    Success,
    TransportFailure,
)
from gptcompare.core.normalizer import normalize
from gptcompare.core.request_builder import build_payload

LOGGER = logging.getLogger("gptcompare.serve.openai")


def _describe(exc: Exception) -> str:
    return str(exc) or type(exc).__name__


class OpenAIService:
    """Sends one request per call and normalizes whatever comes back.

    Holds only read-only configuration, so one instance can serve
    concurrent requests.
    """

    def __init__(self, api_key: str, api_url: str, default_model: str, timeout: float = 60.0) -> None:
        self.api_url = api_url
        self.default_model = default_model
        self.timeout = timeout
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenAIService":
        return cls(
            api_key=settings.api_key,
            api_url=settings.api_url,
            default_model=settings.default_model,
            timeout=settings.timeout_s,
        )

    def _read_body(self, r: httpx.Response, deadline: float) -> bytes:
        chunks = []
        for chunk in r.iter_bytes():
            chunks.append(chunk)
            if time.monotonic() > deadline:
                raise httpx.ReadTimeout(f"no complete response within {self.timeout}s", request=r.request)
        return b"".join(chunks)

    def _post(self, payload: dict) -> Outcome:
        # The httpx timeout applies per read; the deadline bounds the whole call.
        deadline = time.monotonic() + self.timeout
        try:
            with httpx.Client(timeout=self.timeout) as client:
                with client.stream("POST", self.api_url, headers=self._headers, json=payload) as r:
                    body = self._read_body(r, deadline)
                    if not r.is_success:
                        LOGGER.error("OpenAI returned HTTP %s", r.status_code)
                        text = body.decode(r.encoding or "utf-8", errors="replace")
                        return HttpFailure(r.status_code, text)
            return Success(json.loads(body))
        except (httpx.HTTPError, ValueError, RecursionError) as e:
            LOGGER.error("OpenAI request failed: %s", _describe(e))
            return TransportFailure(_describe(e))

    def generate_reply(
        self,
        message: str,
        model: str | None = None,
        temperature: float | None = None,
        max_output_tokens: int | None = None,
    ) -> GenerationResult:
        """
        Relay ``message`` and return the normalized result.

        Args:
            message: Non-blank user message.
            model: Requested model, default model when blank.
            temperature: Sent only to models that accept it.
            max_output_tokens: Requested ceiling; defaulted and capped.
        """
        payload = build_payload(message, model, temperature, max_output_tokens, self.default_model)
        context = RequestContext(
            dispatched_at=time.monotonic(),
            max_output_tokens=payload["max_output_tokens"],
        )
        result = normalize(self._post(payload), context)
        LOGGER.info(
            "model=%s latency=%sms in=%s out=%s truncated=%s",
            payload["model"],
            result.latency_ms,
            result.input_tokens,
            result.output_tokens,
            result.truncated,
        )
        return result
