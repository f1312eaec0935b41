"""FastAPI front for the OpenAI Responses relay.

Endpoints:
- GET /health
- GET /api/chat/ping
- POST /api/chat/send  { "message": "...", "model"?, "temperature"?, "maxOutputTokens"? }
"""
from __future__ import annotations
import logging
import os

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field

from gptcompare.common.config import Settings
from gptcompare.common.logging_setup import setup_logging
from gptcompare.common.schema import GenerationResult
from gptcompare.serve.openai_service import OpenAIService

SETTINGS = Settings.load()

LOGGER = logging.getLogger("gptcompare.serve.app")
setup_logging(SETTINGS.log_level)

SERVICE = OpenAIService.from_settings(SETTINGS)

EMPTY_MESSAGE_REPLY = "Empty message."
INVALID_REQUEST_REPLY = "Invalid request."


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str | None = None
    model: str | None = None
    temperature: float | None = None
    max_output_tokens: int | None = Field(default=None, alias="maxOutputTokens")


class ChatResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    reply: str
    latency_ms: int = Field(alias="latencyMs")
    input_tokens: int | None = Field(default=None, alias="inputTokens")
    output_tokens: int | None = Field(default=None, alias="outputTokens")
    total_tokens: int | None = Field(default=None, alias="totalTokens")
    truncated: bool = False
    truncate_reason: str | None = Field(default=None, alias="truncateReason")

    @classmethod
    def from_result(cls, result: GenerationResult) -> "ChatResponse":
        return cls(
            reply=result.reply,
            latency_ms=result.latency_ms,
            input_tokens=result.input_tokens,
            output_tokens=result.output_tokens,
            total_tokens=result.total_tokens,
            truncated=result.truncated,
            truncate_reason=result.truncate_reason,
        )


def _rejected(reply: str) -> JSONResponse:
    body = ChatResponse(reply=reply, latency_ms=0)
    return JSONResponse(status_code=400, content=body.model_dump(by_alias=True))


app = FastAPI()
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(SETTINGS.cors_origins),
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def _check_credentials_on_startup() -> None:
    """Warn when no API key is configured."""
    if not SETTINGS.api_key:
        LOGGER.warning("OPENAI_API_KEY is not set; upstream calls will be rejected")


@app.exception_handler(RequestValidationError)
async def _reject_malformed_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    LOGGER.info("Rejected malformed request: %s", exc.errors())
    return _rejected(INVALID_REQUEST_REPLY)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "model": SETTINGS.default_model}


@app.get("/api/chat/ping", response_class=PlainTextResponse)
def ping() -> str:
    return "pong"


@app.post("/api/chat/send", response_model=ChatResponse)
def send(body: ChatRequest):
    if body.message is None or not body.message.strip():
        LOGGER.info("Rejected blank message")
        return _rejected(EMPTY_MESSAGE_REPLY)

    result = SERVICE.generate_reply(
        body.message,
        model=body.model,
        temperature=body.temperature,
        max_output_tokens=body.max_output_tokens,
    )
    return ChatResponse.from_result(result)


def main() -> None:
    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "8080"))
    uvicorn.run(app, host=host, port=port, log_config=None)


if __name__ == "__main__":
    main()
