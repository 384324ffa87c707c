"""FastAPI chat endpoint with chunked ("infinite") context support.

Endpoints:
- GET /health
- POST /api/chat  { "message": "...", "mode": "infinite", "fullText": "...", "provider": "gemini" }
"""
from __future__ import annotations
import argparse
import logging
import os

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from infinite_context.common.config import Settings, load_settings
from infinite_context.common.errors import ClientInputError
from infinite_context.common.logging_setup import setup_logging
from infinite_context.common.schema import ChunkOutcome
from infinite_context.common.templates import (
    DEFAULT_CHUNK_TEMPLATE,
    load_template,
    missing_placeholders,
)
from infinite_context.core.assembler import assemble
from infinite_context.core.chunking import split_text
from infinite_context.core.gateway import DEFAULT_PROVIDER, ModelGateway, Provider, resolve_provider
from infinite_context.core.processor import Gateway, process_chunks

LOGGER = logging.getLogger("infinite_context.api")

INFINITE_MODE = "infinite"
DEFAULT_MODE = "default"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatIn(_CamelModel):
    message: str | None = None
    mode: str | None = None
    full_text: str | None = None
    provider: str | None = None


class ChunkOut(_CamelModel):
    prompt: str
    chunk_text: str
    chunk_number: int
    total_chunks: int
    response: str | None
    error: str | None

    @classmethod
    def from_outcome(cls, outcome: ChunkOutcome) -> "ChunkOut":
        return cls(
            prompt=outcome.prompt,
            chunk_text=outcome.chunk_text,
            chunk_number=outcome.chunk_number,
            total_chunks=outcome.total_chunks,
            response=outcome.response,
            error=outcome.error,
        )


class DefaultChatOut(_CamelModel):
    response: str
    mode: str = DEFAULT_MODE


class InfiniteChatOut(_CamelModel):
    response: str
    chunks: list[ChunkOut]
    mode: str = INFINITE_MODE
    partial: bool
    processed_count: int
    total_count: int


def _json(model: BaseModel, status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=model.model_dump(by_alias=True))


def _server_error(exc: BaseException) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": "Internal server error", "details": str(exc)})


async def _read_body(request: Request) -> bytes:
    """Read the request body, refusing anything over the configured limit."""
    limit = request.app.state.settings.max_body_bytes
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > limit:
        raise ClientInputError("Request body too large", status_code=413)

    body = bytearray()
    async for piece in request.stream():
        body.extend(piece)
        if len(body) > limit:
            raise ClientInputError("Request body too large", status_code=413)
    return bytes(body)


def _parse_chat(body: bytes) -> ChatIn:
    try:
        return ChatIn.model_validate_json(body or b"{}")
    except ValidationError:
        raise ClientInputError("Invalid request body") from None


def _answer(chat: ChatIn, provider: Provider, gateway: Gateway, settings: Settings, template: str) -> BaseModel:
    if chat.mode == INFINITE_MODE and chat.full_text and chat.full_text.strip():
        chunks = split_text(chat.full_text, chat.message, settings.chunk_size, template)
        LOGGER.info("Infinite mode: %s chunks of up to %s words", len(chunks), settings.chunk_size)
        result = process_chunks(chunks, gateway, provider, delay_s=settings.chunk_delay_s)
        assembled = assemble(result)
        return InfiniteChatOut(
            response=assembled.combined_text,
            chunks=[ChunkOut.from_outcome(o) for o in result.outcomes],
            partial=assembled.partial,
            processed_count=result.processed_count,
            total_count=result.total_count,
        )

    return DefaultChatOut(response=gateway.generate(provider, chat.message))


def create_app(settings: Settings | None = None, gateway: Gateway | None = None) -> FastAPI:
    """
    Build the chat app.

    Args:
        settings: Service settings; loaded from env/YAML when omitted.
        gateway: Model gateway; built from settings (and closed on shutdown) when omitted.
    """
    settings = settings or load_settings()
    owns_gateway = gateway is None
    if gateway is None:
        gateway = ModelGateway.from_settings(settings)

    template = DEFAULT_CHUNK_TEMPLATE
    if settings.chunk_template_path:
        template = load_template(settings.chunk_template_path)
    missing = missing_placeholders(template)
    if missing:
        LOGGER.warning("Chunk prompt template missing placeholders: %s", ", ".join(missing))

    app = FastAPI(title="Infinite Context Chat")
    app.state.settings = settings
    app.state.gateway = gateway
    app.state.chunk_template = template

    @app.on_event("shutdown")
    def _close_gateway() -> None:
        if owns_gateway:
            gateway.close()

    @app.exception_handler(ClientInputError)
    async def _client_error(request: Request, exc: ClientInputError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = "Method not allowed" if exc.status_code == 405 else str(exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"error": message}, headers=exc.headers)

    @app.exception_handler(Exception)
    async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        LOGGER.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _server_error(exc)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "provider": DEFAULT_PROVIDER.value, "model": settings.gemini_model}

    @app.post("/api/chat")
    def chat(request: Request, body: bytes = Depends(_read_body)) -> JSONResponse:
        state = request.app.state
        try:
            chat_in = _parse_chat(body)
            if not chat_in.message:
                raise ClientInputError("Message is required")
            provider = resolve_provider(chat_in.provider)
            out = _answer(chat_in, provider, state.gateway, state.settings, state.chunk_template)
        except ClientInputError:
            raise
        except Exception as e:
            LOGGER.exception("Chat request failed")
            return _server_error(e)
        return _json(out)

    return app


def main() -> None:
    ap = argparse.ArgumentParser(description="Serve the Infinite Context chat API")
    ap.add_argument("--cfg", default=None, help="Optional YAML config path")
    ap.add_argument("--host", default=os.getenv("HOST", "127.0.0.1"))
    ap.add_argument("--port", type=int, default=int(os.getenv("PORT", "8000")))
    args = ap.parse_args()

    settings = load_settings(args.cfg)
    setup_logging(settings.log_level)

    uvicorn.run(create_app(settings), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
