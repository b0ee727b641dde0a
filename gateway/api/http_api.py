"""
HTTP API adapter for the generation gateway.

Architectural role:
- Expose one route per input modality.
- Enforce adapter-level input validation before any model work.
- Delegate payload construction to `gateway.normalizer.normalize` and the model
  call to the injected `ModelAdapter`.
- Own the lifetime of each request's temporary upload.

Endpoint responsibilities:
- `POST /generate-text`: JSON `{prompt}`.
- `POST /generate-from-image`: multipart `image` + optional `prompt`.
- `POST /generate-from-audio`: multipart `audio` + optional `prompt`.
- `POST /generate-from-document`: multipart `document` + optional `prompt`.
- `GET /health`: liveness plus configured model.

API request lifecycle (file routes):
1. Reject the request with 400 when the required file part is missing.
2. Store the upload under the upload directory.
3. Normalize prompt + file into a `ContentPayload`.
4. Run the model call on the threadpool, watching for client disconnects.
5. Release the upload in `finally`, whatever happened above.

Error handling strategy:
- Missing input / malformed body -> 400 `{error}`.
- Oversized upload -> 413 `{error}`.
- Normalization or model failure -> 500 `{error}` with the failure's message.
- Client disconnect -> model call is signalled to stop, 499.
- Nothing propagates past the route handlers.

Side effects:
- Writes and deletes files under the upload directory.
- Emits debug logs only when `DEBUG == "true"`.
"""

import asyncio
import logging
import threading
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from gateway import config
from gateway.api.schemas import (
    ErrorResponse,
    GenerateResponse,
    GenerateTextRequest,
    HealthResponse,
)
from gateway.api.uploads import release_upload, store_upload
from gateway.errors import (
    ClientDisconnectedError,
    GatewayError,
    MissingInputError,
    UploadTooLargeError,
)
from gateway.llm.service import ModelAdapter
from gateway.normalizer import normalize
from gateway.payload import Modality


logger = logging.getLogger(__name__)

FALLBACK_ERROR_MESSAGE = "failed to process request"
CLIENT_CLOSED_REQUEST = 499

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    413: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


# ============================================================
# Model call with disconnect propagation
# ============================================================

async def _invoke_model(request: Request, adapter, payload):
    """
    Run `adapter.generate` on the threadpool until it finishes or the client leaves.

    The blocking call gets a `threading.Event`; it is set when the client
    disconnects or this coroutine is cancelled, so the adapter can abandon its
    outbound request.
    """
    cancel_event = threading.Event()
    call = asyncio.ensure_future(
        run_in_threadpool(adapter.generate, payload, cancel_event=cancel_event)
    )
    try:
        while True:
            done, _ = await asyncio.wait({call}, timeout=config.DISCONNECT_POLL_SECONDS)
            if done:
                return call.result()
            if await request.is_disconnected():
                logger.info("Client disconnected; abandoning model call")
                raise ClientDisconnectedError("client disconnected")
    finally:
        if not call.done():
            cancel_event.set()
            call.cancel()


async def _run_pipeline(request: Request, modality: Modality, prompt, file_handle=None):
    """Normalize, invoke, and translate the outcome into a response."""
    try:
        payload = normalize(modality, prompt, file_handle)
        output = await _invoke_model(request, request.app.state.adapter, payload)
    except MissingInputError as e:
        return _error(400, str(e))
    except ClientDisconnectedError as e:
        return _error(CLIENT_CLOSED_REQUEST, str(e))
    except GatewayError as e:
        logger.warning("%s request failed: %s", modality.value, e)
        return _error(500, str(e) or FALLBACK_ERROR_MESSAGE)
    except Exception as e:
        logger.exception("Unexpected failure in %s request", modality.value)
        return _error(500, str(e) or FALLBACK_ERROR_MESSAGE)

    logger.debug("%s request succeeded (%d chars)", modality.value, len(output))
    return {"output": output}


async def _handle_file_route(request: Request, modality: Modality, upload, prompt):
    """Shared body of the three multipart routes."""
    if upload is None or not upload.filename:
        return _error(400, f"{modality.value} file is required")

    file_handle = None
    try:
        file_handle = await store_upload(
            upload,
            upload_dir=request.app.state.upload_dir,
            max_bytes=request.app.state.max_upload_bytes,
        )
        logger.debug(
            "Stored %s upload %r as %s (%s)",
            modality.value,
            file_handle.filename,
            file_handle.path,
            file_handle.mime_type,
        )
        return await _run_pipeline(request, modality, prompt, file_handle)
    except UploadTooLargeError as e:
        return _error(413, str(e))
    except OSError as e:
        logger.exception("Failed to store %s upload", modality.value)
        return _error(500, str(e) or FALLBACK_ERROR_MESSAGE)
    finally:
        release_upload(file_handle)


# ============================================================
# Application factory
# ============================================================

def create_app(adapter=None, upload_dir=None, max_upload_bytes=None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        adapter: Object exposing `generate(payload, cancel_event=None) -> str`.
            A `ModelAdapter` with a fresh shared session when omitted.
        upload_dir: Directory for temporary uploads. Defaults to `config.UPLOAD_DIR`.
        max_upload_bytes: Upload ceiling. Defaults to `config.MAX_UPLOAD_SIZE_BYTES`.
    """
    owns_adapter = adapter is None

    @asynccontextmanager
    async def _lifespan(app: FastAPI):
        try:
            yield
        finally:
            if owns_adapter:
                app.state.adapter.close()

    app = FastAPI(title="gateway", lifespan=_lifespan)
    app.state.adapter = adapter if adapter is not None else ModelAdapter()
    app.state.upload_dir = upload_dir or config.UPLOAD_DIR
    app.state.max_upload_bytes = (
        max_upload_bytes if max_upload_bytes is not None else config.MAX_UPLOAD_SIZE_BYTES
    )

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        logger.debug("Rejected malformed request to %s: %s", request.url.path, exc.errors())
        return _error(400, "malformed request")

    @app.get("/health", response_model=HealthResponse)
    def health():
        return {"status": "ok", "model": getattr(app.state.adapter, "model", config.GEMINI_MODEL)}

    @app.post("/generate-text", response_model=GenerateResponse, responses=ERROR_RESPONSES)
    async def generate_text(request: Request):
        raw = await request.body()
        try:
            body = GenerateTextRequest.model_validate_json(raw) if raw.strip() else GenerateTextRequest()
        except ValidationError:
            return _error(400, "request body must be a JSON object with a string prompt")

        if not body.prompt:
            return _error(400, "prompt is required")

        logger.debug("generate-text prompt=%r", body.prompt)
        return await _run_pipeline(request, Modality.TEXT, body.prompt)

    @app.post("/generate-from-image", response_model=GenerateResponse, responses=ERROR_RESPONSES)
    async def generate_from_image(
        request: Request,
        image: UploadFile | None = File(None),
        prompt: str | None = Form(None),
    ):
        return await _handle_file_route(request, Modality.IMAGE, image, prompt)

    @app.post("/generate-from-audio", response_model=GenerateResponse, responses=ERROR_RESPONSES)
    async def generate_from_audio(
        request: Request,
        audio: UploadFile | None = File(None),
        prompt: str | None = Form(None),
    ):
        return await _handle_file_route(request, Modality.AUDIO, audio, prompt)

    @app.post("/generate-from-document", response_model=GenerateResponse, responses=ERROR_RESPONSES)
    async def generate_from_document(
        request: Request,
        document: UploadFile | None = File(None),
        prompt: str | None = Form(None),
    ):
        return await _handle_file_route(request, Modality.DOCUMENT, document, prompt)

    return app


app = create_app()


def serve():
    """Run the HTTP service with uvicorn on the configured host and port."""
    logging.basicConfig(
        level=logging.DEBUG if config.DEBUG else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Gateway running on port %s (model=%s)", config.PORT, config.GEMINI_MODEL)
    uvicorn.run(app, host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    serve()
