import argparse
import logging
import sys
from typing import Any, Awaitable, Callable, Optional

from fastapi import FastAPI, Header, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from .billing import build_payments
from .config import ConfigError, Settings
from .operations import AgentOperations
from .utils import extract_bearer_token

logger = logging.getLogger(__name__)

Operation = Callable[[str, int, str], Awaitable[Any]]


class GenerationReq(BaseModel):
    prompt: Optional[str] = None
    credit_amount: Optional[int] = None


def _require_access(req: GenerationReq, authorization: Optional[str]) -> str:
    if not req.prompt or not req.credit_amount or req.credit_amount <= 0:
        raise HTTPException(status_code=400, detail="Missing prompt or credit_amount")

    token = extract_bearer_token(authorization)
    if not token:
        raise HTTPException(status_code=401, detail="Missing Authorization header")
    return token


async def _process(name: str, operation: Operation, req: GenerationReq, token: str):
    try:
        result = await operation(req.prompt, req.credit_amount, token)
    except Exception:
        logger.exception(f"{name} endpoint error")
        raise HTTPException(status_code=500, detail="Internal server error")
    return {"result": result}


def create_app(
    settings: Optional[Settings] = None,
    payments=None,
    operations: Optional[AgentOperations] = None,
) -> FastAPI:
    """Build the agent API. Raises ConfigError when the OpenAI key is missing."""
    settings = settings or Settings.from_env()
    if operations is None:
        settings.require_openai_key()
        if payments is None:
            payments = build_payments(settings.builder_nvm_api_key, settings.nvm_environment)
        operations = AgentOperations(settings, payments)

    app = FastAPI(title="Observability GPT Agent")
    app.state.operations = operations

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError):
        logger.info(f"Rejected body for {request.url.path}: {exc.errors()}")
        return JSONResponse(status_code=400, content={"error": "Missing prompt or credit_amount"})

    @app.post("/gpt")
    async def gpt(req: GenerationReq, authorization: Optional[str] = Header(None)):
        token = _require_access(req, authorization)
        return await _process("GPT", operations.call_gpt, req, token)

    @app.post("/song")
    async def song(req: GenerationReq, authorization: Optional[str] = Header(None)):
        token = _require_access(req, authorization)
        return await _process("Song", operations.simulate_song_generation, req, token)

    @app.post("/image")
    async def image(req: GenerationReq, authorization: Optional[str] = Header(None)):
        token = _require_access(req, authorization)
        return await _process("Image", operations.simulate_image_generation, req, token)

    @app.post("/video")
    async def video(req: GenerationReq, authorization: Optional[str] = Header(None)):
        token = _require_access(req, authorization)
        return await _process("Video", operations.simulate_video_generation, req, token)

    @app.post("/combined")
    async def combined(req: GenerationReq, authorization: Optional[str] = Header(None)):
        token = _require_access(req, authorization)
        return await _process("Combined", operations.simulate_combined_generation, req, token)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


def parse_args():
    p = argparse.ArgumentParser(description="Run the observability GPT agent server")
    p.add_argument("--host", default=None)
    p.add_argument("--port", type=int, default=None)
    return p.parse_args()


def main():
    args = parse_args()
    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level.upper())
    if args.port is not None:
        settings.port = args.port
    if args.host is not None:
        settings.host = args.host

    try:
        app = create_app(settings)
    except ConfigError as e:
        logger.error(f"{e}. It is required to run the server.")
        sys.exit(1)

    import uvicorn

    logger.info(f"ObservabilityGPTServer listening on http://{settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
