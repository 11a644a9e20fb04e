import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse

from . import score_routes, user_routes
from .config import get_settings
from .dependencies import close_upstream
from .errors import ProxyError
from .logging_config import configure_logging
from .static_routes import build_static_router


configure_logging()
logger = logging.getLogger(__name__)

settings_snapshot = get_settings()
logger.info("Proxying OData requests to %s", settings_snapshot.service_root)
if not settings_snapshot.bearer_token:
    logger.warning("SF_BEARER_TOKEN not set; upstream calls will fail until it is provided.")


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    try:
        yield
    finally:
        await close_upstream()


app = FastAPI(title="HR OData Proxy", version="0.1.0", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ProxyError)
async def proxy_error_handler(request: Request, exc: ProxyError) -> JSONResponse:
    return JSONResponse(exc.payload, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        {"error": "invalid request", "details": jsonable_encoder(exc.errors())},
        status_code=400,
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error for %s %s", request.method, request.url.path)
    return JSONResponse(
        {"error": "Internal server error", "details": str(exc) or type(exc).__name__},
        status_code=500,
    )


@app.get("/health")
def health() -> Dict[str, bool]:
    return {"ok": True}


app.include_router(user_routes.router)
app.include_router(score_routes.router)
app.include_router(build_static_router(settings_snapshot))
