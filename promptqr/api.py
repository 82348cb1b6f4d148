"""FastAPI application for promptqr."""
from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, Header, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from .config import settings
from .logging_conf import configure_logging
from .middleware import RequestLoggingMiddleware
from .monitoring import metrics_payload, record_service_error
from .schemas import (
    GeneratePayloadRequest,
    GeneratePayloadResponse,
    IdentifierKindEnum,
    VerifyPayloadRequest,
    VerifyPayloadResponse,
)
from .services.errors import ServiceError
from .services.generator import PayloadGenerator
from .services.verifier import PayloadVerifier

app = FastAPI(title="promptqr", version="0.1.0")
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(CORSMiddleware, allow_origins=settings.allowed_origins, allow_methods=["GET", "POST"], allow_headers=["*"])

logger = logging.getLogger("promptqr.api")


def _warn_insecure_defaults() -> None:
    if settings.api_key == "dev-secret-key":
        logger.warning(
            "api key uses the default value",
            extra={"config_key": "api_key", "environment": settings.environment},
        )


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging()
    _warn_insecure_defaults()


async def require_api_key(x_api_key: str = Header(...)) -> None:
    if x_api_key != settings.api_key:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")


def _route_path(request: Request) -> str:
    route = request.scope.get("route")
    return route.path if route else request.url.path


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    route_path = _route_path(request)
    logger.warning(
        "service error",
        extra={"code": exc.code, "path": route_path, "method": request.method},
    )
    record_service_error(exc.code, route_path)
    return JSONResponse(status_code=exc.status_code, content={"code": exc.code, "message": exc.message})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "unhandled exception",
        extra={"path": _route_path(request), "method": request.method},
    )
    return JSONResponse(status_code=500, content={"code": "ERR_INTERNAL", "message": "Internal server error"})


@app.get("/health", tags=["system"])
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metrics", tags=["system"])
async def metrics() -> Response:
    payload, content_type = metrics_payload()
    return Response(content=payload, media_type=content_type)


@app.post("/v1/promptpay", response_model=GeneratePayloadResponse, tags=["promptpay"], dependencies=[Depends(require_api_key)])
async def generate_promptpay(payload: GeneratePayloadRequest) -> GeneratePayloadResponse:
    generator = PayloadGenerator()
    result = generator.create_payload(
        identifier=payload.identifier,
        amount=payload.amount,
        phone_country_code=payload.phone_country_code,
    )
    encoded = result.encoded

    return GeneratePayloadResponse(
        payload=encoded.payload,
        crc=encoded.crc,
        identifier_kind=IdentifierKindEnum(encoded.kind.value),
        point_of_initiation=encoded.initiation.value,
    )


@app.post(
    "/v1/promptpay/verify",
    response_model=VerifyPayloadResponse,
    tags=["promptpay"],
    dependencies=[Depends(require_api_key)],
)
async def verify_promptpay(payload: VerifyPayloadRequest) -> VerifyPayloadResponse:
    result = PayloadVerifier().verify(payload.payload)

    return VerifyPayloadResponse(
        valid=result.valid,
        expected_crc=result.expected_crc,
        actual_crc=result.actual_crc,
        fields=result.fields,
        merchant_account=result.merchant_account,
    )
