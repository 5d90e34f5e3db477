from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


router = APIRouter(tags=["health"])

HEALTH_BODY = "Gravity Lab WS: OK"


@router.get("/")
@router.get("/health")
async def health() -> PlainTextResponse:
    return PlainTextResponse(HEALTH_BODY)


async def plain_http_exception_handler(request: Request, exc: StarletteHTTPException) -> PlainTextResponse:
    # Probes and browsers get text, never the default JSON error body
    if exc.status_code == 404:
        return PlainTextResponse("Not found", status_code=404)
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)
