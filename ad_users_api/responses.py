from __future__ import annotations

from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, GET, PATCH, OPTIONS, DELETE",
    "Access-Control-Allow-Headers": "*",
    "Access-Control-Allow-Credentials": "true",
}


def api_result(message: str, status: int, data: Any = None) -> dict:
    """Unified API envelope.

    Format:
      {"message": str, "status": int, "data": T | null}
    """

    return {
        "message": str(message or ""),
        "status": int(status),
        "data": jsonable_encoder(data),
    }


def api_response(message: str, status: int, data: Any = None) -> JSONResponse:
    return JSONResponse(api_result(message, status, data), status_code=status)
