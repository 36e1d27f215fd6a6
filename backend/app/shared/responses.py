# app/shared/responses.py
"""
Enveloppe uniforme de toutes les réponses JSON.

    {success, data?, error?, errorCode?, message?, pagination?, timestamp}
"""
from datetime import datetime, timezone
from math import ceil
from typing import Any, Dict, Generic, Optional, TypeVar

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel

T = TypeVar("T")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int
    hasNext: bool
    hasPrev: bool


class Envelope(BaseModel, Generic[T]):
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None
    pagination: Optional[Pagination] = None
    timestamp: str


def paginate(page: int, limit: int, total: int) -> Pagination:
    total_pages = ceil(total / limit) if limit else 0
    return Pagination(
        page=page,
        limit=limit,
        total=total,
        totalPages=total_pages,
        hasNext=page < total_pages,
        hasPrev=page > 1,
    )


def ok(
    data: Any = None,
    message: Optional[str] = None,
    pagination: Optional[Pagination] = None,
) -> Dict:
    body: Dict[str, Any] = {"success": True, "data": data, "timestamp": _now_iso()}
    if message is not None:
        body["message"] = message
    if pagination is not None:
        body["pagination"] = pagination
    return body


def error_response(
    status_code: int,
    error: str,
    error_code: str,
    details: Any = None,
) -> JSONResponse:
    body: Dict[str, Any] = {
        "success": False,
        "error": error,
        "errorCode": error_code,
        "timestamp": _now_iso(),
    }
    if details is not None:
        body["details"] = jsonable_encoder(details)
    return JSONResponse(status_code=status_code, content=body)
