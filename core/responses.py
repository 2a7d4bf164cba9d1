from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from core.config import settings


def request_info(request: Request) -> Dict[str, Any]:
    url = request.url.path
    if request.url.query:
        url = f"{url}?{request.url.query}"

    info: Dict[str, Any] = {
        "ip": request.client.host if request.client else None,
        "method": request.method,
        "url": url,
    }
    if settings.IS_PRODUCTION:
        del info["ip"]
    return info


def api_response(
    request: Request,
    status_code: int,
    message: str,
    data: Optional[Any] = None,
) -> JSONResponse:
    """Wrap a successful result in the standard response envelope."""
    body = {
        "success": True,
        "statusCode": status_code,
        "request": request_info(request),
        "message": message,
        "data": jsonable_encoder(data),
    }
    return JSONResponse(status_code=status_code, content=body)


def error_response(
    request: Request,
    status_code: int,
    message: str,
    code: str,
    details: Optional[Any] = None,
) -> JSONResponse:
    error: Dict[str, Any] = {"code": code}
    if details is not None:
        error["details"] = jsonable_encoder(details)

    body = {
        "success": False,
        "statusCode": status_code,
        "request": request_info(request),
        "message": message,
        "error": error,
    }
    return JSONResponse(status_code=status_code, content=body)
