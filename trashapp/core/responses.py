"""Response envelope shared by every endpoint.

Success: ``{"data", "message", "status_code", "pagination"?}``
Error:   ``{"error": {"message", "code", "details"}, "status_code"}``

``status_code`` is the HTTP status as a string, which is what existing
clients of the API parse.
"""
from typing import Any, Dict, Optional

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def success_payload(
    data: Any = None,
    message: str = "Success",
    status_code: int = status.HTTP_200_OK,
    pagination: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "data": data,
        "message": message,
        "status_code": str(status_code),
    }
    if pagination:
        payload["pagination"] = pagination
    return payload


def error_payload(
    message: str,
    code: str = "ERROR",
    details: Optional[Dict[str, Any]] = None,
    status_code: int = status.HTTP_400_BAD_REQUEST,
) -> Dict[str, Any]:
    return {
        "error": {
            "message": message,
            "code": code,
            "details": details or {},
        },
        "status_code": str(status_code),
    }


def _render(payload: Dict[str, Any], status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=jsonable_encoder(payload))


def success(data: Any = None, message: str = "Success", pagination: Optional[Dict[str, Any]] = None) -> JSONResponse:
    return _render(success_payload(data, message, status.HTTP_200_OK, pagination), status.HTTP_200_OK)


def created(data: Any = None, message: str = "Created successfully") -> JSONResponse:
    return _render(success_payload(data, message, status.HTTP_201_CREATED), status.HTTP_201_CREATED)


def error(
    message: str,
    code: str = "ERROR",
    details: Optional[Dict[str, Any]] = None,
    status_code: int = status.HTTP_400_BAD_REQUEST,
) -> JSONResponse:
    return _render(error_payload(message, code, details, status_code), status_code)


def validation_error(field_errors: Dict[str, Any]) -> JSONResponse:
    return error(
        "Validation failed",
        "VALIDATION_ERROR",
        field_errors,
        422,
    )


def internal_error(message: str = "Internal server error") -> JSONResponse:
    return error(message, "INTERNAL_ERROR", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
