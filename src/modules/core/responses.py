"""Translation of domain errors into HTTP responses.

Views catch the typed errors raised by the service layer and hand them to
``domain_error_response``.  Every failure body has the same shape::

    {
        "type": "client_error",
        "code": "insufficient_stock",
        "detail": "Product 'Bento' has 1 left, 2 requested.",
        "errors": [{"code": "...", "detail": "...", "attr": "items"}]
    }
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.response import Response

from shared.domain.exceptions import (
    ConcurrencyConflict,
    DomainError,
    InsufficientStock,
    InvalidTransition,
    NotFound,
    ValidationError,
)

logger = structlog.get_logger(__name__)

_STATUS_BY_ERROR = (
    (NotFound, status.HTTP_404_NOT_FOUND),
    (ConcurrencyConflict, status.HTTP_409_CONFLICT),
    (InsufficientStock, status.HTTP_400_BAD_REQUEST),
    (InvalidTransition, status.HTTP_400_BAD_REQUEST),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
)


def _body(code: str, detail: str, errors: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {"type": "client_error", "code": code, "detail": detail, "errors": errors}


def domain_error_response(exc: DomainError) -> Response:
    """Build the HTTP response for a domain error."""
    http_status = status.HTTP_400_BAD_REQUEST
    for error_class, mapped in _STATUS_BY_ERROR:
        if isinstance(exc, error_class):
            http_status = mapped
            break

    logger.info(
        "api.domain_error",
        code=exc.code,
        detail=exc.message,
        status_code=http_status,
    )
    error = {"code": exc.code, "detail": exc.message, "attr": exc.field}
    return Response(_body(exc.code, exc.message, [error]), status=http_status)


def validation_error_response(
    exc: PydanticValidationError | Dict[str, Any],
) -> Response:
    """Build a 400 response from pydantic errors or DRF ``serializer.errors``."""
    errors: List[Dict[str, Any]] = []
    if isinstance(exc, PydanticValidationError):
        for item in exc.errors():
            attr: Optional[str] = ".".join(str(part) for part in item["loc"]) or None
            errors.append(
                {"code": ValidationError.code, "detail": item["msg"], "attr": attr}
            )
    else:
        for attr, messages in _flatten(exc):
            for message in messages:
                errors.append(
                    {"code": ValidationError.code, "detail": message, "attr": attr}
                )

    detail = "; ".join(
        f"{e['attr']}: {e['detail']}" if e["attr"] else e["detail"] for e in errors
    )
    return Response(
        _body(ValidationError.code, detail or "Invalid request.", errors),
        status=status.HTTP_400_BAD_REQUEST,
    )


def _flatten(errors: Any, prefix: str = "") -> List[tuple[Optional[str], List[str]]]:
    """Flatten nested DRF error dicts/lists into ``(attr, [messages])`` pairs."""
    if isinstance(errors, dict):
        pairs: List[tuple[Optional[str], List[str]]] = []
        for key, value in errors.items():
            name = key if key != "non_field_errors" else ""
            path = f"{prefix}.{name}" if prefix and name else (name or prefix)
            pairs.extend(_flatten(value, path))
        return pairs
    if isinstance(errors, list):
        if all(not isinstance(item, (dict, list)) for item in errors):
            return [(prefix or None, [str(item) for item in errors])]
        pairs = []
        for index, item in enumerate(errors):
            if item:
                pairs.extend(_flatten(item, f"{prefix}.{index}" if prefix else str(index)))
        return pairs
    return [(prefix or None, [str(errors)])]
