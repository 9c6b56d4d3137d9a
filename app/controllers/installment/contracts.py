from __future__ import annotations

from typing import Any
from uuid import UUID

from flask import Response, current_app
from flask_jwt_extended import get_jwt_identity

from app.exceptions import APIError
from app.utils.response_builder import error_payload, json_response, success_payload

INVALID_TOKEN_MESSAGE = "Token inválido."


def success(
    *,
    status_code: int,
    message: str,
    data: dict[str, Any],
    meta: dict[str, Any] | None = None,
) -> Response:
    return json_response(
        success_payload(message=message, data=data, meta=meta),
        status_code=status_code,
    )


def installment_error_response(exc: APIError) -> Response:
    if exc.status_code >= 500:
        current_app.logger.error(
            "event=installment.request_failed code=%s details=%s",
            exc.code,
            exc.details,
        )
    return json_response(
        error_payload(
            message=exc.message,
            code=exc.code,
            details=exc.details,
            status_code=exc.status_code,
        ),
        status_code=exc.status_code,
    )


def current_user_id() -> UUID:
    try:
        return UUID(str(get_jwt_identity()))
    except ValueError as exc:
        raise APIError(
            INVALID_TOKEN_MESSAGE, code="UNAUTHORIZED", status_code=401
        ) from exc
