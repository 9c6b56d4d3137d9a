from flask import Flask, Response
from werkzeug.exceptions import HTTPException

from app.exceptions import APIError
from app.utils.response_builder import error_payload, json_response


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(APIError)  # type: ignore[misc]
    def handle_api_error(e: APIError) -> Response:
        if e.status_code >= 500:
            app.logger.error("event=api.error code=%s message=%s", e.code, e.message)
        return json_response(
            error_payload(e.message, e.code, e.details, status_code=e.status_code),
            status_code=e.status_code,
        )

    @app.errorhandler(HTTPException)  # type: ignore[misc]
    def handle_http_exception(e: HTTPException) -> Response:
        if e.response is not None:
            return e.response
        status_code = e.code or 500
        return json_response(
            error_payload(
                e.description or e.name,
                e.name.upper().replace(" ", "_"),
                status_code=status_code,
            ),
            status_code=status_code,
        )

    @app.errorhandler(Exception)  # type: ignore[misc]
    def handle_generic_exception(e: Exception) -> Response:
        app.logger.exception(f"Unhandled Exception: {str(e)}")
        return json_response(
            error_payload(
                "An unexpected error occurred.",
                "INTERNAL_ERROR",
                status_code=500,
            ),
            status_code=500,
        )
