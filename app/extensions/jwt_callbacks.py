from typing import Any, Dict

from flask_jwt_extended import JWTManager

from app.utils.response_builder import error_payload, json_response


def _unauthorized(message: str, code: str) -> Any:
    return json_response(error_payload(message, code, status_code=401), 401)


def register_jwt_callbacks(jwt: JWTManager) -> None:
    @jwt.invalid_token_loader  # type: ignore[misc]
    def invalid_token_callback(error: str) -> Any:
        return _unauthorized("Token inválido", "INVALID_TOKEN")

    @jwt.expired_token_loader  # type: ignore[misc]
    def expired_token_callback(
        jwt_header: Dict[str, Any], jwt_payload: Dict[str, Any]
    ) -> Any:
        return _unauthorized("Token expirado", "TOKEN_EXPIRED")

    @jwt.unauthorized_loader  # type: ignore[misc]
    def missing_token_callback(error: str) -> Any:
        return _unauthorized("Token ausente", "UNAUTHORIZED")
