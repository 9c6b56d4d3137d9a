from __future__ import annotations

from typing import Any

from flask import abort, jsonify, make_response
from webargs import ValidationError as WebargsValidationError
from webargs.flaskparser import parser

from app.utils.response_builder import error_payload


@parser.error_handler
def handle_webargs_error(
    err: WebargsValidationError,
    req: Any,
    schema: Any = None,
    *,
    error_status_code: Any = None,
    error_headers: Any = None,
    **kwargs: Any,
) -> Any:
    """
    Converte erros de validação (422) do Webargs/Marshmallow em uma
    resposta JSON 400 no envelope padrão da API.
    """
    payload = error_payload(
        message="Dados inválidos.",
        code="VALIDATION_ERROR",
        details={"errors": err.messages},
    )
    resp = make_response(jsonify(payload), 400)
    abort(resp)
    raise AssertionError
