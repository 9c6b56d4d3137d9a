from __future__ import annotations

from typing import Any

from marshmallow import Schema, fields, pre_load, validate

from app.models.transaction import DESCRIPTION_MAX_LENGTH

TRANSACTION_TYPES = ["income", "expense", "transfer"]
_TEXT_FIELDS = ("description", "payment_method", "vendor", "type")


def _sanitize_text_fields(data: Any, field_names: tuple[str, ...]) -> Any:
    if not isinstance(data, dict):
        return data
    sanitized = dict(data)
    for field_name in field_names:
        current = sanitized.get(field_name)
        if isinstance(current, str):
            stripped = current.strip()
            sanitized[field_name] = "".join(
                ch for ch in stripped if ch.isprintable() or ch == "\t"
            )
    return sanitized


class InstallmentDraftSchema(Schema):
    """Transação base de um parcelamento; ``amount`` é o valor total."""

    type = fields.Str(
        required=True,
        validate=validate.OneOf(TRANSACTION_TYPES),
        metadata={"description": "Tipo da transação", "example": "expense"},
    )
    amount = fields.Decimal(
        as_string=True,
        required=True,
        validate=validate.Range(min=0.01),
        metadata={"description": "Valor total do parcelamento", "example": "1000.00"},
    )
    description = fields.Str(
        load_default="",
        validate=validate.Length(max=DESCRIPTION_MAX_LENGTH),
        metadata={"description": "Descrição, sem o sufixo de parcela"},
    )
    date = fields.Date(
        required=True,
        metadata={"description": "Data da primeira parcela", "example": "2025-01-15"},
    )
    payment_method = fields.Str(
        allow_none=True,
        load_default=None,
        validate=validate.Length(max=50),
        metadata={"example": "credit_card"},
    )
    vendor = fields.Str(
        allow_none=True, load_default=None, validate=validate.Length(max=120)
    )
    category_id = fields.UUID(allow_none=True, load_default=None)
    account_id = fields.UUID(allow_none=True, load_default=None)
    installment_count = fields.Int(
        required=True,
        strict=True,
        validate=validate.Range(min=1),
        metadata={"description": "Número de parcelas", "example": 4},
    )

    @pre_load
    def sanitize_input(self, data: object, **kwargs: object) -> object:
        sanitized = _sanitize_text_fields(data, _TEXT_FIELDS)
        if isinstance(sanitized, dict) and isinstance(sanitized.get("type"), str):
            sanitized["type"] = sanitized["type"].lower()
        return sanitized


class InstallmentPreviewSchema(Schema):
    amount = fields.Decimal(
        as_string=True,
        required=True,
        validate=validate.Range(min=0.01),
        metadata={"description": "Valor total", "example": "100.00"},
    )
    installment_count = fields.Int(
        required=True,
        strict=True,
        validate=validate.Range(min=1),
        metadata={"example": 3},
    )
    start_date = fields.Date(
        required=True,
        metadata={"description": "Data da primeira parcela", "example": "2025-01-31"},
    )


class InstallmentDeleteQuerySchema(Schema):
    scope = fields.Str(
        load_default="all",
        validate=validate.OneOf(["all", "single"]),
        metadata={"description": "'all' remove o grupo, 'single' só a parcela"},
    )
    strict = fields.Bool(
        load_default=False,
        metadata={"description": "Falha (409) quando o grupo legado é ambíguo"},
    )


class InstallmentResolveQuerySchema(Schema):
    strict = fields.Bool(
        load_default=False,
        metadata={"description": "Falha (409) quando o grupo legado é ambíguo"},
    )
