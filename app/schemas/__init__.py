"""
Schemas Marshmallow do motor de parcelamento.

Usados para validar a entrada da API e gerar a documentação Swagger/OpenAPI.
"""

from .installment_schema import (
    InstallmentDeleteQuerySchema,
    InstallmentDraftSchema,
    InstallmentPreviewSchema,
    InstallmentResolveQuerySchema,
)

__all__ = [
    "InstallmentDraftSchema",
    "InstallmentPreviewSchema",
    "InstallmentDeleteQuerySchema",
    "InstallmentResolveQuerySchema",
]
