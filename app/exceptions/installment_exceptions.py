"""Error taxonomy of the installment engine.

Every error carries a machine readable ``code`` and the HTTP status the API
layer answers with, following the same shape as :class:`APIError`.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from .api_exceptions import APIError


class InstallmentError(APIError):
    """Base class for installment engine failures."""


class InvalidPlanError(InstallmentError):
    def __init__(
        self,
        message: str = "Plano de parcelamento inválido.",
        *,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            code="INVALID_PLAN",
            status_code=400,
            details=details,
        )


class TransactionNotFound(InstallmentError):
    def __init__(self, transaction_id: UUID) -> None:
        super().__init__(
            "Transação não encontrada.",
            code="NOT_FOUND",
            status_code=404,
            details={"transaction_id": str(transaction_id)},
        )
        self.transaction_id = transaction_id


class GroupNotFound(InstallmentError):
    def __init__(self, group_id: UUID) -> None:
        super().__init__(
            "Grupo de parcelas não encontrado.",
            code="GROUP_NOT_FOUND",
            status_code=404,
            details={"group_id": str(group_id)},
        )
        self.group_id = group_id


class StoreError(InstallmentError):
    """Passthrough of a record store failure, tagged with its context."""

    def __init__(
        self,
        message: str,
        *,
        operation: str,
        group_id: UUID | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        context: dict[str, Any] = {"operation": operation}
        if group_id is not None:
            context["group_id"] = str(group_id)
        context.update(details or {})
        super().__init__(
            message,
            code="STORE_ERROR",
            status_code=500,
            details=context,
        )
        self.operation = operation
        self.group_id = group_id


class GroupCreateFailed(InstallmentError):
    def __init__(
        self,
        message: str = "Não foi possível criar as parcelas.",
        *,
        group_id: UUID | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        context: dict[str, Any] = {"operation": "create"}
        if group_id is not None:
            context["group_id"] = str(group_id)
        context.update(details or {})
        super().__init__(
            message,
            code="GROUP_CREATE_FAILED",
            status_code=500,
            details=context,
        )
        self.group_id = group_id


class GroupRecreateFailed(GroupCreateFailed):
    """Raised when an update deleted the previous group but could not recreate it.

    The previous rows are gone at this point. ``draft`` holds the cleaned
    input so the caller can retry the creation on its own.
    """

    def __init__(
        self,
        *,
        previous_group_id: UUID | None,
        draft: dict[str, Any],
        installment_count: int,
    ) -> None:
        super().__init__(
            "O grupo anterior foi removido, mas as novas parcelas não foram "
            "criadas.",
            details={
                "operation": "update",
                "previous_group_id": (
                    str(previous_group_id) if previous_group_id else None
                ),
                "previous_group_deleted": True,
                "installment_count": installment_count,
                "draft": draft,
            },
        )
        self.previous_group_id = previous_group_id
        self.draft = draft
        self.installment_count = installment_count


class GroupDeleteFailed(InstallmentError):
    def __init__(
        self,
        *,
        deleted_ids: list[UUID],
        failed_ids: list[UUID],
    ) -> None:
        super().__init__(
            "Algumas parcelas não puderam ser removidas.",
            code="GROUP_DELETE_FAILED",
            status_code=500,
            details={
                "deleted_ids": [str(item) for item in deleted_ids],
                "failed_ids": [str(item) for item in failed_ids],
            },
        )
        self.deleted_ids = deleted_ids
        self.failed_ids = failed_ids


class AmbiguousLegacyGroup(InstallmentError):
    """Warning-level signal for a suspicious field-matching resolution.

    Resolution attaches it to the result instead of raising unless the caller
    asks for strict resolution.
    """

    def __init__(
        self,
        reason: str,
        *,
        seed_id: UUID | None,
        expected_count: int | None,
        matched_count: int,
    ) -> None:
        super().__init__(
            "Grupo de parcelas legado ambíguo.",
            code="AMBIGUOUS_LEGACY_GROUP",
            status_code=409,
            details={
                "reason": reason,
                "seed_id": str(seed_id) if seed_id else None,
                "expected_count": expected_count,
                "matched_count": matched_count,
            },
        )
        self.reason = reason
        self.seed_id = seed_id
        self.expected_count = expected_count
        self.matched_count = matched_count
