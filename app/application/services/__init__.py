from app.application.services.installment_lifecycle_service import (
    InstallmentDraft,
    InstallmentEditDraft,
    InstallmentGroupResult,
    InstallmentGroupSnapshot,
    InstallmentLifecycleService,
)

__all__ = [
    "InstallmentDraft",
    "InstallmentEditDraft",
    "InstallmentGroupResult",
    "InstallmentGroupSnapshot",
    "InstallmentLifecycleService",
]
