from .api_exceptions import APIError, ValidationAPIError
from .installment_exceptions import (
    AmbiguousLegacyGroup,
    GroupCreateFailed,
    GroupDeleteFailed,
    GroupNotFound,
    GroupRecreateFailed,
    InstallmentError,
    InvalidPlanError,
    StoreError,
    TransactionNotFound,
)

__all__ = [
    "APIError",
    "ValidationAPIError",
    "InstallmentError",
    "InvalidPlanError",
    "GroupCreateFailed",
    "GroupRecreateFailed",
    "GroupDeleteFailed",
    "GroupNotFound",
    "TransactionNotFound",
    "AmbiguousLegacyGroup",
    "StoreError",
]
