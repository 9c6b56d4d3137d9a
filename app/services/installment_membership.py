from __future__ import annotations

import enum
from typing import Any, Sequence


class InstallmentGroupState(enum.Enum):
    CREATED = "created"
    PARTIALLY_DELETED = "partially_deleted"
    DELETED = "deleted"


def is_installment_member(record: Any) -> bool:
    installments = getattr(record, "installments", None)
    return installments is not None and installments > 1


def classify_group_state(
    records: Sequence[Any], expected_count: int | None = None
) -> InstallmentGroupState:
    """Classify a group from the rows still stored for it.

    Members removed one by one keep their ``installments`` value, so a group
    with fewer rows than that value is partially deleted.
    """

    if not records:
        return InstallmentGroupState.DELETED
    if expected_count is None:
        expected_count = max(record.installments or 1 for record in records)
    if len(records) < expected_count:
        return InstallmentGroupState.PARTIALLY_DELETED
    return InstallmentGroupState.CREATED
