from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Mapping
from uuid import UUID

from flask import current_app, has_app_context

from app.exceptions.api_exceptions import ValidationAPIError
from app.exceptions.installment_exceptions import (
    GroupCreateFailed,
    GroupDeleteFailed,
    GroupNotFound,
    GroupRecreateFailed,
    InvalidPlanError,
    StoreError,
    TransactionNotFound,
)
from app.models.transaction import (
    DESCRIPTION_MAX_LENGTH,
    Transaction,
    TransactionType,
)
from app.services.installment_description import (
    DEFAULT_INSTALLMENT_LABEL,
    format_installment_description,
    parse_installment_suffix,
    strip_installment_suffix,
)
from app.services.installment_group_identity import (
    GroupResolution,
    new_group_id,
    select_resolution_strategy,
)
from app.services.installment_membership import (
    InstallmentGroupState,
    classify_group_state,
    is_installment_member,
)
from app.services.installment_planner import (
    DEFAULT_MAX_INSTALLMENTS,
    InstallmentPlan,
    InstallmentPlanner,
    PlannedInstallment,
    add_months,
    rounding_strategy_for,
)
from app.services.transaction_record_store import (
    SQLAlchemyTransactionStore,
    TransactionRecordStore,
)

DELETE_SCOPES = frozenset({"all", "single"})


@dataclass(frozen=True)
class InstallmentDraft:
    """Base transaction a plan is built from; ``amount`` is the plan total."""

    type: TransactionType
    amount: Decimal
    description: str
    date: date
    payment_method: str | None = None
    vendor: str | None = None
    category_id: UUID | None = None
    account_id: UUID | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> InstallmentDraft:
        raw_type = str(payload.get("type") or "").strip().lower()
        try:
            tx_type = TransactionType(raw_type)
        except ValueError as exc:
            raise ValidationAPIError(
                "Parâmetro 'type' inválido. Use 'income', 'expense' ou 'transfer'."
            ) from exc
        return cls(
            type=tx_type,
            amount=payload["amount"],
            description=str(payload.get("description") or ""),
            date=payload["date"],
            payment_method=payload.get("payment_method"),
            vendor=payload.get("vendor"),
            category_id=payload.get("category_id"),
            account_id=payload.get("account_id"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "amount": str(self.amount),
            "description": self.description,
            "date": self.date.isoformat(),
            "payment_method": self.payment_method,
            "vendor": self.vendor,
            "category_id": str(self.category_id) if self.category_id else None,
            "account_id": str(self.account_id) if self.account_id else None,
        }


@dataclass(frozen=True)
class InstallmentGroupResult:
    group_id: UUID | None
    records: tuple[Transaction, ...]
    plan: InstallmentPlan


@dataclass(frozen=True)
class InstallmentGroupSnapshot:
    group_id: UUID
    records: tuple[Transaction, ...]
    state: InstallmentGroupState


@dataclass(frozen=True)
class InstallmentEditDraft:
    draft: InstallmentDraft
    installment_count: int


class InstallmentLifecycleService:
    """Create, resolve, edit and delete installment groups as one entity.

    A group is persisted as independent rows, so every edit is a full
    regeneration: the old rows are deleted and a new group with a fresh id
    is created. Nothing is kept between calls.
    """

    def __init__(
        self,
        *,
        user_id: UUID,
        store: TransactionRecordStore,
        planner: InstallmentPlanner,
        label: str = DEFAULT_INSTALLMENT_LABEL,
        group_id_factory: Callable[[], UUID] = new_group_id,
        logger: logging.Logger | None = None,
    ) -> None:
        self._user_id = user_id
        self._store = store
        self._planner = planner
        self._label = label
        self._group_id_factory = group_id_factory
        self._explicit_logger = logger

    @classmethod
    def with_defaults(cls, user_id: UUID) -> InstallmentLifecycleService:
        config = current_app.config
        planner = InstallmentPlanner(
            rounding_strategy=rounding_strategy_for(
                config.get("INSTALLMENT_ROUNDING_POLICY", "per_share")
            ),
            max_installments=int(
                config.get("INSTALLMENT_MAX_COUNT", DEFAULT_MAX_INSTALLMENTS)
            ),
        )
        return cls(
            user_id=user_id,
            store=SQLAlchemyTransactionStore(),
            planner=planner,
            label=config.get(
                "INSTALLMENT_DESCRIPTION_LABEL", DEFAULT_INSTALLMENT_LABEL
            ),
        )

    @property
    def _logger(self) -> logging.Logger:
        if self._explicit_logger is not None:
            return self._explicit_logger
        if has_app_context():
            return current_app.logger
        return logging.getLogger(__name__)

    def preview(
        self, total_amount: Decimal, installment_count: int, start_date: date
    ) -> InstallmentPlan:
        return self._planner.build_plan(total_amount, installment_count, start_date)

    def create(
        self, draft: InstallmentDraft, installment_count: int
    ) -> InstallmentGroupResult:
        plan = self._plan(draft, installment_count)

        if plan.installment_count == 1:
            record = self._build_record(
                draft,
                plan.installments[0],
                installment_count=1,
                group_id=None,
                description=self._describe(draft.description, 1, 1),
            )
            inserted = self._insert(group_id=None, records=[record])
            return InstallmentGroupResult(
                group_id=None, records=tuple(inserted), plan=plan
            )

        group_id = self._group_id_factory()
        records = [
            self._build_record(
                draft,
                planned,
                installment_count=plan.installment_count,
                group_id=group_id,
                description=self._describe(
                    draft.description,
                    planned.sequence_number,
                    plan.installment_count,
                ),
            )
            for planned in plan.installments
        ]
        inserted = self._insert(group_id=group_id, records=records)
        self._logger.info(
            "event=installment.group_created user_id=%s group_id=%s count=%s "
            "residual=%s",
            str(self._user_id),
            str(group_id),
            plan.installment_count,
            plan.residual,
        )
        return InstallmentGroupResult(
            group_id=group_id, records=tuple(inserted), plan=plan
        )

    def update(
        self,
        group_id: UUID,
        draft: InstallmentDraft,
        installment_count: int,
    ) -> InstallmentGroupResult:
        clean_draft = self._clean_draft(draft)
        # Reject an invalid plan before the current rows are touched.
        self._plan(clean_draft, installment_count)

        existing = self._store.find_by_group_id(self._user_id, group_id)
        if not existing:
            raise GroupNotFound(group_id)

        self._store.delete_by_group_id(self._user_id, group_id)
        self._logger.info(
            "event=installment.group_deleted_for_update user_id=%s group_id=%s "
            "count=%s",
            str(self._user_id),
            str(group_id),
            len(existing),
        )
        return self._recreate(
            clean_draft, installment_count, previous_group_id=group_id
        )

    def delete_group(self, group_id: UUID) -> int:
        existing = self._store.find_by_group_id(self._user_id, group_id)
        if not existing:
            raise GroupNotFound(group_id)

        deleted = self._store.delete_by_group_id(self._user_id, group_id)
        self._logger.info(
            "event=installment.group_deleted user_id=%s group_id=%s count=%s",
            str(self._user_id),
            str(group_id),
            deleted,
        )
        return deleted

    def delete_member(self, transaction_id: UUID) -> None:
        record = self._get_record(transaction_id)
        # Read before deleting: the row cannot be refreshed afterwards.
        group_id = record.installment_group_id
        installment_no = record.installment_no
        if not self._store.delete_by_id(self._user_id, transaction_id):
            raise TransactionNotFound(transaction_id)

        self._logger.info(
            "event=installment.member_deleted user_id=%s transaction_id=%s "
            "group_id=%s installment_no=%s",
            str(self._user_id),
            str(transaction_id),
            str(group_id) if group_id else None,
            installment_no,
        )

    def get_group(self, group_id: UUID) -> InstallmentGroupSnapshot:
        records = self._store.find_by_group_id(self._user_id, group_id)
        if not records:
            raise GroupNotFound(group_id)
        return InstallmentGroupSnapshot(
            group_id=group_id,
            records=tuple(records),
            state=classify_group_state(records),
        )

    def resolve_group(
        self, transaction_id: UUID, *, strict: bool = False
    ) -> GroupResolution:
        return self._resolve(self._get_record(transaction_id), strict=strict)

    def build_edit_draft(self, transaction_id: UUID) -> InstallmentEditDraft:
        record = self._get_record(transaction_id)
        description = strip_installment_suffix(record.description, label=self._label)
        amount = Decimal(record.amount)
        start_date = record.date
        count = 1

        if is_installment_member(record):
            count = int(record.installments)
            amount = (amount * count).quantize(Decimal("0.01"))
            sequence_number = record.installment_no
            if sequence_number is None:
                parsed = parse_installment_suffix(record.description, label=self._label)
                sequence_number = parsed[0] if parsed else 1
            start_date = add_months(record.date, -(sequence_number - 1))

        draft = InstallmentDraft(
            type=record.type,
            amount=amount,
            description=description,
            date=start_date,
            payment_method=record.payment_method,
            vendor=record.vendor,
            category_id=record.category_id,
            account_id=record.account_id,
        )
        return InstallmentEditDraft(draft=draft, installment_count=count)

    def update_from_record(
        self,
        transaction_id: UUID,
        draft: InstallmentDraft,
        installment_count: int,
        *,
        strict: bool = False,
    ) -> InstallmentGroupResult:
        seed = self._get_record(transaction_id)
        if seed.installment_group_id is not None:
            return self.update(seed.installment_group_id, draft, installment_count)

        clean_draft = self._clean_draft(draft)
        self._plan(clean_draft, installment_count)

        resolution = self._resolve(seed, strict=strict)
        self._delete_records(self._replaceable_ids(resolution))
        return self._recreate(clean_draft, installment_count, previous_group_id=None)

    def delete_from_record(
        self,
        transaction_id: UUID,
        *,
        scope: str = "all",
        strict: bool = False,
    ) -> int:
        if scope not in DELETE_SCOPES:
            raise ValidationAPIError(
                "Parâmetro 'scope' inválido. Use 'all' ou 'single'."
            )
        if scope == "single":
            self.delete_member(transaction_id)
            return 1

        seed = self._get_record(transaction_id)
        if seed.installment_group_id is not None:
            return self.delete_group(seed.installment_group_id)

        resolution = self._resolve(seed, strict=strict)
        return len(self._delete_records(self._replaceable_ids(resolution)))

    def _replaceable_ids(self, resolution: GroupResolution) -> list[UUID]:
        """Rows a destructive edit may touch for ``resolution``.

        An ambiguous legacy match may span unrelated plans, so only the seed
        row is affected unless the caller resolved it strictly.
        """

        if resolution.ambiguity is None:
            return resolution.record_ids
        self._logger.info(
            "event=installment.ambiguous_group_narrowed user_id=%s "
            "transaction_id=%s matched=%s",
            str(self._user_id),
            str(resolution.seed.id),
            resolution.ambiguity.matched_count,
        )
        return [resolution.seed.id]

    def _resolve(self, seed: Transaction, *, strict: bool) -> GroupResolution:
        strategy = select_resolution_strategy(
            seed, store=self._store, user_id=self._user_id, label=self._label
        )
        resolution = strategy.resolve(seed)

        if resolution.ambiguity is not None:
            self._logger.warning(
                "event=installment.legacy_group_ambiguous user_id=%s "
                "transaction_id=%s reason=%s expected=%s matched=%s",
                str(self._user_id),
                str(seed.id),
                resolution.ambiguity.reason,
                resolution.ambiguity.expected_count,
                resolution.ambiguity.matched_count,
            )
            if strict:
                raise resolution.ambiguity
        elif is_installment_member(seed) and not resolution.is_group:
            self._logger.info(
                "event=installment.group_resolution_degraded user_id=%s "
                "transaction_id=%s strategy=%s",
                str(self._user_id),
                str(seed.id),
                resolution.strategy_name,
            )
        return resolution

    def _recreate(
        self,
        draft: InstallmentDraft,
        installment_count: int,
        *,
        previous_group_id: UUID | None,
    ) -> InstallmentGroupResult:
        try:
            return self.create(draft, installment_count)
        except GroupCreateFailed as exc:
            self._logger.error(
                "event=installment.group_recreate_failed user_id=%s "
                "previous_group_id=%s",
                str(self._user_id),
                str(previous_group_id) if previous_group_id else None,
            )
            raise GroupRecreateFailed(
                previous_group_id=previous_group_id,
                draft=draft.to_dict(),
                installment_count=installment_count,
            ) from exc

    def _insert(
        self, *, group_id: UUID | None, records: list[Transaction]
    ) -> list[Transaction]:
        try:
            inserted = self._store.insert_many(self._user_id, records)
        except StoreError as exc:
            self._logger.exception(
                "event=installment.group_create_failed user_id=%s group_id=%s",
                str(self._user_id),
                str(group_id) if group_id else None,
            )
            raise GroupCreateFailed(
                group_id=group_id,
                details={"reason": exc.message, "store": exc.details},
            ) from exc

        if len(inserted) != len(records):
            raise GroupCreateFailed(
                group_id=group_id,
                details={"expected": len(records), "inserted": len(inserted)},
            )
        return inserted

    def _delete_records(self, transaction_ids: list[UUID]) -> list[UUID]:
        deleted: list[UUID] = []
        failed: list[UUID] = []
        for transaction_id in transaction_ids:
            try:
                self._store.delete_by_id(self._user_id, transaction_id)
            except StoreError:
                failed.append(transaction_id)
                continue
            deleted.append(transaction_id)

        if failed:
            self._logger.error(
                "event=installment.records_delete_failed user_id=%s deleted=%s "
                "failed=%s",
                str(self._user_id),
                len(deleted),
                len(failed),
            )
            raise GroupDeleteFailed(deleted_ids=deleted, failed_ids=failed)
        return deleted

    def _get_record(self, transaction_id: UUID) -> Transaction:
        record = self._store.find_by_id(self._user_id, transaction_id)
        if record is None:
            raise TransactionNotFound(transaction_id)
        return record

    def _plan(
        self, draft: InstallmentDraft, installment_count: int
    ) -> InstallmentPlan:
        plan = self._planner.build_plan(draft.amount, installment_count, draft.date)
        # The last installment carries the widest tag.
        longest = self._describe(
            draft.description, plan.installment_count, plan.installment_count
        )
        if len(longest) > DESCRIPTION_MAX_LENGTH:
            raise InvalidPlanError(
                "A descrição com o sufixo de parcela excede "
                f"{DESCRIPTION_MAX_LENGTH} caracteres.",
                details={
                    "description_length": len(longest),
                    "max_length": DESCRIPTION_MAX_LENGTH,
                },
            )
        return plan

    def _describe(
        self, description: str, sequence_number: int, installment_count: int
    ) -> str:
        if installment_count == 1:
            return strip_installment_suffix(description, label=self._label)
        return format_installment_description(
            description, sequence_number, installment_count, label=self._label
        )

    def _clean_draft(self, draft: InstallmentDraft) -> InstallmentDraft:
        return replace(
            draft,
            description=strip_installment_suffix(draft.description, label=self._label),
        )

    def _build_record(
        self,
        draft: InstallmentDraft,
        planned: PlannedInstallment,
        *,
        installment_count: int,
        group_id: UUID | None,
        description: str,
    ) -> Transaction:
        return Transaction(
            user_id=self._user_id,
            type=draft.type,
            amount=planned.amount,
            description=description,
            date=planned.date,
            payment_method=draft.payment_method,
            vendor=draft.vendor,
            category_id=draft.category_id,
            account_id=draft.account_id,
            installments=installment_count,
            installment_no=planned.sequence_number if group_id else None,
            installment_group_id=group_id,
        )


def serialize_transaction(transaction: Transaction) -> dict[str, Any]:
    return {
        "id": str(transaction.id),
        "type": transaction.type.value,
        "amount": str(transaction.amount),
        "description": transaction.description,
        "date": transaction.date.isoformat(),
        "payment_method": transaction.payment_method,
        "vendor": transaction.vendor,
        "category_id": (
            str(transaction.category_id) if transaction.category_id else None
        ),
        "account_id": str(transaction.account_id) if transaction.account_id else None,
        "installments": transaction.installments,
        "installment_no": transaction.installment_no,
        "installment_group_id": (
            str(transaction.installment_group_id)
            if transaction.installment_group_id
            else None
        ),
        "is_installment": is_installment_member(transaction),
        "created_at": (
            transaction.created_at.isoformat() if transaction.created_at else None
        ),
    }


def serialize_group_result(result: InstallmentGroupResult) -> dict[str, Any]:
    return {
        "installment_group_id": str(result.group_id) if result.group_id else None,
        "transactions": [serialize_transaction(item) for item in result.records],
        "plan": InstallmentPlanner.serialize_plan(result.plan),
    }


def serialize_group_snapshot(snapshot: InstallmentGroupSnapshot) -> dict[str, Any]:
    return {
        "installment_group_id": str(snapshot.group_id),
        "state": snapshot.state.value,
        "transactions": [serialize_transaction(item) for item in snapshot.records],
    }


def serialize_resolution(resolution: GroupResolution) -> dict[str, Any]:
    ambiguity = resolution.ambiguity
    return {
        "strategy": resolution.strategy_name,
        "is_group": resolution.is_group,
        "installment_group_id": (
            str(resolution.group_id) if resolution.group_id else None
        ),
        "first_transaction_id": str(resolution.first_record.id),
        "state": (
            classify_group_state(resolution.records).value
            if resolution.is_group
            else None
        ),
        "ambiguity": (
            {"code": ambiguity.code, **ambiguity.details} if ambiguity else None
        ),
        "transactions": [serialize_transaction(item) for item in resolution.records],
    }


def serialize_edit_draft(edit_draft: InstallmentEditDraft) -> dict[str, Any]:
    return {
        **edit_draft.draft.to_dict(),
        "installment_count": edit_draft.installment_count,
    }
