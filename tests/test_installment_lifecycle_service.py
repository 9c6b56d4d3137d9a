from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

import pytest

from app.application.services.installment_lifecycle_service import (
    InstallmentDraft,
    InstallmentLifecycleService,
    serialize_group_result,
    serialize_resolution,
)
from app.exceptions import (
    AmbiguousLegacyGroup,
    GroupCreateFailed,
    GroupDeleteFailed,
    GroupNotFound,
    GroupRecreateFailed,
    InvalidPlanError,
    StoreError,
    TransactionNotFound,
    ValidationAPIError,
)
from app.models.transaction import (
    DESCRIPTION_MAX_LENGTH,
    Transaction,
    TransactionType,
)
from app.services.installment_membership import InstallmentGroupState
from app.services.installment_planner import (
    InstallmentPlanner,
    RemainderOnLastRoundingStrategy,
    add_months,
)
from app.services.transaction_record_store import SQLAlchemyTransactionStore


class _InMemoryStore:
    def __init__(self) -> None:
        self.rows: list[Transaction] = []
        self.fail_insert = False
        self.short_insert = False
        self.fail_delete_ids: set[UUID] = set()

    def insert_many(self, user_id, records):
        if self.fail_insert:
            raise StoreError("insert failed", operation="insert_many")
        for record in records:
            record.id = record.id or uuid4()
            record.user_id = user_id
            record.created_at = datetime(2025, 1, 1)
        self.rows.extend(records)
        if self.short_insert:
            return list(records)[:-1]
        return list(records)

    def find_by_id(self, user_id, transaction_id):
        return next(
            (
                row
                for row in self.rows
                if row.id == transaction_id and row.user_id == user_id
            ),
            None,
        )

    def find_by_group_id(self, user_id, group_id):
        rows = [
            row
            for row in self.rows
            if row.installment_group_id == group_id and row.user_id == user_id
        ]
        return sorted(rows, key=lambda row: row.date)

    def find_by_field(self, user_id, filters, order_by="date"):
        rows = [
            row
            for row in self.rows
            if row.user_id == user_id
            and all(getattr(row, key) == value for key, value in filters.items())
        ]
        return sorted(rows, key=lambda row: row.date)

    def delete_by_id(self, user_id, transaction_id):
        if transaction_id in self.fail_delete_ids:
            raise StoreError("delete failed", operation="delete_by_id")
        before = len(self.rows)
        self.rows = [
            row
            for row in self.rows
            if not (row.id == transaction_id and row.user_id == user_id)
        ]
        return before - len(self.rows)

    def delete_by_group_id(self, user_id, group_id):
        before = len(self.rows)
        self.rows = [
            row
            for row in self.rows
            if not (row.installment_group_id == group_id and row.user_id == user_id)
        ]
        return before - len(self.rows)


class _FailingOnSecondInsertStore(_InMemoryStore):
    def __init__(self) -> None:
        super().__init__()
        self.inserts = 0

    def insert_many(self, user_id, records):
        self.inserts += 1
        if self.inserts > 1:
            raise StoreError("insert failed", operation="insert_many")
        return super().insert_many(user_id, records)


def _draft(**overrides: Any) -> InstallmentDraft:
    values = {
        "type": TransactionType.EXPENSE,
        "amount": Decimal("1000.00"),
        "description": "Notebook",
        "date": date(2025, 1, 15),
        "payment_method": "credit_card",
        "vendor": "Tech Store",
    }
    values.update(overrides)
    return InstallmentDraft(**values)


def _service(store, user_id: UUID, **kwargs: Any) -> InstallmentLifecycleService:
    return InstallmentLifecycleService(
        user_id=user_id,
        store=store,
        planner=kwargs.pop("planner", InstallmentPlanner()),
        logger=logging.getLogger("tests.installments"),
        **kwargs,
    )


def _legacy_rows(count: int) -> list[Transaction]:
    return [
        Transaction(
            type=TransactionType.EXPENSE,
            amount=Decimal("200.00"),
            description=f"Sofa (Installment {index + 1}/{count})",
            date=add_months(date(2024, 5, 10), index),
            payment_method="credit_card",
            installments=count,
        )
        for index in range(count)
    ]


def test_create_persists_a_tagged_group(app, user_id) -> None:
    with app.app_context():
        service = _service(SQLAlchemyTransactionStore(), user_id)

        result = service.create(_draft(), 4)

        assert result.group_id is not None
        assert [row.date for row in result.records] == [
            date(2025, 1, 15),
            date(2025, 2, 15),
            date(2025, 3, 15),
            date(2025, 4, 15),
        ]
        assert {row.amount for row in result.records} == {Decimal("250.00")}
        assert [row.installment_no for row in result.records] == [1, 2, 3, 4]
        assert {row.installment_group_id for row in result.records} == {
            result.group_id
        }
        assert result.records[3].description == "Notebook (Installment 4/4)"
        assert Transaction.query.count() == 4


def test_create_with_single_installment_is_a_plain_transaction(user_id) -> None:
    store = _InMemoryStore()

    result = _service(store, user_id).create(
        _draft(description="Groceries (Installment 1/3)"), 1
    )

    assert result.group_id is None
    (row,) = store.rows
    assert row.installment_group_id is None
    assert row.installment_no is None
    assert row.installments == 1
    assert row.description == "Groceries"
    assert row.amount == Decimal("1000.00")


def test_create_uses_injected_group_id_factory(user_id) -> None:
    group_id = uuid4()
    store = _InMemoryStore()

    result = _service(store, user_id, group_id_factory=lambda: group_id).create(
        _draft(), 2
    )

    assert result.group_id == group_id


def test_create_rejects_invalid_plan_before_touching_the_store(user_id) -> None:
    store = _InMemoryStore()

    with pytest.raises(InvalidPlanError):
        _service(store, user_id).create(_draft(), 0)

    assert store.rows == []


def test_create_wraps_store_failure(user_id) -> None:
    store = _InMemoryStore()
    store.fail_insert = True

    with pytest.raises(GroupCreateFailed) as exc_info:
        _service(store, user_id).create(_draft(), 3)

    assert exc_info.value.code == "GROUP_CREATE_FAILED"
    assert exc_info.value.details["operation"] == "create"


def test_create_fails_when_store_returns_fewer_rows(user_id) -> None:
    store = _InMemoryStore()
    store.short_insert = True

    with pytest.raises(GroupCreateFailed) as exc_info:
        _service(store, user_id).create(_draft(), 3)

    assert exc_info.value.details["expected"] == 3
    assert exc_info.value.details["inserted"] == 2


def test_update_replaces_group_with_new_identity(app, user_id) -> None:
    with app.app_context():
        service = _service(SQLAlchemyTransactionStore(), user_id)
        original = service.create(_draft(amount=Decimal("600.00")), 6)
        original_ids = {row.id for row in original.records}

        updated = service.update(
            original.group_id,
            _draft(amount=Decimal("900.00"), date=date(2025, 3, 5)),
            3,
        )

        assert updated.group_id != original.group_id
        assert service._store.find_by_group_id(user_id, original.group_id) == []
        rows = service._store.find_by_group_id(user_id, updated.group_id)
        assert [row.date for row in rows] == [
            date(2025, 3, 5),
            date(2025, 4, 5),
            date(2025, 5, 5),
        ]
        assert {row.amount for row in rows} == {Decimal("300.00")}
        assert original_ids.isdisjoint({row.id for row in rows})
        assert Transaction.query.count() == 3


def test_update_unknown_group_raises_group_not_found(user_id) -> None:
    with pytest.raises(GroupNotFound):
        _service(_InMemoryStore(), user_id).update(uuid4(), _draft(), 3)


def test_update_with_invalid_plan_keeps_existing_rows(user_id) -> None:
    store = _InMemoryStore()
    service = _service(store, user_id)
    original = service.create(_draft(), 4)

    with pytest.raises(InvalidPlanError):
        service.update(original.group_id, _draft(), 0)

    assert len(store.find_by_group_id(user_id, original.group_id)) == 4


def test_create_rejects_description_too_long_for_the_installment_tag(user_id) -> None:
    store = _InMemoryStore()

    with pytest.raises(InvalidPlanError) as exc_info:
        _service(store, user_id).create(_draft(description="x" * 300), 12)

    assert exc_info.value.details["max_length"] == DESCRIPTION_MAX_LENGTH
    assert exc_info.value.details["description_length"] == 320
    assert store.rows == []


def test_create_accepts_description_that_fits_with_the_tag(user_id) -> None:
    store = _InMemoryStore()
    description = "x" * (DESCRIPTION_MAX_LENGTH - len(" (Installment 12/12)"))

    _service(store, user_id).create(_draft(description=description), 12)

    assert max(len(row.description) for row in store.rows) == DESCRIPTION_MAX_LENGTH


def test_update_with_description_too_long_keeps_existing_rows(user_id) -> None:
    store = _InMemoryStore()
    service = _service(store, user_id)
    original = service.create(_draft(), 4)

    with pytest.raises(InvalidPlanError):
        service.update(original.group_id, _draft(description="x" * 295), 4)

    assert len(store.find_by_group_id(user_id, original.group_id)) == 4


def test_update_reports_lost_group_when_recreate_fails(user_id) -> None:
    store = _FailingOnSecondInsertStore()
    service = _service(store, user_id)
    original = service.create(_draft(), 4)

    with pytest.raises(GroupRecreateFailed) as exc_info:
        service.update(original.group_id, _draft(description="Laptop"), 2)

    error = exc_info.value
    assert error.previous_group_id == original.group_id
    assert error.installment_count == 2
    assert error.draft["description"] == "Laptop"
    assert error.details["previous_group_deleted"] is True
    assert store.rows == []


def test_delete_group_removes_every_member(user_id) -> None:
    store = _InMemoryStore()
    service = _service(store, user_id)
    result = service.create(_draft(), 5)
    service.create(_draft(description="Other"), 2)

    deleted = service.delete_group(result.group_id)

    assert deleted == 5
    assert store.find_by_group_id(user_id, result.group_id) == []
    assert len(store.rows) == 2


def test_delete_group_unknown_raises(user_id) -> None:
    with pytest.raises(GroupNotFound):
        _service(_InMemoryStore(), user_id).delete_group(uuid4())


def test_delete_member_leaves_partially_deleted_group(app, user_id) -> None:
    with app.app_context():
        service = _service(SQLAlchemyTransactionStore(), user_id)
        result = service.create(_draft(), 4)

        service.delete_member(result.records[1].id)
        snapshot = service.get_group(result.group_id)

        assert len(snapshot.records) == 3
        assert {row.installments for row in snapshot.records} == {4}
        assert snapshot.state is InstallmentGroupState.PARTIALLY_DELETED


def test_delete_member_unknown_raises(user_id) -> None:
    with pytest.raises(TransactionNotFound):
        _service(_InMemoryStore(), user_id).delete_member(uuid4())


def test_get_group_of_complete_group_is_created(user_id) -> None:
    service = _service(_InMemoryStore(), user_id)
    result = service.create(_draft(), 3)

    assert service.get_group(result.group_id).state is InstallmentGroupState.CREATED
    with pytest.raises(GroupNotFound):
        service.get_group(uuid4())


def test_resolve_group_of_legacy_rows(app, user_id) -> None:
    with app.app_context():
        store = SQLAlchemyTransactionStore()
        rows = store.insert_many(user_id, _legacy_rows(5))
        service = _service(store, user_id)

        resolution = service.resolve_group(rows[3].id)
        payload = serialize_resolution(resolution)

        assert payload["strategy"] == "field_heuristic"
        assert payload["is_group"] is True
        assert payload["installment_group_id"] is None
        assert payload["first_transaction_id"] == str(rows[0].id)
        assert payload["state"] == "created"
        assert payload["ambiguity"] is None
        assert len(payload["transactions"]) == 5


def test_strict_resolution_raises_on_ambiguity(user_id) -> None:
    store = _InMemoryStore()
    rows = store.insert_many(user_id, _legacy_rows(3) + _legacy_rows(3))
    service = _service(store, user_id)

    assert service.resolve_group(rows[0].id).ambiguity is not None
    with pytest.raises(AmbiguousLegacyGroup) as exc_info:
        service.resolve_group(rows[0].id, strict=True)

    assert exc_info.value.status_code == 409


def test_build_edit_draft_reconstructs_the_original_plan(user_id) -> None:
    service = _service(_InMemoryStore(), user_id)
    result = service.create(_draft(amount=Decimal("1000.00")), 4)

    edit_draft = service.build_edit_draft(result.records[2].id)

    assert edit_draft.installment_count == 4
    assert edit_draft.draft.amount == Decimal("1000.00")
    assert edit_draft.draft.date == date(2025, 1, 15)
    assert edit_draft.draft.description == "Notebook"
    assert edit_draft.draft.vendor == "Tech Store"


def test_build_edit_draft_of_legacy_row_uses_description_sequence(user_id) -> None:
    store = _InMemoryStore()
    rows = store.insert_many(user_id, _legacy_rows(5))
    service = _service(store, user_id)

    edit_draft = service.build_edit_draft(rows[4].id)

    assert edit_draft.installment_count == 5
    assert edit_draft.draft.amount == Decimal("1000.00")
    assert edit_draft.draft.date == date(2024, 5, 10)
    assert edit_draft.draft.description == "Sofa"


def test_build_edit_draft_of_plain_transaction(user_id) -> None:
    service = _service(_InMemoryStore(), user_id)
    result = service.create(_draft(amount=Decimal("80.00")), 1)

    edit_draft = service.build_edit_draft(result.records[0].id)

    assert edit_draft.installment_count == 1
    assert edit_draft.draft.amount == Decimal("80.00")


def test_update_from_legacy_record_regenerates_with_group_id(user_id) -> None:
    store = _InMemoryStore()
    rows = store.insert_many(user_id, _legacy_rows(5))
    service = _service(store, user_id)

    result = service.update_from_record(
        rows[2].id, _draft(amount=Decimal("300.00"), description="Sofa"), 3
    )

    assert result.group_id is not None
    assert len(store.rows) == 3
    assert all(row.installment_group_id == result.group_id for row in store.rows)


def test_update_from_grouped_record_replaces_the_group(user_id) -> None:
    store = _InMemoryStore()
    service = _service(store, user_id)
    original = service.create(_draft(), 4)

    result = service.update_from_record(original.records[0].id, _draft(), 2)

    assert result.group_id != original.group_id
    assert len(store.rows) == 2


def test_update_from_ambiguous_record_in_strict_mode_changes_nothing(user_id) -> None:
    store = _InMemoryStore()
    rows = store.insert_many(user_id, _legacy_rows(3) + _legacy_rows(3))
    service = _service(store, user_id)

    with pytest.raises(AmbiguousLegacyGroup):
        service.update_from_record(rows[0].id, _draft(), 3, strict=True)

    assert len(store.rows) == 6


def test_update_from_ambiguous_record_replaces_only_that_row(user_id) -> None:
    store = _InMemoryStore()
    first_plan = store.insert_many(user_id, _legacy_rows(5))
    second_plan = store.insert_many(user_id, _legacy_rows(5))
    service = _service(store, user_id)

    result = service.update_from_record(
        first_plan[0].id, _draft(amount=Decimal("300.00"), description="Sofa"), 3
    )

    remaining_ids = {row.id for row in store.rows}
    assert first_plan[0].id not in remaining_ids
    assert {row.id for row in first_plan[1:]} <= remaining_ids
    assert {row.id for row in second_plan} <= remaining_ids
    assert len(store.find_by_group_id(user_id, result.group_id)) == 3
    assert len(store.rows) == 9 + 3


def test_delete_from_ambiguous_record_removes_only_that_row(user_id) -> None:
    store = _InMemoryStore()
    first_plan = store.insert_many(user_id, _legacy_rows(5))
    second_plan = store.insert_many(user_id, _legacy_rows(5))
    service = _service(store, user_id)

    deleted = service.delete_from_record(first_plan[0].id)

    assert deleted == 1
    assert len(store.rows) == 9
    assert {row.id for row in second_plan} <= {row.id for row in store.rows}


def test_delete_from_ambiguous_record_in_strict_mode_changes_nothing(user_id) -> None:
    store = _InMemoryStore()
    rows = store.insert_many(user_id, _legacy_rows(5) + _legacy_rows(5))
    service = _service(store, user_id)

    with pytest.raises(AmbiguousLegacyGroup):
        service.delete_from_record(rows[0].id, strict=True)

    assert len(store.rows) == 10


def test_delete_from_record_single_scope_removes_one_row(user_id) -> None:
    store = _InMemoryStore()
    service = _service(store, user_id)
    result = service.create(_draft(), 4)

    deleted = service.delete_from_record(result.records[0].id, scope="single")

    assert deleted == 1
    assert len(store.rows) == 3


def test_delete_from_record_all_scope_removes_legacy_group(user_id) -> None:
    store = _InMemoryStore()
    rows = store.insert_many(user_id, _legacy_rows(5))
    service = _service(store, user_id)

    assert service.delete_from_record(rows[1].id) == 5
    assert store.rows == []


def test_delete_from_record_reports_partial_failures(user_id) -> None:
    store = _InMemoryStore()
    rows = store.insert_many(user_id, _legacy_rows(3))
    store.fail_delete_ids = {rows[1].id}
    service = _service(store, user_id)

    with pytest.raises(GroupDeleteFailed) as exc_info:
        service.delete_from_record(rows[0].id)

    assert exc_info.value.failed_ids == [rows[1].id]
    assert set(exc_info.value.deleted_ids) == {rows[0].id, rows[2].id}


def test_delete_from_record_rejects_unknown_scope(user_id) -> None:
    with pytest.raises(ValidationAPIError):
        _service(_InMemoryStore(), user_id).delete_from_record(uuid4(), scope="some")


def test_preview_uses_configured_rounding_strategy(user_id) -> None:
    planner = InstallmentPlanner(rounding_strategy=RemainderOnLastRoundingStrategy())
    service = _service(_InMemoryStore(), user_id, planner=planner)

    plan = service.preview(Decimal("100"), 3, date(2025, 1, 31))

    assert plan.installments[-1].amount == Decimal("33.34")


def test_serialize_group_result_includes_plan(user_id) -> None:
    service = _service(_InMemoryStore(), user_id)
    result = service.create(_draft(amount=Decimal("100.00")), 3)

    payload = serialize_group_result(result)

    assert payload["installment_group_id"] == str(result.group_id)
    assert payload["plan"]["residual"] == "0.01"
    assert payload["transactions"][0]["is_installment"] is True
    assert payload["transactions"][0]["description"] == "Notebook (Installment 1/3)"


def test_with_defaults_reads_app_configuration(app, user_id) -> None:
    app.config["INSTALLMENT_ROUNDING_POLICY"] = "remainder_on_last"
    app.config["INSTALLMENT_DESCRIPTION_LABEL"] = "Parcela"
    with app.app_context():
        service = InstallmentLifecycleService.with_defaults(user_id)

        result = service.create(_draft(amount=Decimal("100.00")), 3)

        assert result.plan.rounding_policy == "remainder_on_last"
        assert result.records[0].description == "Notebook (Parcela 1/3)"
