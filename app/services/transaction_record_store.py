from __future__ import annotations

from typing import Any, Callable, Mapping, Protocol, Sequence, TypeVar
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, scoped_session

from app.exceptions.installment_exceptions import StoreError
from app.extensions.database import db
from app.models.transaction import Transaction

T = TypeVar("T")

FILTERABLE_FIELDS = frozenset(
    {
        "type",
        "amount",
        "description",
        "date",
        "payment_method",
        "vendor",
        "category_id",
        "account_id",
        "installments",
        "installment_no",
        "installment_group_id",
    }
)


class TransactionRecordStore(Protocol):
    """Persistence primitives the installment engine relies on.

    Every call is scoped to the owner of the rows.
    """

    def insert_many(
        self, user_id: UUID, records: Sequence[Transaction]
    ) -> list[Transaction]:
        raise NotImplementedError

    def find_by_id(self, user_id: UUID, transaction_id: UUID) -> Transaction | None:
        raise NotImplementedError

    def find_by_group_id(self, user_id: UUID, group_id: UUID) -> list[Transaction]:
        raise NotImplementedError

    def find_by_field(
        self,
        user_id: UUID,
        filters: Mapping[str, Any],
        order_by: str = "date",
    ) -> list[Transaction]:
        raise NotImplementedError

    def delete_by_id(self, user_id: UUID, transaction_id: UUID) -> int:
        raise NotImplementedError

    def delete_by_group_id(self, user_id: UUID, group_id: UUID) -> int:
        raise NotImplementedError


class SQLAlchemyTransactionStore:
    def __init__(self, session: scoped_session | None = None) -> None:
        self._session = session if session is not None else db.session

    def insert_many(
        self, user_id: UUID, records: Sequence[Transaction]
    ) -> list[Transaction]:
        for record in records:
            if record.user_id is None:
                record.user_id = user_id
            elif str(record.user_id) != str(user_id):
                raise StoreError(
                    "Transação pertence a outro usuário.",
                    operation="insert_many",
                    details={"transaction_user_id": str(record.user_id)},
                )

        def _insert() -> list[Transaction]:
            # One commit for the whole batch: either every row lands or none.
            self._session.add_all(list(records))
            self._session.commit()
            return list(records)

        return self._run("insert_many", _insert)

    def find_by_id(self, user_id: UUID, transaction_id: UUID) -> Transaction | None:
        return self._run(
            "find_by_id",
            lambda: self._owned(user_id).filter_by(id=transaction_id).first(),
        )

    def find_by_group_id(self, user_id: UUID, group_id: UUID) -> list[Transaction]:
        return self._run(
            "find_by_group_id",
            lambda: self._ordered(
                self._owned(user_id).filter_by(installment_group_id=group_id),
                "date",
            ).all(),
            group_id=group_id,
        )

    def find_by_field(
        self,
        user_id: UUID,
        filters: Mapping[str, Any],
        order_by: str = "date",
    ) -> list[Transaction]:
        unknown = set(filters) - FILTERABLE_FIELDS
        if unknown:
            raise StoreError(
                "Filtro de transação inválido.",
                operation="find_by_field",
                details={"fields": sorted(unknown)},
            )

        def _find() -> list[Transaction]:
            query = self._owned(user_id)
            for field, value in filters.items():
                column = getattr(Transaction, field)
                query = query.filter(
                    column.is_(None) if value is None else column == value
                )
            return self._ordered(query, order_by).all()

        return self._run("find_by_field", _find)

    def delete_by_id(self, user_id: UUID, transaction_id: UUID) -> int:
        def _delete() -> int:
            deleted = (
                self._owned(user_id)
                .filter_by(id=transaction_id)
                .delete(synchronize_session=False)
            )
            self._session.commit()
            return int(deleted)

        return self._run("delete_by_id", _delete)

    def delete_by_group_id(self, user_id: UUID, group_id: UUID) -> int:
        def _delete() -> int:
            deleted = (
                self._owned(user_id)
                .filter_by(installment_group_id=group_id)
                .delete(synchronize_session=False)
            )
            self._session.commit()
            return int(deleted)

        return self._run("delete_by_group_id", _delete, group_id=group_id)

    def _owned(self, user_id: UUID) -> Query:
        return self._session.query(Transaction).filter(Transaction.user_id == user_id)

    @staticmethod
    def _ordered(query: Query, order_by: str) -> Query:
        descending = order_by.startswith("-")
        field = order_by.lstrip("-")
        if field not in {"date", "created_at", "installment_no"}:
            raise StoreError(
                "Ordenação de transação inválida.",
                operation="order_by",
                details={"order_by": order_by},
            )
        column = getattr(Transaction, field)
        primary = column.desc() if descending else column.asc()
        return query.order_by(
            primary, Transaction.installment_no.asc(), Transaction.created_at.asc()
        )

    def _run(
        self,
        operation: str,
        action: Callable[[], T],
        *,
        group_id: UUID | None = None,
    ) -> T:
        try:
            return action()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StoreError(
                "Falha ao acessar o armazenamento de transações.",
                operation=operation,
                group_id=group_id,
                details={"reason": exc.__class__.__name__},
            ) from exc
