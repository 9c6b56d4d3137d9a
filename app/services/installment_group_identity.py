from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID, uuid4

from app.exceptions.installment_exceptions import AmbiguousLegacyGroup
from app.models.transaction import Transaction
from app.services.installment_description import (
    DEFAULT_INSTALLMENT_LABEL,
    parse_installment_suffix,
    strip_installment_suffix,
)
from app.services.installment_membership import is_installment_member
from app.services.transaction_record_store import TransactionRecordStore


def new_group_id() -> UUID:
    return uuid4()


@dataclass(frozen=True)
class GroupResolution:
    seed: Transaction
    records: tuple[Transaction, ...]
    strategy_name: str
    ambiguity: AmbiguousLegacyGroup | None = None

    @property
    def is_group(self) -> bool:
        return is_installment_member(self.seed) and len(self.records) > 1

    @property
    def group_id(self) -> UUID | None:
        return self.seed.installment_group_id

    @property
    def first_record(self) -> Transaction:
        return self.records[0] if self.records else self.seed

    @property
    def record_ids(self) -> list[UUID]:
        return [record.id for record in self.records]


class GroupResolutionStrategy(Protocol):
    name: str

    def resolve(self, seed: Transaction) -> GroupResolution:
        raise NotImplementedError


class ByExplicitIdStrategy:
    name = "explicit_id"

    def __init__(self, *, store: TransactionRecordStore, user_id: UUID) -> None:
        self._store = store
        self._user_id = user_id

    def resolve(self, seed: Transaction) -> GroupResolution:
        records = self._store.find_by_group_id(
            self._user_id, seed.installment_group_id
        )
        return GroupResolution(
            seed=seed,
            records=tuple(records) or (seed,),
            strategy_name=self.name,
        )


class ByFieldHeuristicStrategy:
    """Infer a group for rows written before group ids existed.

    Rows are considered siblings when amount, payment method, account,
    category and installment count match exactly and the descriptions are
    equal once the installment tag is removed. Unrelated plans with the same
    fields are indistinguishable, so suspicious matches carry an
    :class:`AmbiguousLegacyGroup` signal.
    """

    name = "field_heuristic"

    def __init__(
        self,
        *,
        store: TransactionRecordStore,
        user_id: UUID,
        label: str = DEFAULT_INSTALLMENT_LABEL,
    ) -> None:
        self._store = store
        self._user_id = user_id
        self._label = label

    def resolve(self, seed: Transaction) -> GroupResolution:
        single = GroupResolution(seed=seed, records=(seed,), strategy_name=self.name)
        if not is_installment_member(seed):
            return single

        description = strip_installment_suffix(seed.description, label=self._label)
        candidates = self._store.find_by_field(
            self._user_id,
            {
                "amount": seed.amount,
                "payment_method": seed.payment_method,
                "account_id": seed.account_id,
                "category_id": seed.category_id,
                "installments": seed.installments,
            },
            order_by="date",
        )
        matches = [
            candidate
            for candidate in candidates
            if candidate.installment_group_id is None
            and strip_installment_suffix(candidate.description, label=self._label)
            == description
        ]
        if len(matches) <= 1:
            return single

        return GroupResolution(
            seed=seed,
            records=tuple(matches),
            strategy_name=self.name,
            ambiguity=self._detect_ambiguity(seed, matches),
        )

    def _detect_ambiguity(
        self, seed: Transaction, matches: list[Transaction]
    ) -> AmbiguousLegacyGroup | None:
        reason: str | None = None
        if all(match.id != seed.id for match in matches):
            reason = "seed_not_matched"
        elif len(matches) != seed.installments:
            reason = "count_mismatch"
        else:
            sequence_numbers = [
                parsed[0]
                for parsed in (
                    parse_installment_suffix(match.description, label=self._label)
                    for match in matches
                )
                if parsed is not None
            ]
            if any(total > 1 for total in Counter(sequence_numbers).values()):
                reason = "duplicate_sequence"

        if reason is None:
            return None
        return AmbiguousLegacyGroup(
            reason,
            seed_id=seed.id,
            expected_count=seed.installments,
            matched_count=len(matches),
        )


def select_resolution_strategy(
    seed: Transaction,
    *,
    store: TransactionRecordStore,
    user_id: UUID,
    label: str = DEFAULT_INSTALLMENT_LABEL,
) -> GroupResolutionStrategy:
    if seed.installment_group_id is not None:
        return ByExplicitIdStrategy(store=store, user_id=user_id)
    return ByFieldHeuristicStrategy(store=store, user_id=user_id, label=label)
