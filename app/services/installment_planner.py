from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Protocol

from dateutil.relativedelta import relativedelta

from app.exceptions.installment_exceptions import InvalidPlanError

MONEY_QUANTIZER = Decimal("0.01")
DEFAULT_MAX_INSTALLMENTS = 60


def _normalize_money(value: Decimal) -> Decimal:
    return value.quantize(MONEY_QUANTIZER, rounding=ROUND_HALF_UP)


def _format_money(value: Decimal) -> str:
    return f"{_normalize_money(value):.2f}"


def add_months(value: date, months: int) -> date:
    """Calendar month arithmetic, clamping the day to the target month."""

    return value + relativedelta(months=months)


class InstallmentRoundingStrategy(Protocol):
    name: str

    def split(self, total: Decimal, count: int) -> list[Decimal]:
        raise NotImplementedError


class PerShareRoundingStrategy:
    """Every share is ``round(total / count, 2)``.

    The shares are not reconciled with the total, so the plan may differ from
    it by up to half a cent per installment. Existing rows were written this
    way.
    """

    name = "per_share"

    def split(self, total: Decimal, count: int) -> list[Decimal]:
        share = _normalize_money(total / count)
        return [share] * count


class RemainderOnLastRoundingStrategy:
    """Equal truncated shares with the leftover cents on the last one."""

    name = "remainder_on_last"

    def split(self, total: Decimal, count: int) -> list[Decimal]:
        normalized_total = _normalize_money(total)
        base_amount = (normalized_total / count).quantize(
            MONEY_QUANTIZER, rounding=ROUND_DOWN
        )
        amounts = [base_amount] * count

        remainder = (normalized_total - base_amount * count).quantize(MONEY_QUANTIZER)
        amounts[-1] = (amounts[-1] + remainder).quantize(MONEY_QUANTIZER)
        return amounts


_ROUNDING_STRATEGIES: dict[str, type[InstallmentRoundingStrategy]] = {
    PerShareRoundingStrategy.name: PerShareRoundingStrategy,
    RemainderOnLastRoundingStrategy.name: RemainderOnLastRoundingStrategy,
}


def rounding_strategy_for(policy: str) -> InstallmentRoundingStrategy:
    normalized = str(policy or "").strip().lower()
    try:
        return _ROUNDING_STRATEGIES[normalized]()
    except KeyError as exc:
        raise ValueError(f"Unknown installment rounding policy: {policy!r}") from exc


@dataclass(frozen=True)
class PlannedInstallment:
    sequence_number: int
    amount: Decimal
    date: date


@dataclass(frozen=True)
class InstallmentPlan:
    total_amount: Decimal
    installment_count: int
    start_date: date
    rounding_policy: str
    installments: tuple[PlannedInstallment, ...]

    @property
    def planned_total(self) -> Decimal:
        return sum((item.amount for item in self.installments), Decimal("0.00"))

    @property
    def residual(self) -> Decimal:
        """Stated total minus the sum of the planned shares."""

        return self.total_amount - self.planned_total

    @property
    def end_date(self) -> date:
        return self.installments[-1].date


class InstallmentPlanner:
    def __init__(
        self,
        *,
        rounding_strategy: InstallmentRoundingStrategy | None = None,
        max_installments: int = DEFAULT_MAX_INSTALLMENTS,
    ) -> None:
        self._rounding_strategy = rounding_strategy or PerShareRoundingStrategy()
        self._max_installments = max_installments

    @property
    def rounding_policy(self) -> str:
        return self._rounding_strategy.name

    def build_plan(
        self,
        total_amount: Decimal | int | float | str,
        installment_count: int,
        start_date: date,
    ) -> InstallmentPlan:
        total = self._normalize_total(total_amount)
        count = self._normalize_count(installment_count)

        amounts = self._rounding_strategy.split(total, count)
        if any(amount <= 0 for amount in amounts):
            raise InvalidPlanError(
                "Valor total insuficiente para o número de parcelas.",
                details={
                    "total_amount": _format_money(total),
                    "installment_count": count,
                },
            )

        installments = tuple(
            PlannedInstallment(
                sequence_number=index + 1,
                amount=amounts[index],
                date=add_months(start_date, index),
            )
            for index in range(count)
        )
        return InstallmentPlan(
            total_amount=_normalize_money(total),
            installment_count=count,
            start_date=start_date,
            rounding_policy=self._rounding_strategy.name,
            installments=installments,
        )

    def _normalize_count(self, raw_count: Any) -> int:
        if isinstance(raw_count, bool) or not isinstance(raw_count, int):
            raise InvalidPlanError(
                "'installment_count' deve ser um número inteiro.",
                details={"installment_count": str(raw_count)},
            )
        if raw_count < 1:
            raise InvalidPlanError(
                "'installment_count' deve ser maior que zero.",
                details={"installment_count": raw_count},
            )
        if raw_count > self._max_installments:
            raise InvalidPlanError(
                f"'installment_count' deve ser no máximo {self._max_installments}.",
                details={
                    "installment_count": raw_count,
                    "max_installments": self._max_installments,
                },
            )
        return raw_count

    @staticmethod
    def _normalize_total(raw_total: Any) -> Decimal:
        try:
            total = Decimal(str(raw_total))
        except (InvalidOperation, TypeError, ValueError) as exc:
            raise InvalidPlanError(
                "Parâmetro 'amount' inválido. Informe um valor numérico válido.",
                details={"amount": str(raw_total)},
            ) from exc
        if not total.is_finite() or total <= 0:
            raise InvalidPlanError(
                "O valor total deve ser maior que zero.",
                details={"amount": str(raw_total)},
            )
        return total

    @staticmethod
    def serialize_plan(plan: InstallmentPlan) -> dict[str, Any]:
        return {
            "total_amount": _format_money(plan.total_amount),
            "installment_count": plan.installment_count,
            "start_date": plan.start_date.isoformat(),
            "end_date": plan.end_date.isoformat(),
            "rounding_policy": plan.rounding_policy,
            "planned_total": _format_money(plan.planned_total),
            "residual": _format_money(plan.residual),
            "installments": [
                {
                    "installment_no": item.sequence_number,
                    "amount": _format_money(item.amount),
                    "date": item.date.isoformat(),
                }
                for item in plan.installments
            ],
        }
