from __future__ import annotations

import json
from datetime import date
from decimal import Decimal, InvalidOperation

import click
from flask import Flask

from app.exceptions import InvalidPlanError
from app.services.installment_planner import (
    InstallmentPlanner,
    rounding_strategy_for,
)
from config import INSTALLMENT_ROUNDING_POLICIES


def _parse_amount(ctx: click.Context, param: click.Parameter, value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation as exc:
        raise click.BadParameter(f"invalid amount: {value!r}") from exc


def register_installment_commands(app: Flask) -> None:
    @app.cli.group("installments")
    def installments_group() -> None:
        """Operational commands for installment plans."""

    @installments_group.command("preview")
    @click.option("--amount", required=True, callback=_parse_amount)
    @click.option("--count", required=True, type=int)
    @click.option(
        "--start",
        required=True,
        type=click.DateTime(formats=["%Y-%m-%d"]),
        help="Date of the first installment (YYYY-MM-DD).",
    )
    @click.option(
        "--policy",
        type=click.Choice(sorted(INSTALLMENT_ROUNDING_POLICIES)),
        default=None,
        help="Rounding policy; defaults to INSTALLMENT_ROUNDING_POLICY.",
    )
    def installments_preview(
        amount: Decimal, count: int, start: date, policy: str | None
    ) -> None:
        planner = InstallmentPlanner(
            rounding_strategy=rounding_strategy_for(
                policy or app.config["INSTALLMENT_ROUNDING_POLICY"]
            ),
            max_installments=int(app.config["INSTALLMENT_MAX_COUNT"]),
        )
        try:
            plan = planner.build_plan(amount, count, start.date())
        except InvalidPlanError as exc:
            raise click.ClickException(exc.message) from exc
        click.echo(json.dumps(InstallmentPlanner.serialize_plan(plan), sort_keys=True))
