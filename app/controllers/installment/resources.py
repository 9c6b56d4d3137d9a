# mypy: disable-error-code=misc

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from flask_apispec import doc, use_kwargs
from flask_apispec.views import MethodResource
from flask_jwt_extended import jwt_required

from app.application.services.installment_lifecycle_service import (
    InstallmentDraft,
    InstallmentLifecycleService,
    serialize_edit_draft,
    serialize_group_result,
    serialize_group_snapshot,
    serialize_resolution,
)
from app.exceptions import APIError
from app.schemas.installment_schema import (
    InstallmentDeleteQuerySchema,
    InstallmentDraftSchema,
    InstallmentPreviewSchema,
    InstallmentResolveQuerySchema,
)
from app.services.installment_planner import InstallmentPlanner

from .contracts import current_user_id, installment_error_response, success
from .dependencies import get_installment_dependencies
from .openapi import (
    INSTALLMENT_CREATE_DOC,
    INSTALLMENT_EDIT_DRAFT_DOC,
    INSTALLMENT_GROUP_DELETE_DOC,
    INSTALLMENT_GROUP_GET_DOC,
    INSTALLMENT_GROUP_UPDATE_DOC,
    INSTALLMENT_PREVIEW_DOC,
    INSTALLMENT_RECORD_DELETE_DOC,
    INSTALLMENT_RECORD_UPDATE_DOC,
    INSTALLMENT_RESOLVE_DOC,
)


def _lifecycle_service() -> InstallmentLifecycleService:
    dependencies = get_installment_dependencies()
    return dependencies.lifecycle_service_factory(current_user_id())


def _split_draft(kwargs: dict[str, Any]) -> tuple[InstallmentDraft, int]:
    installment_count = int(kwargs.pop("installment_count"))
    return InstallmentDraft.from_payload(kwargs), installment_count


class InstallmentPreviewResource(MethodResource):
    @doc(**INSTALLMENT_PREVIEW_DOC)
    @use_kwargs(InstallmentPreviewSchema, location="json")
    @jwt_required()
    def post(
        self, amount: Decimal, installment_count: int, start_date: date
    ) -> Any:
        try:
            plan = _lifecycle_service().preview(amount, installment_count, start_date)
        except APIError as exc:
            return installment_error_response(exc)

        return success(
            status_code=200,
            message="Plano de parcelas calculado",
            data={"plan": InstallmentPlanner.serialize_plan(plan)},
        )


class InstallmentCollectionResource(MethodResource):
    @doc(**INSTALLMENT_CREATE_DOC)
    @use_kwargs(InstallmentDraftSchema, location="json")
    @jwt_required()
    def post(self, **kwargs: Any) -> Any:
        try:
            draft, installment_count = _split_draft(kwargs)
            result = _lifecycle_service().create(draft, installment_count)
        except APIError as exc:
            return installment_error_response(exc)

        return success(
            status_code=201,
            message="Parcelamento criado com sucesso",
            data=serialize_group_result(result),
        )


class InstallmentGroupResource(MethodResource):
    @doc(**INSTALLMENT_GROUP_GET_DOC)
    @jwt_required()
    def get(self, group_id: UUID) -> Any:
        try:
            snapshot = _lifecycle_service().get_group(group_id)
        except APIError as exc:
            return installment_error_response(exc)

        return success(
            status_code=200,
            message="Grupo de parcelas encontrado",
            data=serialize_group_snapshot(snapshot),
        )

    @doc(**INSTALLMENT_GROUP_UPDATE_DOC)
    @use_kwargs(InstallmentDraftSchema, location="json")
    @jwt_required()
    def put(self, group_id: UUID, **kwargs: Any) -> Any:
        try:
            draft, installment_count = _split_draft(kwargs)
            result = _lifecycle_service().update(group_id, draft, installment_count)
        except APIError as exc:
            return installment_error_response(exc)

        return success(
            status_code=200,
            message="Parcelamento atualizado com sucesso",
            data=serialize_group_result(result),
            meta={"previous_installment_group_id": str(group_id)},
        )

    @doc(**INSTALLMENT_GROUP_DELETE_DOC)
    @jwt_required()
    def delete(self, group_id: UUID) -> Any:
        try:
            deleted = _lifecycle_service().delete_group(group_id)
        except APIError as exc:
            return installment_error_response(exc)

        return success(
            status_code=200,
            message="Parcelamento removido com sucesso",
            data={"installment_group_id": str(group_id), "deleted_count": deleted},
        )


class InstallmentResolutionResource(MethodResource):
    @doc(**INSTALLMENT_RESOLVE_DOC)
    @use_kwargs(InstallmentResolveQuerySchema, location="query")
    @jwt_required()
    def get(self, transaction_id: UUID, strict: bool) -> Any:
        try:
            resolution = _lifecycle_service().resolve_group(
                transaction_id, strict=strict
            )
        except APIError as exc:
            return installment_error_response(exc)

        return success(
            status_code=200,
            message="Grupo de parcelas resolvido",
            data=serialize_resolution(resolution),
        )


class InstallmentEditDraftResource(MethodResource):
    @doc(**INSTALLMENT_EDIT_DRAFT_DOC)
    @jwt_required()
    def get(self, transaction_id: UUID) -> Any:
        try:
            edit_draft = _lifecycle_service().build_edit_draft(transaction_id)
        except APIError as exc:
            return installment_error_response(exc)

        return success(
            status_code=200,
            message="Rascunho de edição montado",
            data={"draft": serialize_edit_draft(edit_draft)},
        )


class InstallmentTransactionResource(MethodResource):
    @doc(**INSTALLMENT_RECORD_UPDATE_DOC)
    @use_kwargs(InstallmentResolveQuerySchema, location="query")
    @use_kwargs(InstallmentDraftSchema, location="json")
    @jwt_required()
    def put(self, transaction_id: UUID, strict: bool, **kwargs: Any) -> Any:
        try:
            draft, installment_count = _split_draft(kwargs)
            result = _lifecycle_service().update_from_record(
                transaction_id, draft, installment_count, strict=strict
            )
        except APIError as exc:
            return installment_error_response(exc)

        return success(
            status_code=200,
            message="Parcelamento atualizado com sucesso",
            data=serialize_group_result(result),
        )

    @doc(**INSTALLMENT_RECORD_DELETE_DOC)
    @use_kwargs(InstallmentDeleteQuerySchema, location="query")
    @jwt_required()
    def delete(self, transaction_id: UUID, scope: str, strict: bool) -> Any:
        try:
            deleted = _lifecycle_service().delete_from_record(
                transaction_id, scope=scope, strict=strict
            )
        except APIError as exc:
            return installment_error_response(exc)

        return success(
            status_code=200,
            message="Parcelas removidas com sucesso",
            data={
                "transaction_id": str(transaction_id),
                "scope": scope,
                "deleted_count": deleted,
            },
        )
