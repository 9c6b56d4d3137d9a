from __future__ import annotations

from .blueprint import installment_bp
from .resources import (
    InstallmentCollectionResource,
    InstallmentEditDraftResource,
    InstallmentGroupResource,
    InstallmentPreviewResource,
    InstallmentResolutionResource,
    InstallmentTransactionResource,
)

_ROUTES_REGISTERED = False


def register_installment_routes() -> None:
    global _ROUTES_REGISTERED
    if _ROUTES_REGISTERED:
        return

    installment_bp.add_url_rule(
        "",
        view_func=InstallmentCollectionResource.as_view("installment_collection"),
        methods=["POST"],
    )
    installment_bp.add_url_rule(
        "/preview",
        view_func=InstallmentPreviewResource.as_view("installment_preview"),
        methods=["POST"],
    )
    installment_bp.add_url_rule(
        "/<uuid:group_id>",
        view_func=InstallmentGroupResource.as_view("installment_group"),
        methods=["GET", "PUT", "DELETE"],
    )
    installment_bp.add_url_rule(
        "/transactions/<uuid:transaction_id>",
        view_func=InstallmentTransactionResource.as_view("installment_transaction"),
        methods=["PUT", "DELETE"],
    )
    installment_bp.add_url_rule(
        "/transactions/<uuid:transaction_id>/group",
        view_func=InstallmentResolutionResource.as_view("installment_resolution"),
        methods=["GET"],
    )
    installment_bp.add_url_rule(
        "/transactions/<uuid:transaction_id>/draft",
        view_func=InstallmentEditDraftResource.as_view("installment_edit_draft"),
        methods=["GET"],
    )

    _ROUTES_REGISTERED = True


register_installment_routes()
