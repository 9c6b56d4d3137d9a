from . import error_handlers as _error_handlers  # noqa: F401
from . import resources as _resources  # noqa: F401
from . import routes as _routes  # noqa: F401
from .blueprint import installment_bp
from .dependencies import (
    InstallmentDependencies,
    get_installment_dependencies,
    register_installment_dependencies,
)
from .resources import (
    InstallmentCollectionResource,
    InstallmentEditDraftResource,
    InstallmentGroupResource,
    InstallmentPreviewResource,
    InstallmentResolutionResource,
    InstallmentTransactionResource,
)

__all__ = [
    "installment_bp",
    "InstallmentDependencies",
    "register_installment_dependencies",
    "get_installment_dependencies",
    "InstallmentCollectionResource",
    "InstallmentEditDraftResource",
    "InstallmentGroupResource",
    "InstallmentPreviewResource",
    "InstallmentResolutionResource",
    "InstallmentTransactionResource",
]
