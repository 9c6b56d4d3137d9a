from __future__ import annotations

from dataclasses import dataclass
from typing import Callable
from uuid import UUID

from flask import Flask, current_app

from app.application.services.installment_lifecycle_service import (
    InstallmentLifecycleService,
)

INSTALLMENT_DEPENDENCIES_EXTENSION_KEY = "installment_dependencies"


@dataclass(frozen=True)
class InstallmentDependencies:
    lifecycle_service_factory: Callable[[UUID], InstallmentLifecycleService]


def _default_dependencies() -> InstallmentDependencies:
    return InstallmentDependencies(
        lifecycle_service_factory=InstallmentLifecycleService.with_defaults,
    )


def register_installment_dependencies(
    app: Flask,
    dependencies: InstallmentDependencies | None = None,
) -> None:
    if dependencies is None:
        dependencies = _default_dependencies()
    app.extensions.setdefault(INSTALLMENT_DEPENDENCIES_EXTENSION_KEY, dependencies)


def get_installment_dependencies() -> InstallmentDependencies:
    configured = current_app.extensions.get(INSTALLMENT_DEPENDENCIES_EXTENSION_KEY)
    if isinstance(configured, InstallmentDependencies):
        return configured
    fallback = _default_dependencies()
    current_app.extensions[INSTALLMENT_DEPENDENCIES_EXTENSION_KEY] = fallback
    return fallback
