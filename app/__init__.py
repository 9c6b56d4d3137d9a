from apispec import APISpec
from apispec.ext.marshmallow import MarshmallowPlugin
from flask import Flask
from flask_apispec import FlaskApiSpec
from flask_jwt_extended import JWTManager
from flask_marshmallow import Marshmallow
from flask_migrate import Migrate

from app.controllers.installment import (
    InstallmentCollectionResource,
    InstallmentEditDraftResource,
    InstallmentGroupResource,
    InstallmentPreviewResource,
    InstallmentResolutionResource,
    InstallmentTransactionResource,
    installment_bp,
    register_installment_dependencies,
)
from app.docs.api_documentation import API_INFO, TAGS
from app.extensions.database import db
from app.extensions.error_handlers import register_error_handlers
from app.extensions.installment_cli import register_installment_commands
from app.extensions.jwt_callbacks import register_jwt_callbacks
from app.models.transaction import Transaction  # noqa: F401

jwt = JWTManager()
ma = Marshmallow()


def create_app() -> Flask:
    from config import (
        Config,
        validate_installment_configuration,
        validate_security_configuration,
    )

    validate_security_configuration()

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)

    # Carrega variáveis de ambiente com prefixo FLASK_ do .env
    app.config.from_prefixed_env()
    validate_installment_configuration(app.config)

    # Inicializa extensões
    db.init_app(app)
    ma.init_app(app)
    Migrate(app, db)
    jwt.init_app(app)

    # Cria todas as tabelas no banco de dados (apenas para ambiente de desenvolvimento)
    with app.app_context():
        db.create_all()

    # Configuração do Swagger (OpenAPI 3.0)
    app.config.update(
        {
            "APISPEC_SPEC": APISpec(
                title=API_INFO["title"],
                version=API_INFO["version"],
                openapi_version="3.0.2",
                plugins=[MarshmallowPlugin()],
                info={
                    "description": API_INFO["description"],
                    "contact": API_INFO["contact"],
                    "license": API_INFO["license"],
                },
                components={
                    "securitySchemes": {
                        "BearerAuth": {
                            "type": "http",
                            "scheme": "bearer",
                            "bearerFormat": "JWT",
                            "description": "Token JWT do usuário",
                        }
                    }
                },
                tags=TAGS,
            ),
            "APISPEC_SWAGGER_URL": "/docs/swagger/",
            "APISPEC_SWAGGER_UI_URL": "/docs/",
            "APISPEC_OPTIONS": {"security": [{"BearerAuth": []}]},
        }
    )

    docs = FlaskApiSpec(app)

    register_error_handlers(app)
    register_jwt_callbacks(jwt)
    register_installment_dependencies(app)
    register_installment_commands(app)

    # Blueprints precisam estar registrados antes dos endpoints no Swagger
    app.register_blueprint(installment_bp)

    for resource, endpoint in (
        (InstallmentPreviewResource, "installment_preview"),
        (InstallmentCollectionResource, "installment_collection"),
        (InstallmentGroupResource, "installment_group"),
        (InstallmentTransactionResource, "installment_transaction"),
        (InstallmentResolutionResource, "installment_resolution"),
        (InstallmentEditDraftResource, "installment_edit_draft"),
    ):
        docs.register(resource, blueprint="installment", endpoint=endpoint)

    app.logger.info(
        "event=app.created rounding_policy=%s max_installments=%s",
        app.config["INSTALLMENT_ROUNDING_POLICY"],
        app.config["INSTALLMENT_MAX_COUNT"],
    )
    return app


__all__ = ["create_app"]
