import os
from typing import Any, Mapping

INSTALLMENT_ROUNDING_POLICIES = frozenset({"per_share", "remainder_on_last"})


def _read_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _read_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError as exc:
        raise RuntimeError(
            f"Invalid runtime configuration: {name} must be an integer."
        ) from exc


def _is_secret_weak(secret: str) -> bool:
    normalized = secret.strip().lower()
    return normalized in {"", "dev", "super-secret-key", "changeme"} or len(secret) < 32


def validate_security_configuration() -> None:
    is_debug = _read_bool_env("FLASK_DEBUG", False)
    is_testing = _read_bool_env("FLASK_TESTING", False)
    if is_debug or is_testing:
        return

    secret_key = os.getenv("SECRET_KEY", "dev")
    jwt_secret_key = os.getenv("JWT_SECRET_KEY", "super-secret-key")
    weak = []
    if _is_secret_weak(secret_key):
        weak.append("SECRET_KEY")
    if _is_secret_weak(jwt_secret_key):
        weak.append("JWT_SECRET_KEY")

    if weak:
        raise RuntimeError(
            "Weak/invalid secrets for production runtime: "
            + ", ".join(weak)
            + ". Configure strong values in environment variables."
        )


def validate_installment_configuration(settings: Mapping[str, Any]) -> None:
    policy = str(settings.get("INSTALLMENT_ROUNDING_POLICY", "")).strip().lower()
    if policy not in INSTALLMENT_ROUNDING_POLICIES:
        raise RuntimeError(
            "Invalid runtime configuration: INSTALLMENT_ROUNDING_POLICY must be "
            "one of " + ", ".join(sorted(INSTALLMENT_ROUNDING_POLICIES)) + "."
        )

    max_count = settings.get("INSTALLMENT_MAX_COUNT")
    if not isinstance(max_count, int) or max_count < 2:
        raise RuntimeError(
            "Invalid runtime configuration: INSTALLMENT_MAX_COUNT must be an "
            "integer greater than 1."
        )

    label = str(settings.get("INSTALLMENT_DESCRIPTION_LABEL", "")).strip()
    if not label:
        raise RuntimeError(
            "Invalid runtime configuration: INSTALLMENT_DESCRIPTION_LABEL "
            "must not be empty."
        )


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev")
    # JWT config
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "super-secret-key")
    JWT_TOKEN_LOCATION = ["headers"]
    JWT_HEADER_TYPE = "Bearer"

    DEBUG = _read_bool_env("FLASK_DEBUG", False)
    TESTING = _read_bool_env("FLASK_TESTING", False)

    # Database config
    _DATABASE_URL = os.getenv("DATABASE_URL")
    SQLALCHEMY_DATABASE_URI = _DATABASE_URL or (
        f"postgresql://{os.getenv('DB_USER')}:{os.getenv('DB_PASS')}@"
        f"{os.getenv('DB_HOST')}:{os.getenv('DB_PORT')}/{os.getenv('DB_NAME')}"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Installment engine
    INSTALLMENT_MAX_COUNT = _read_int_env("INSTALLMENT_MAX_COUNT", 60)
    INSTALLMENT_ROUNDING_POLICY = (
        os.getenv("INSTALLMENT_ROUNDING_POLICY", "per_share").strip().lower()
    )
    INSTALLMENT_DESCRIPTION_LABEL = os.getenv(
        "INSTALLMENT_DESCRIPTION_LABEL", "Installment"
    ).strip()


class DevelopmentConfig(Config):
    DEBUG = True
