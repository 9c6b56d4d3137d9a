import os
import sys
from pathlib import Path
from typing import Generator
from uuid import UUID, uuid4

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

TEST_ENV_OVERRIDES = {
    "SECRET_KEY": "test-secret",
    "JWT_SECRET_KEY": "test-jwt-secret",
    "FLASK_DEBUG": "false",
    "FLASK_TESTING": "true",
    "INSTALLMENT_ROUNDING_POLICY": "per_share",
    "INSTALLMENT_MAX_COUNT": "60",
    "INSTALLMENT_DESCRIPTION_LABEL": "Installment",
}


@pytest.fixture(autouse=True)
def isolate_test_env() -> Generator[None, None, None]:
    tracked_keys = set(TEST_ENV_OVERRIDES.keys()) | {
        "DATABASE_URL",
        "FLASK_SQLALCHEMY_DATABASE_URI",
    }
    original_values = {key: os.environ.get(key) for key in tracked_keys}
    yield
    for key, value in original_values.items():
        if value is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = value


@pytest.fixture
def app(tmp_path: Path):
    test_db_path = tmp_path / "test.sqlite3"
    database_url = f"sqlite:///{test_db_path}"
    os.environ["DATABASE_URL"] = database_url
    # Config is read once per process; the prefixed override is read per app.
    os.environ["FLASK_SQLALCHEMY_DATABASE_URI"] = database_url
    for key, value in TEST_ENV_OVERRIDES.items():
        os.environ[key] = value

    from app import create_app
    from app.extensions.database import db

    app = create_app()
    app.config["TESTING"] = True

    with app.app_context():
        db.drop_all()
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()
    if test_db_path.exists():
        test_db_path.unlink()


@pytest.fixture
def client(app) -> Generator:
    yield app.test_client()


@pytest.fixture
def user_id() -> UUID:
    return uuid4()


@pytest.fixture
def auth_headers(app, user_id: UUID) -> dict[str, str]:
    from flask_jwt_extended import create_access_token

    with app.app_context():
        token = create_access_token(identity=str(user_id))
    return {"Authorization": f"Bearer {token}"}
