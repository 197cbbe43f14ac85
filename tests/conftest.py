from pathlib import Path
import sys
import os

import pytest
from werkzeug.security import generate_password_hash

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

# Safety default for any module-level app creation during test imports.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from signa import create_app
from signa.extensions import db
from signa.models import User
from signa.services.commissions import CommissionService
from signa.services.members import MemberService
from signa.storage import get_storage


@pytest.fixture(params=["memory", "sql"])
def backend_kind(request):
    return request.param


@pytest.fixture()
def app(tmp_path: Path, backend_kind):
    db_file = tmp_path / "test.sqlite3"
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_file}",
            "SQLALCHEMY_ENGINE_OPTIONS": {},
            "SECRET_KEY": "test-secret",
            "STORAGE_BACKEND": backend_kind,
        }
    )

    with app.app_context():
        driver = db.engine.url.drivername
        if driver != "sqlite":
            raise RuntimeError(
                f"Test database must be SQLite, got '{driver}'. Refusing to run destructive test setup."
            )
        db.drop_all()
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def db_session(app):
    with app.app_context():
        yield db.session


@pytest.fixture()
def storage(app):
    return get_storage()


@pytest.fixture()
def tenant(storage):
    return storage.insert(
        "tenants", {"name": "Grace Chapel", "slug": "grace-chapel", "current_year": 2026}
    )


@pytest.fixture()
def other_tenant(storage):
    return storage.insert(
        "tenants", {"name": "Hope Chapel", "slug": "hope-chapel", "current_year": 2026}
    )


@pytest.fixture()
def members(storage, tenant):
    service = MemberService(storage)
    return [
        service.create_member(tenant["id"], name)
        for name in ("Ana Souza", "Bruno Lima", "Carla Dias", "Davi Rocha")
    ]


@pytest.fixture()
def commissions(storage):
    return CommissionService(storage)


@pytest.fixture()
def commission(commissions, tenant):
    return commissions.create_commission(tenant["id"], "Nominating Committee", 2026)


@pytest.fixture()
def roles(commissions, commission):
    registry = commissions.roles
    return [
        registry.add_role(commission["id"], "Elder", 2),
        registry.add_role(commission["id"], "Treasurer", 1),
        registry.add_role(commission["id"], "Clerk", 1),
    ]


@pytest.fixture()
def open_commission(commissions, commission, roles):
    return commissions.open_commission(commission["id"])


@pytest.fixture()
def admin_user(db_session, tenant):
    user = User(
        username="admin1",
        email="admin1@example.com",
        password_hash=generate_password_hash("correct-horse", method="pbkdf2:sha256"),
        tenant_id=tenant["id"],
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture()
def auth_client(client, admin_user):
    with client.session_transaction() as session:
        session["_user_id"] = str(admin_user.id)
        session["_fresh"] = True
    return client
