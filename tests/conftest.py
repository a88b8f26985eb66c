import os

# must be set before the package reads its settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from gestao_financeira.db.session import Base, build_engine, create_db, get_db
from gestao_financeira.main import app
from gestao_financeira.models.company import Company
from gestao_financeira.models.transaction import Expense, Revenue
from gestao_financeira.models.user import RoleEnum, User
from gestao_financeira.services.auth import get_password_hash

PASSWORD = "segredo123"


@pytest.fixture
def engine():
    eng = build_engine("sqlite://", poolclass=StaticPool)
    create_db(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_user(db, email, papel=RoleEnum.user):
    user = User(email=email, nome=email.split("@")[0], senha_hash=get_password_hash(PASSWORD), papel=papel)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin(db):
    return make_user(db, "admin@example.com", RoleEnum.admin)


@pytest.fixture
def user(db):
    return make_user(db, "user@example.com")


@pytest.fixture
def company(db, admin):
    c = Company(name="Padaria Central", cnpj="12.345.678/0001-90", user_id=admin.id)
    db.add(c)
    db.commit()
    db.refresh(c)
    return c


def login(client, email):
    resp = client.post("/auth/login", json={"email": email, "password": PASSWORD})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


@pytest.fixture
def admin_headers(client, admin):
    return login(client, admin.email)


@pytest.fixture
def user_headers(client, user):
    return login(client, user.email)


def add_revenue(db, company, amount, day, description="Venda", status="recebido", **kw):
    row = Revenue(company_id=company.id, description=description, amount=amount, date=day, status=status, **kw)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def add_expense(db, company, amount, day, description="Compra", status="pago", **kw):
    row = Expense(company_id=company.id, description=description, amount=amount, date=day, status=status, **kw)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row
