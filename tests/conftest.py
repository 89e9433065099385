import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import models
from auth_routes import create_access_token, get_password_hash
from database import get_db
from rate_limiter import reset_rate_limits


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    models.Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def _clear_rate_limits():
    reset_rate_limits()
    yield
    reset_rate_limits()


@pytest.fixture()
def client(session_factory):
    from main import app

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def create_user(db, *, email, credits=0, is_admin=False, password="segredo123"):
    user = models.User(
        email=email,
        full_name=None,
        hashed_password=get_password_hash(password),
        credits=credits,
        is_admin=is_admin,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_tema(db, *, titulo="Tema", destaque=False, blocks=None):
    tema = models.Tema(
        titulo=titulo,
        dificuldade="Médio",
        destaque=destaque,
        blocks=blocks or [],
    )
    db.add(tema)
    db.commit()
    db.refresh(tema)
    return tema


def auth_headers(user):
    token = create_access_token({"sub_id": user.id, "sub_email": user.email})
    return {"Authorization": f"Bearer {token}"}
