import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_fitnest.db")
os.environ.setdefault("JWT_SECRET", "test-secret")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import fitnest.auth
from fitnest import config
from fitnest.database import Base
from fitnest.main import app as payment_app
from fitnest.models import StripeAccount, StripeSessionPrice, TrainerSession
from fitnest.trainer_client import TrainerServiceClient, get_trainer_client
from fitnest.trainer_main import app as trainer_app

SQLALCHEMY_DATABASE_URL = "sqlite:///./test_fitnest.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={
                       "check_same_thread": False})
TestingSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def setup_db(monkeypatch):
    Base.metadata.create_all(bind=engine)
    # Mock SessionLocal everywhere in the application to use the test database
    monkeypatch.setattr("fitnest.routes.SessionLocal", TestingSessionLocal)
    monkeypatch.setattr("fitnest.trainer_routes.SessionLocal", TestingSessionLocal)
    monkeypatch.setattr(config, "STRIPE_WEBHOOK_SECRET", "whsec_test")
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def trainer_client():
    trainer_app.dependency_overrides[fitnest.auth.verify_token] = lambda: True
    with TestClient(trainer_app) as c:
        yield c
    trainer_app.dependency_overrides.clear()


@pytest.fixture
def gate(trainer_client):
    """The payment service's view of the trainer service, wired to the in-process app."""
    return TrainerServiceClient(http=trainer_client, retry_delay=0)


@pytest.fixture
def client(gate):
    payment_app.dependency_overrides[fitnest.auth.verify_token] = lambda: True
    payment_app.dependency_overrides[get_trainer_client] = lambda: gate
    with TestClient(payment_app) as c:
        yield c
    payment_app.dependency_overrides.clear()


@pytest.fixture
def db():
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def make_session(db):
    def _make(session_id="sess-1", trainer_id="trainer-1", price="50.00", **fields):
        values = {"duration": 60, "booked": False, "lock": False}
        values.update(fields)
        session = TrainerSession(session_id=session_id, trainer_id=trainer_id, price=Decimal(price), **values)
        db.add(session)
        db.commit()
        return session_id
    return _make


@pytest.fixture
def stripe_ready(db, make_session):
    """A trainer session with its Stripe price and the trainer's connected account."""
    make_session("sess-1")
    db.add(StripeSessionPrice(session_id="sess-1", price_id="price_123", product_id="prod_123"))
    db.add(StripeAccount(user_id="trainer-user-1", account_id="acct_123"))
    db.commit()
    return "sess-1"


@pytest.fixture
def load_session():
    """Read a row back through a fresh session so no identity-map state leaks in."""
    def _load(session_id):
        db = TestingSessionLocal()
        try:
            return db.get(TrainerSession, session_id)
        finally:
            db.close()
    return _load
