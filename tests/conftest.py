"""
Shared pytest fixtures for all tests.

Each test gets its own file-backed SQLite database so threads can share it.
"""

import os

# Configure before medbook.config is imported
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite:///./medbook-test.db")
os.environ.setdefault("DB_LOG_SLOW_QUERIES", "false")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_placeholder")

import pytest
from helpers import FakePaymentProvider
from sqlalchemy.orm import sessionmaker

from medbook.database import Base, build_engine
from medbook.domain.payments.gate import PaymentGate
from medbook.models import Provider

# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest.fixture
def engine(tmp_path):
    test_engine = build_engine(f"sqlite:///{tmp_path / 'medbook.db'}")
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


# ============================================================================
# PROVIDER FIXTURES
# ============================================================================


def _add_provider(db, **fields) -> Provider:
    provider = Provider(**fields)
    db.add(provider)
    db.commit()
    db.refresh(provider)
    return provider


@pytest.fixture
def government_provider(db) -> Provider:
    return _add_provider(
        db, name="Dr. Meera Rao", specialization="General Medicine", category="government", user_id="doc-1"
    )


@pytest.fixture
def private_provider(db) -> Provider:
    return _add_provider(
        db,
        name="Dr. Arjun Shah",
        specialization="Cardiology",
        category="private",
        consultation_rate=50000,
        user_id="doc-2",
    )


# ============================================================================
# PAYMENT FIXTURES
# ============================================================================


@pytest.fixture
def payment_provider() -> FakePaymentProvider:
    return FakePaymentProvider(
        intents={
            "pi_paid": {"id": "pi_paid", "status": "succeeded"},
            "pi_paid_2": {"id": "pi_paid_2", "status": "succeeded"},
            "pi_pending": {"id": "pi_pending", "status": "requires_payment_method"},
        }
    )


@pytest.fixture
def gate(payment_provider) -> PaymentGate:
    return PaymentGate(payment_provider, timeout=2.0)
