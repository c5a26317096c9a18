from __future__ import annotations

import os
import tempfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

_TMP = Path(tempfile.mkdtemp(prefix="specyf-tests-"))

# Settings are read once at import; configure before the app loads
os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_TMP / 'specyf.db'}")
os.environ.setdefault("DB_AUTO_CREATE", "false")
os.environ.setdefault("JWT_SECRET", "test_jwt_secret_32_chars_minimum")
os.environ.setdefault("REFRESH_TOKEN_PEPPER", "test_refresh_pepper")
os.environ.setdefault("ACCESS_TOKEN_TTL_SECONDS", "900")
os.environ.setdefault("REFRESH_TOKEN_TTL_DAYS", "30")
os.environ.setdefault("REFRESH_COOKIE_SECURE", "false")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("REALTIME_BACKEND", "memory")
os.environ.setdefault("EMAIL_BACKEND", "memory")
os.environ.setdefault("CELERY_TASK_ALWAYS_EAGER", "true")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")
os.environ.setdefault("STORAGE_ROOT", str(_TMP / "storage"))
os.environ.setdefault("RAZORPAY_KEY_ID", "rzp_test_key")
os.environ.setdefault("RAZORPAY_KEY_SECRET", "rzp_test_secret")
os.environ.setdefault("PUBLIC_BASE_URL", "http://testserver")

from specyf.db import SessionLocal, engine  # noqa: E402
from specyf.mail import get_email_sender  # noqa: E402
from specyf.main import app  # noqa: E402
from specyf.models import Base  # noqa: E402
from specyf.payments import get_payment_gateway  # noqa: E402
from specyf.payments.base import GatewayOrder, PaymentGateway  # noqa: E402
from specyf.realtime import get_broker  # noqa: E402


class StubGateway(PaymentGateway):
    def __init__(self) -> None:
        self.orders: list[GatewayOrder] = []

    @property
    def key_id(self) -> str:
        return "rzp_test_key"

    @property
    def key_secret(self) -> str:
        return "rzp_test_secret"

    def create_order(self, amount, currency, receipt, notes=None) -> GatewayOrder:
        order = GatewayOrder(
            id=f"order_{len(self.orders) + 1}",
            amount=amount,
            currency=currency,
            receipt=receipt,
            notes=notes or {},
        )
        self.orders.append(order)
        return order


@pytest.fixture
def gateway() -> StubGateway:
    stub = StubGateway()
    app.dependency_overrides[get_payment_gateway] = lambda: stub
    yield stub
    app.dependency_overrides.pop(get_payment_gateway, None)


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def outbox():
    return get_email_sender().outbox


@pytest.fixture
def broker():
    return get_broker()


@pytest.fixture(autouse=True)
def clean_db():
    # Ensure a clean slate for each test
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    get_email_sender().reset()
    get_broker().reset()
    yield
