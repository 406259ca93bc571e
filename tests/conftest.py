import io
import random
from pathlib import Path
from typing import List

import pytest
from fastapi.testclient import TestClient
from PIL import Image
from sqlalchemy import select

from brandmock.config import Settings
from brandmock.context import AppContext
from brandmock.infra import timings
from brandmock.model.order import Order
from brandmock.payments import PaymentAdapter, PaymentError
from brandmock.server import create_app


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0, step: float = 0.001):
        self.t = start
        self.step = step

    def __call__(self) -> float:
        self.t += self.step
        return self.t


class FakePay(PaymentAdapter):
    """Records requests; notes whether the order was already committed."""
    name = "fake"

    def __init__(self):
        self.requests: List[dict] = []
        self.order_committed: List[bool] = []

    async def create_session(self, db, req):
        self.requests.append(req)
        result = await db.execute(
            select(Order.id).where(Order.id == req["order_id"])
        )
        self.order_committed.append(result.scalar() is not None)
        return {
            "payment_session_id": f"cs_{len(self.requests)}",
            "redirect_url": f"https://pay.example/checkout/{req['order_id']}",
        }


class FailingPay(FakePay):
    async def create_session(self, db, req):
        self.requests.append(req)
        raise PaymentError("provider unavailable")


def png_bytes(size=(40, 40), color=(200, 30, 30, 255), mode="RGBA") -> bytes:
    buf = io.BytesIO()
    Image.new(mode, size, color).save(buf, format="PNG")
    return buf.getvalue()


def write_template(path: Path, size=(200, 150), color=(240, 240, 240)):
    Image.new("RGB", size, color).save(path, format="PNG")


@pytest.fixture(autouse=True)
def _reset_timings():
    timings.reset()
    yield
    timings.reset()


@pytest.fixture()
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        uploads_dir=str(tmp_path / "uploads"),
        templates_dir=str(tmp_path / "templates"),
        payment_backend="mock",
    )


@pytest.fixture()
def uploads_dir(settings) -> Path:
    return Path(settings.uploads_dir)


@pytest.fixture()
def templates_dir(settings) -> Path:
    path = Path(settings.templates_dir)
    path.mkdir(parents=True, exist_ok=True)
    return path


@pytest.fixture()
def fake_pay():
    return FakePay()


def _client(settings, adapter):
    ctx = AppContext.from_settings(
        settings, adapter=adapter, rng=random.Random(7), clock=FakeClock()
    )
    return TestClient(create_app(ctx=ctx))


@pytest.fixture()
def client(settings, fake_pay):
    with _client(settings, fake_pay) as c:
        yield c


@pytest.fixture()
def failing_pay():
    return FailingPay()


@pytest.fixture()
def failing_client(settings, failing_pay):
    with _client(settings, failing_pay) as c:
        yield c


@pytest.fixture()
def mock_client(settings):
    # real MockPay adapter from settings.payment_backend
    ctx = AppContext.from_settings(
        settings, rng=random.Random(7), clock=FakeClock()
    )
    with TestClient(create_app(ctx=ctx)) as c:
        yield c
