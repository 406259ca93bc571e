import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Optional, TypedDict

import stripe
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .helpers import now_ts
from .model.order import Order, PaymentSession
from .packages import label_for, price_for

log = logging.getLogger(__name__)


class PaymentError(Exception):
    """The provider could not create a checkout session."""


# ----------------------------
# Payment Adapter Interface
# ----------------------------
class CheckoutRequest(TypedDict):
    order_id: str
    amount: int  # cents
    currency: str
    label: str
    customer_email: str
    success_url: str
    cancel_url: str


class CreateSessionResult(TypedDict):
    payment_session_id: str
    redirect_url: str


class PaymentAdapter(ABC):
    name = "abstract"

    @abstractmethod
    async def create_session(
            self, db: AsyncSession, req: CheckoutRequest
    ) -> CreateSessionResult: ...


def build_checkout_request(order: Order, base_url: str,
                           currency: str = "usd") -> CheckoutRequest:
    base = base_url.rstrip("/")
    return {
        "order_id": order.id,
        "amount": price_for(order.package_type),
        "currency": currency,
        "label": label_for(order.package_type),
        "customer_email": order.email or "",
        "success_url":
            f"{base}/confirmation?status=success&orderId={order.id}",
        "cancel_url": f"{base}/order",
    }


# ----------------------------
# Stripe implementation
# ----------------------------
class StripePay(PaymentAdapter):
    """Stripe Checkout over the SDK's async httpx transport.

    The SDK timeout aborts the HTTP request itself, and `wait_for` cancels
    the coroutine, so a timed-out call cannot create a session later.
    """
    name = "stripe"

    def __init__(self, api_key: str, timeout: float = 10.0,
                 client: Optional[stripe.StripeClient] = None):
        self.timeout = timeout
        if client is None:
            client = stripe.StripeClient(
                api_key,
                http_client=stripe.HTTPXClient(timeout=timeout),
                max_network_retries=0,
            )
        self.client = client

    def _params(self, req: CheckoutRequest) -> dict:
        params = {
            "mode": "payment",
            "payment_method_types": ["card"],
            "line_items": [{
                "price_data": {
                    "currency": req["currency"],
                    "product_data": {"name": req["label"]},
                    "unit_amount": req["amount"],
                },
                "quantity": 1,
            }],
            "success_url": req["success_url"],
            "cancel_url": req["cancel_url"],
            "metadata": {"order_id": req["order_id"]},
        }
        if req["customer_email"]:
            params["customer_email"] = req["customer_email"]
        return params

    async def create_session(
            self, db: AsyncSession, req: CheckoutRequest
    ) -> CreateSessionResult:
        try:
            session = await asyncio.wait_for(
                self.client.checkout.sessions.create_async(
                    params=self._params(req)
                ),
                timeout=self.timeout,
            )
        except stripe.StripeError as e:
            raise PaymentError(f"stripe: {e}") from e
        except asyncio.TimeoutError as e:
            raise PaymentError(
                f"stripe: no response within {self.timeout}s"
            ) from e
        if not session.url:
            raise PaymentError(f"stripe: session {session.id} has no url")
        return {"payment_session_id": session.id, "redirect_url": session.url}


# ----------------------------
# MockPay implementation
# ----------------------------
class MockPay(PaymentAdapter):
    """Local stand-in for a hosted checkout, served under /mockpay."""
    name = "mock"

    async def create_session(
            self, db: AsyncSession, req: CheckoutRequest
    ) -> CreateSessionResult:
        psid = f"mock_{uuid.uuid4().hex}"
        try:
            async with db.begin():
                db.add(PaymentSession(
                    id=psid,
                    order_id=req["order_id"],
                    amount=req["amount"],
                    currency=req["currency"],
                    label=req["label"],
                    customer_email=req["customer_email"],
                    success_url=req["success_url"],
                    cancel_url=req["cancel_url"],
                    created_at=now_ts(),
                ))
        except SQLAlchemyError as e:
            raise PaymentError(f"mockpay: {e}") from e
        return {"payment_session_id": psid, "redirect_url": f"/mockpay/{psid}"}


async def get_mock_session(db: AsyncSession,
                           psid: str) -> Optional[PaymentSession]:
    return await db.get(PaymentSession, psid)


def new_adapter(backend: str, stripe_secret_key: Optional[str] = None,
                timeout: float = 10.0) -> PaymentAdapter:
    if backend == "stripe":
        if not stripe_secret_key:
            raise RuntimeError("PAYMENT_BACKEND=stripe needs STRIPE_SECRET_KEY")
        return StripePay(stripe_secret_key, timeout=timeout)
    if backend == "mock":
        return MockPay()
    raise RuntimeError(f"unknown PAYMENT_BACKEND {backend!r}")
