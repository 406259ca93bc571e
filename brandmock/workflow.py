"""Order intake: upload -> order -> mockup -> persist -> checkout.

The order is written before the payment session exists, so a provider failure
leaves a `pending` order behind. Nothing deletes it; the admin view is where
such orders get reconciled.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .context import AppContext
from .infra.timings import timeit
from .mockup import generate_mockup
from .model.order import Order, STATUS_PENDING, insert_order
from .packages import DEFAULT_PACKAGE, price_for
from .payments import build_checkout_request
from .uploads import discard_uploads, store_upload

log = logging.getLogger(__name__)


@dataclass
class OrderForm:
    name: str = ""
    email: str = ""
    product: str = ""
    package_type: str = DEFAULT_PACKAGE


@dataclass
class CheckoutOutcome:
    order: Order
    redirect_url: str


async def place_order(ctx: AppContext, db: AsyncSession, form: OrderForm,
                      logo: Optional[UploadFile],
                      base_url: str) -> CheckoutOutcome:
    """Run the checkout workflow for one form submission.

    Raises `PaymentError` when the provider fails (the order stays
    persisted). SQLAlchemy errors from the insert propagate after the
    stored logo and mockup are removed.
    """
    s = ctx.settings
    amount = price_for(form.package_type)

    logo_path = await asyncio.to_thread(
        store_upload, logo, s.uploads_dir, ctx.clock, ctx.rng
    )
    order = Order(
        name=form.name,
        email=form.email,
        product=form.product,
        package_type=form.package_type,
        logo_path=logo_path,
        mockup_path=None,
        status=STATUS_PENDING,
    )

    if logo_path is not None:
        async with timeit("mockup.generate"):
            result = await generate_mockup(
                logo_path, s.uploads_dir, s.templates_dir, ctx.clock, ctx.rng
            )
        if result.ok:
            order.mockup_path = result.filename
            log.info("mockup %s from template %s",
                     result.filename, result.template)
        elif result.status == "failed":
            log.warning("mockup generation failed for %s: %s",
                        logo_path, result.reason)
        else:
            log.info("mockup skipped: %s", result.reason)

    try:
        async with timeit("db.add_order"):
            await insert_order(db, order, clock=ctx.clock)
    except SQLAlchemyError:
        # no order will ever reference these files
        discard_uploads(s.uploads_dir, order.logo_path, order.mockup_path)
        raise
    log.info("order %s created (%s, %d cents)",
             order.id, order.package_type, amount)

    req = build_checkout_request(order, base_url, currency=s.currency)
    async with timeit("payments.create_session"):
        session = await ctx.adapter.create_session(db, req)
    log.info("order %s -> payment session %s",
             order.id, session["payment_session_id"])
    return CheckoutOutcome(order=order,
                           redirect_url=session["redirect_url"])
