from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, File, Form, HTTPException
from fastapi import Query, Request, UploadFile
from fastapi.responses import (
    HTMLResponse, ORJSONResponse, PlainTextResponse, RedirectResponse,
)
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_303_SEE_OTHER

from .config import Settings, configure_logging
from .context import AppContext
from .helpers import format_amount, to_iso
from .infra import timings
from .infra.sql import backend_name
from .model.order import get_order, list_orders
from .packages import DEFAULT_PACKAGE, PACKAGES, price_for
from .payments import PaymentError, get_mock_session
from .workflow import OrderForm, place_order

log = logging.getLogger(__name__)

PKG_DIR = Path(__file__).resolve().parent
SITE_NAME = "BrandMock"

templates = Jinja2Templates(directory=str(PKG_DIR / "templates"))
templates.env.filters["iso"] = to_iso
templates.env.filters["money"] = format_amount
templates.env.globals["price_for"] = price_for
templates.env.globals["site_name"] = SITE_NAME

router = APIRouter()


# ----------------------------
# Dependencies
# ----------------------------
def get_ctx(request: Request) -> AppContext:
    return request.app.state.ctx


async def get_db(ctx: AppContext = Depends(get_ctx)) -> AsyncSession:
    if ctx.SessionAsync is None:
        raise RuntimeError("database not initialized")
    async with ctx.SessionAsync() as session:
        yield session


def base_url_for(request: Request, ctx: AppContext) -> str:
    return (ctx.settings.public_base_url or str(request.base_url)).rstrip("/")


# ----------------------------
# Marketing pages
# ----------------------------
@router.get("/", response_class=HTMLResponse)
async def landing_page(request: Request):
    return templates.TemplateResponse(request, "index.html", {})


@router.get("/how", response_class=HTMLResponse)
async def how_page(request: Request):
    return templates.TemplateResponse(request, "how.html", {})


@router.get("/packages", response_class=HTMLResponse)
async def packages_page(request: Request):
    return templates.TemplateResponse(
        request, "packages.html", {"packages": PACKAGES}
    )


@router.get("/order", response_class=HTMLResponse)
async def order_page(request: Request, package: Optional[str] = None):
    return templates.TemplateResponse(
        request, "order.html",
        {
            "selected_package": package or DEFAULT_PACKAGE,
            "packages": PACKAGES,
        },
    )


@router.get("/about", response_class=HTMLResponse)
async def about_page(request: Request):
    return templates.TemplateResponse(request, "about.html", {})


# ----------------------------
# Checkout
# ----------------------------
@router.post("/checkout")
async def checkout(
    request: Request,
    name: str = Form(""),
    email: str = Form(""),
    product: str = Form(""),
    package_type: str = Form(DEFAULT_PACKAGE, alias="packageType"),
    logo: Optional[UploadFile] = File(None),
    ctx: AppContext = Depends(get_ctx),
    db: AsyncSession = Depends(get_db),
):
    form = OrderForm(name=name, email=email, product=product,
                     package_type=package_type)
    try:
        outcome = await place_order(
            ctx, db, form, logo, base_url_for(request, ctx)
        )
    except SQLAlchemyError:
        log.exception("could not store order")
        return PlainTextResponse("Order storage error", status_code=500)
    except PaymentError:
        log.exception("payment session creation failed")
        return PlainTextResponse("Payment session error", status_code=502)
    return RedirectResponse(
        url=outcome.redirect_url, status_code=HTTP_303_SEE_OTHER
    )


@router.get("/confirmation", response_class=HTMLResponse)
async def confirmation_page(
    request: Request,
    status: Optional[str] = None,
    order_id: Optional[str] = Query(None, alias="orderId"),
    db: AsyncSession = Depends(get_db),
):
    order = await get_order(db, order_id) if order_id else None
    return templates.TemplateResponse(
        request, "confirmation.html", {"status": status, "order": order}
    )


# ----------------------------
# Admin
# ----------------------------
@router.get("/admin", response_class=HTMLResponse)
async def admin_page(request: Request, db: AsyncSession = Depends(get_db)):
    orders = await list_orders(db)
    return templates.TemplateResponse(
        request, "admin.html", {"orders": orders}
    )


# ----------------------------
# JSON API
# ----------------------------
@router.get("/api/orders/{order_id}")
async def api_get_order(order_id: str, db: AsyncSession = Depends(get_db)):
    order = await get_order(db, order_id)
    if not order:
        raise HTTPException(404, detail="order not found")
    return order.as_dict() | {"amount": price_for(order.package_type)}


@router.get("/api/admin/orders")
async def api_admin_orders(limit: int = 200,
                           db: AsyncSession = Depends(get_db)):
    limit = max(1, min(limit, 500))
    orders = await list_orders(db, limit=limit)
    items = [
        o.as_dict() | {
            "amount": price_for(o.package_type),
            "created_at_iso": to_iso(o.created_at),
        }
        for o in orders
    ]
    return {"items": items, "limit": limit}


@router.get("/api/timings")
async def api_timings():
    return {"items": timings.aggregates()}


# ----------------------------
# MockPay hosted page
# ----------------------------
@router.get("/mockpay/{psid}", response_class=HTMLResponse)
async def mockpay_screen(request: Request, psid: str,
                         db: AsyncSession = Depends(get_db)):
    ps = await get_mock_session(db, psid)
    if not ps:
        raise HTTPException(404, "payment session not found")
    return templates.TemplateResponse(request, "mockpay.html", {"ps": ps})


@router.post("/mockpay/{psid}/complete")
async def mockpay_complete(psid: str, t: str = Form(...),
                           db: AsyncSession = Depends(get_db)):
    if t not in {"succeeded", "canceled"}:
        raise HTTPException(400, detail="invalid kind")
    ps = await get_mock_session(db, psid)
    if not ps:
        raise HTTPException(404, "payment session not found")
    url = ps.success_url if t == "succeeded" else ps.cancel_url
    return RedirectResponse(url=url, status_code=HTTP_303_SEE_OTHER)


# ----------------------------
# App factory
# ----------------------------
def create_app(settings: Optional[Settings] = None,
               ctx: Optional[AppContext] = None) -> FastAPI:
    if ctx is None:
        if settings is None:
            settings = Settings.from_env()
        configure_logging(settings.log_level)
        ctx = AppContext.from_settings(settings)
    s = ctx.settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info("=" * 50)
        log.info("%s is starting up...", SITE_NAME)
        log.info("   - Database Backend: %s", backend_name(s.database_url))
        log.info("   - Payment  Backend: %s", ctx.adapter.name)
        log.info("=" * 50)
        await ctx.init()
        try:
            yield
        finally:
            timings.log_aggregates()
            await ctx.close()

    app = FastAPI(
        title=SITE_NAME,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )
    app.state.ctx = ctx
    app.mount("/static", StaticFiles(directory=str(PKG_DIR / "static")),
              name="static")
    app.mount("/uploads", StaticFiles(directory=s.uploads_dir,
                                      check_dir=False), name="uploads")
    app.include_router(router)
    return app


def main() -> None:
    import uvicorn
    port = int(os.getenv("PORT", "3000"))
    uvicorn.run("brandmock.server:create_app", factory=True,
                host="0.0.0.0", port=port)
