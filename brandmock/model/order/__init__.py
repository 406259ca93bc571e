import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncSession

from ...helpers import Clock, now_ts
from .orm import Base, Order, PaymentSession, STATUS_PENDING


async def create_schema(conn: AsyncConnection) -> None:
    await conn.run_sync(Base.metadata.create_all)


async def insert_order(db: AsyncSession, order: Order,
                       clock: Clock = now_ts) -> Order:
    """Persist a new order; the store assigns `id` and `created_at`."""
    order.id = uuid.uuid4().hex
    order.created_at = clock()
    if not order.status:
        order.status = STATUS_PENDING
    async with db.begin():
        db.add(order)
    return order


async def get_order(db: AsyncSession, order_id: str) -> Optional[Order]:
    return await db.get(Order, order_id)


async def list_orders(db: AsyncSession,
                      limit: Optional[int] = None) -> List[Order]:
    stmt = select(Order).order_by(Order.created_at.desc())
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


__all__ = [
    "Base", "Order", "PaymentSession", "STATUS_PENDING",
    "create_schema", "insert_order", "get_order", "list_orders",
]
