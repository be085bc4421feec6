from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import utcnow

from .models import CustomerAggregate, Order, OrderItem


class OrderRepository:
    """
    Writes used by checkout only flush; the checkout unit of work commits
    them together. Dashboard writes commit immediately.
    """

    @staticmethod
    async def add_order(db: AsyncSession, order: Order) -> Order:
        db.add(order)
        await db.flush() # assigns order.id for the items
        return order

    @staticmethod
    async def add_items(db: AsyncSession, items: list[OrderItem]):
        db.add_all(items)
        await db.flush()

    @staticmethod
    async def upsert_customer(db: AsyncSession, customer_address: str, name: str,
                              address: str, city: str, amount: float):
        customer = await db.get(CustomerAggregate, customer_address)
        if customer is None:
            customer = CustomerAggregate(
                customer_address=customer_address, total_orders=0, total_spent=0
            )
            db.add(customer)
        customer.name = name or customer.name
        customer.address = address or customer.address
        customer.city = city or customer.city
        customer.total_orders = (customer.total_orders or 0) + 1
        customer.total_spent = round((customer.total_spent or 0) + amount, 2)
        customer.last_order_at = utcnow()
        await db.flush()
        return customer

    @staticmethod
    async def get_customer(db: AsyncSession, customer_address: str) -> Optional[CustomerAggregate]:
        return await db.get(CustomerAggregate, customer_address)

    @staticmethod
    async def get_order(db: AsyncSession, order_id: int) -> Optional[Order]:
        result = await db.execute(select(Order).where(Order.id == order_id))
        return result.scalars().first()

    @staticmethod
    async def get_by_number(db: AsyncSession, order_number: str,
                            customer_address: Optional[str] = None) -> Optional[Order]:
        stmt = select(Order).where(Order.order_number == order_number)
        if customer_address is not None:
            stmt = stmt.where(Order.customer_address == customer_address)
        result = await db.execute(stmt)
        return result.scalars().first()

    @staticmethod
    async def list_for_customer(db: AsyncSession, customer_address: str, limit: int = 10):
        result = await db.execute(
            select(Order)
            .where(Order.customer_address == customer_address)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(limit)
        )
        return result.scalars().all()

    @staticmethod
    async def list_recent(db: AsyncSession, limit: int = 100):
        result = await db.execute(select(Order).order_by(Order.id.desc()).limit(limit))
        return result.scalars().all()

    @staticmethod
    async def save(db: AsyncSession, order: Order) -> Order:
        await db.commit()
        return order
