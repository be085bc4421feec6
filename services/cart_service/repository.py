from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from services.catalog_service.models import Product

from .models import CartItem


class CartRepository:

    @staticmethod
    async def get_item(db: AsyncSession, customer_address: str, product_id: int):
        result = await db.execute(
            select(CartItem).where(
                CartItem.customer_address == customer_address,
                CartItem.product_id == product_id,
            )
        )
        return result.scalars().first()

    @staticmethod
    async def count_items(db: AsyncSession, customer_address: str) -> int:
        result = await db.execute(
            select(func.count(CartItem.id)).where(CartItem.customer_address == customer_address)
        )
        return result.scalar_one()

    @staticmethod
    async def _increment(db: AsyncSession, customer_address: str, product_id: int, quantity: int):
        await db.execute(
            update(CartItem)
            .where(CartItem.customer_address == customer_address, CartItem.product_id == product_id)
            .values(quantity=CartItem.quantity + quantity)
        )

    @staticmethod
    async def add_item(db: AsyncSession, customer_address: str, product_id: int, quantity: int):
        """Insert the row, or bump its quantity if the pair is already in the cart."""
        if await CartRepository.get_item(db, customer_address, product_id):
            await CartRepository._increment(db, customer_address, product_id, quantity)
            await db.commit()
            return
        try:
            db.add(CartItem(customer_address=customer_address, product_id=product_id, quantity=quantity))
            await db.commit()
        except IntegrityError:
            # An interleaved add inserted the row first
            await db.rollback()
            await CartRepository._increment(db, customer_address, product_id, quantity)
            await db.commit()

    @staticmethod
    async def list_lines(db: AsyncSession, customer_address: str):
        """(CartItem, Product) pairs with the product's current price and name."""
        result = await db.execute(
            select(CartItem, Product)
            .join(Product, Product.id == CartItem.product_id)
            .where(CartItem.customer_address == customer_address)
            .order_by(CartItem.id)
        )
        return result.unique().all()

    @staticmethod
    async def remove_item(db: AsyncSession, customer_address: str, cart_item_id: int) -> bool:
        result = await db.execute(
            delete(CartItem).where(
                CartItem.id == cart_item_id,
                CartItem.customer_address == customer_address,
            )
        )
        await db.commit()
        return result.rowcount > 0

    @staticmethod
    async def clear(db: AsyncSession, customer_address: str, commit: bool = True) -> int:
        result = await db.execute(
            delete(CartItem).where(CartItem.customer_address == customer_address)
        )
        if commit:
            await db.commit()
        return result.rowcount
