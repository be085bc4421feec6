from typing import Optional

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Category, Product


class CategoryRepository:

    @staticmethod
    async def create_category(db: AsyncSession, category: Category):
        db.add(category)
        await db.commit()
        await db.refresh(category)
        return category

    @staticmethod
    async def get_category(db: AsyncSession, category_id: int) -> Optional[Category]:
        result = await db.execute(select(Category).where(Category.id == category_id))
        return result.scalars().first()

    @staticmethod
    async def list_active_with_counts(db: AsyncSession):
        """Active categories with the number of active products in each."""
        product_count = func.count(Product.id).label("product_count")
        stmt = (
            select(Category, product_count)
            .outerjoin(Product, (Product.category_id == Category.id) & (Product.status == "active"))
            .where(Category.active.is_(True))
            .group_by(Category.id)
            .order_by(Category.sort_order, Category.id)
        )
        result = await db.execute(stmt)
        return result.all()

    @staticmethod
    async def list_all(db: AsyncSession):
        result = await db.execute(select(Category).order_by(Category.id.desc()))
        return result.scalars().all()

    @staticmethod
    async def set_active(db: AsyncSession, category_id: int, active: bool) -> bool:
        result = await db.execute(
            update(Category).where(Category.id == category_id).values(active=active)
        )
        await db.commit()
        return result.rowcount > 0

    @staticmethod
    async def count_products(db: AsyncSession, category_id: int) -> int:
        result = await db.execute(
            select(func.count(Product.id)).where(Product.category_id == category_id)
        )
        return result.scalar_one()

    @staticmethod
    async def delete_category(db: AsyncSession, category_id: int) -> bool:
        result = await db.execute(delete(Category).where(Category.id == category_id))
        await db.commit()
        return result.rowcount > 0


class ProductRepository:

    @staticmethod
    async def create_product(db: AsyncSession, product: Product):
        db.add(product)
        await db.commit()
        await db.refresh(product)
        return product

    @staticmethod
    async def get_product_by_id(db: AsyncSession, product_id: int) -> Optional[Product]:
        result = await db.execute(select(Product).where(Product.id == product_id))
        return result.scalars().first()

    @staticmethod
    async def get_active_product(db: AsyncSession, product_id: int) -> Optional[Product]:
        result = await db.execute(
            select(Product).where(Product.id == product_id, Product.status == "active")
        )
        return result.scalars().first()

    @staticmethod
    async def search_active(db: AsyncSession, term: str, limit: int = 10):
        escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{escaped}%"
        stmt = (
            select(Product)
            .outerjoin(Category, Category.id == Product.category_id)
            .where(Product.status == "active")
            .where(or_(
                Product.name.ilike(pattern, escape="\\"),
                Product.description.ilike(pattern, escape="\\"),
                Category.name.ilike(pattern, escape="\\"),
            ))
            .order_by(Product.name)
            .limit(limit)
        )
        result = await db.execute(stmt)
        return result.scalars().unique().all()

    @staticmethod
    async def list_active_in_category(db: AsyncSession, category_id: int):
        result = await db.execute(
            select(Product)
            .where(Product.category_id == category_id, Product.status == "active")
            .order_by(Product.name)
        )
        return result.scalars().unique().all()

    @staticmethod
    async def list_all(db: AsyncSession):
        result = await db.execute(select(Product).order_by(Product.id))
        return result.scalars().unique().all()

    @staticmethod
    async def set_image(db: AsyncSession, product_id: int, image_url: str) -> bool:
        result = await db.execute(
            update(Product).where(Product.id == product_id).values(image_url=image_url)
        )
        await db.commit()
        return result.rowcount > 0

    @staticmethod
    async def decrement_stock(db: AsyncSession, product_id: int, quantity: int) -> bool:
        """
        Single-statement conditional decrement. Returns False when the row
        holds fewer than `quantity` units, so stock can never go negative even
        when two checkouts interleave. Flushes only; the caller commits.
        """
        result = await db.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock_quantity >= quantity)
            .values(stock_quantity=Product.stock_quantity - quantity)
        )
        return result.rowcount == 1

    @staticmethod
    async def current_stock(db: AsyncSession, product_id: int) -> int:
        result = await db.execute(select(Product.stock_quantity).where(Product.id == product_id))
        return result.scalar_one_or_none() or 0
