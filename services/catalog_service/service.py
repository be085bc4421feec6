from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from shared.config import settings
from shared.errors import NotFoundError, ValidationError

from .models import Category, Product
from .repository import CategoryRepository, ProductRepository
from .schemas import CategoryCreate, ProductCreate


def absolute_media_url(path: Optional[str], base_url: Optional[str] = None) -> Optional[str]:
    """Relative upload paths become absolute URLs the channel can fetch."""
    if not path:
        return path
    if path.startswith(("http://", "https://")):
        return path
    base = (base_url or settings.SERVER_BASE_URL).rstrip("/")
    return f"{base}/{path.lstrip('/')}"


def product_payload(product: Product) -> dict:
    return {
        "id": product.id,
        "name": product.name,
        "description": product.description or "",
        "price": product.price,
        "stock_quantity": product.stock_quantity,
        "image_url": absolute_media_url(product.image_url),
        "category_id": product.category_id,
        "category_name": product.category.name if product.category else None,
        "status": product.status,
    }


def category_payload(category: Category, product_count: Optional[int] = None) -> dict:
    payload = {
        "id": category.id,
        "name": category.name,
        "description": category.description,
        "icon": category.icon,
        "active": category.active,
    }
    if product_count is not None:
        payload["product_count"] = product_count
    return payload


def parse_id(raw, label: str) -> int:
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be a number, got '{raw}'.")


class CatalogService:

    # --- customer-facing reads ---

    @staticmethod
    async def browse_categories(db: AsyncSession) -> list[dict]:
        rows = await CategoryRepository.list_active_with_counts(db)
        return [category_payload(category, count) for category, count in rows]

    @staticmethod
    async def search_products(db: AsyncSession, term: str) -> list[dict]:
        term = (term or "").strip()
        if not term:
            raise ValidationError("Search term required.")
        products = await ProductRepository.search_active(db, term)
        return [product_payload(p) for p in products]

    @staticmethod
    async def products_by_category(db: AsyncSession, category_id) -> list[dict]:
        products = await ProductRepository.list_active_in_category(db, parse_id(category_id, "Category ID"))
        return [product_payload(p) for p in products]

    @staticmethod
    async def product_details(db: AsyncSession, product_id) -> dict:
        product = await ProductRepository.get_product_by_id(db, parse_id(product_id, "Product ID"))
        if not product:
            raise NotFoundError(f"Product {product_id} not found.")
        return product_payload(product)

    # --- admin writes ---

    @staticmethod
    async def create_category(db: AsyncSession, data: CategoryCreate) -> Category:
        category = Category(
            name=data.name.strip(),
            description=data.description,
            icon=data.icon,
            sort_order=data.sort_order,
            active=True,
        )
        return await CategoryRepository.create_category(db, category)

    @staticmethod
    async def create_product(db: AsyncSession, data: ProductCreate) -> Product:
        if data.category_id is not None:
            category = await CategoryRepository.get_category(db, data.category_id)
            if not category:
                raise NotFoundError(f"Category {data.category_id} not found.")
        product = Product(
            name=data.name.strip(),
            category_id=data.category_id,
            price=data.price,
            description=data.description,
            stock_quantity=data.stock_quantity,
            image_url=data.image_url,
            status="active",
        )
        return await ProductRepository.create_product(db, product)

    @staticmethod
    async def list_all_categories(db: AsyncSession) -> list[dict]:
        categories = await CategoryRepository.list_all(db)
        return [category_payload(c) for c in categories]

    @staticmethod
    async def update_product_image(db: AsyncSession, product_id, image_url: str) -> dict:
        pid = parse_id(product_id, "Product ID")
        if not image_url or not image_url.strip():
            raise ValidationError("Image URL required.")
        updated = await ProductRepository.set_image(db, pid, image_url.strip())
        if not updated:
            raise NotFoundError(f"Product ID {pid} not found.")
        return {"product_id": pid, "image_url": image_url.strip()}

    @staticmethod
    async def deactivate_category(db: AsyncSession, category_id: int) -> None:
        if not await CategoryRepository.set_active(db, category_id, False):
            raise NotFoundError(f"Category {category_id} not found.")

    @staticmethod
    async def delete_category(db: AsyncSession, category_id: int) -> None:
        """Hard delete, refused while any product still references the category."""
        in_use = await CategoryRepository.count_products(db, category_id)
        if in_use:
            raise ValidationError(
                f"Category {category_id} still has {in_use} product(s); deactivate it instead."
            )
        if not await CategoryRepository.delete_category(db, category_id):
            raise NotFoundError(f"Category {category_id} not found.")

    @staticmethod
    async def list_products(db: AsyncSession):
        return await ProductRepository.list_all(db)
