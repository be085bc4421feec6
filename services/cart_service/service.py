import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import InsufficientStockError, NotFoundError, ValidationError
from shared.observability import ecomm_active_carts
from services.catalog_service.repository import ProductRepository
from services.catalog_service.service import absolute_media_url, parse_id
from services.settings_service.service import SettingsService

from .repository import CartRepository
from .schemas import CartLine, CartView

logger = structlog.get_logger(__name__)


def _quantity(raw) -> int:
    try:
        quantity = int(str(raw).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"Quantity must be a whole number, got '{raw}'.")
    if quantity <= 0:
        raise ValidationError("Quantity must be at least 1.")
    return quantity


class CartService:

    @staticmethod
    async def add(db: AsyncSession, customer_address: str, product_id, quantity=1) -> dict:
        pid = parse_id(product_id, "Product ID")
        qty = _quantity(quantity)

        product = await ProductRepository.get_active_product(db, pid)
        if not product:
            raise NotFoundError(f"Product {pid} not found or unavailable.")

        existing = await CartRepository.get_item(db, customer_address, pid)
        in_cart = existing.quantity if existing else 0
        if product.stock_quantity < in_cart + qty:
            raise InsufficientStockError(product.name, product.stock_quantity - in_cart, qty)

        # add_item may roll back, which expires `product`
        name, price = product.name, product.price
        was_empty = await CartRepository.count_items(db, customer_address) == 0
        await CartRepository.add_item(db, customer_address, pid, qty)
        if was_empty:
            ecomm_active_carts.inc()

        logger.info("cart_item_added", customer=customer_address, product_id=pid, quantity=qty)
        return {
            "product_id": pid,
            "product_name": name,
            "quantity": qty,
            "quantity_in_cart": in_cart + qty,
            "price": price,
        }

    @staticmethod
    async def view(db: AsyncSession, customer_address: str) -> CartView:
        """
        The cart priced at current catalog prices. Delivery is free at or above
        the configured threshold; an empty cart carries no delivery fee.
        """
        rows = await CartRepository.list_lines(db, customer_address)
        lines = [
            CartLine(
                id=item.id,
                product_id=product.id,
                name=product.name,
                price=product.price,
                quantity=item.quantity,
                subtotal=round(product.price * item.quantity, 2),
                image_url=absolute_media_url(product.image_url),
            )
            for item, product in rows
        ]
        if not lines:
            return CartView()

        subtotal = round(sum(line.subtotal for line in lines), 2)
        fee, free_above = await SettingsService.delivery_pricing(db)
        delivery_fee = 0.0 if subtotal >= free_above else fee
        return CartView(
            items=lines,
            subtotal=subtotal,
            delivery_fee=delivery_fee,
            total=round(subtotal + delivery_fee, 2),
            item_count=len(lines),
        )

    @staticmethod
    async def remove(db: AsyncSession, customer_address: str, cart_item_id) -> bool:
        """Delete one cart row by its row id. Unknown or foreign rows are ignored."""
        removed = await CartRepository.remove_item(db, customer_address, parse_id(cart_item_id, "Cart item ID"))
        if removed and await CartRepository.count_items(db, customer_address) == 0:
            ecomm_active_carts.dec()
        return removed

    @staticmethod
    async def clear(db: AsyncSession, customer_address: str) -> int:
        removed = await CartRepository.clear(db, customer_address)
        if removed:
            ecomm_active_carts.dec()
        return removed
