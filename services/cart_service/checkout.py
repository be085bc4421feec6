"""
Cart to order conversion.

Every write (order row, item snapshots, stock decrements, cart clear,
customer aggregate) happens inside one unit of work, so a failure at any
step leaves no partial order behind. Stock is taken with a conditional
UPDATE, which is the guard against two checkouts overselling one product.
"""
import secrets
import time
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config import settings
from shared.config.database import unit_of_work
from shared.errors import InsufficientStockError, ValidationError
from shared.observability import ecomm_active_carts, ecomm_checkout_duration_seconds, ecomm_checkout_total
from services.catalog_service.repository import ProductRepository
from services.notification_service.events import OrderEventBus
from services.order_service.models import Order, OrderItem
from services.order_service.repository import OrderRepository
from services.order_service.schemas import CustomerInfo, NewOrderEvent, OrderStatus

from .repository import CartRepository
from .schemas import CheckoutResult
from .service import CartService

logger = structlog.get_logger(__name__)

# Application-layer lock: one checkout per customer at a time
active_checkouts: set = set()


def new_order_number() -> str:
    return f"ORD-{int(time.time() * 1000)}-{secrets.token_hex(2).upper()}"


class CheckoutService:

    @staticmethod
    async def checkout(db: AsyncSession, customer_address: str, info: CustomerInfo,
                       events: Optional[OrderEventBus] = None) -> CheckoutResult:
        if customer_address in active_checkouts:
            raise ValidationError("A checkout is already in progress for you. Please wait.")
        active_checkouts.add(customer_address)

        try:
            with ecomm_checkout_duration_seconds.time():
                result, order = await CheckoutService._place_order(db, customer_address, info)
        except Exception:
            ecomm_checkout_total.labels(status="failed").inc()
            raise
        finally:
            active_checkouts.discard(customer_address)

        ecomm_checkout_total.labels(status="success").inc()
        ecomm_active_carts.dec()
        logger.info("checkout_completed", customer=customer_address,
                    order_number=result.order_number, total=result.total)

        if events is not None:
            events.publish(NewOrderEvent(
                order_id=order.id,
                order_number=order.order_number,
                customer_address=order.customer_address,
                customer_name=order.customer_name,
                total=order.total_amount,
                delivery_fee=order.delivery_fee,
                status=OrderStatus(order.status),
                payment_method=order.payment_method,
                created_at=order.created_at,
            ))
        return result

    @staticmethod
    async def _place_order(db: AsyncSession, customer_address: str, info: CustomerInfo):
        cart = await CartService.view(db, customer_address)
        if cart.is_empty:
            raise ValidationError("Cart is empty.")

        missing = info.missing_fields()
        if missing:
            raise ValidationError(f"Missing delivery details: {', '.join(missing)}.")

        payment_method = info.payment_method.strip() or settings.DEFAULT_PAYMENT_METHOD

        async with unit_of_work(db):
            order = await OrderRepository.add_order(db, Order(
                order_number=new_order_number(),
                customer_address=customer_address,
                customer_name=info.name.strip(),
                delivery_address=info.address.strip(),
                city=info.city.strip(),
                total_amount=cart.total,
                delivery_fee=cart.delivery_fee,
                status=OrderStatus.PENDING.value,
                payment_status="pending",
                payment_method=payment_method,
            ))

            await OrderRepository.add_items(db, [
                OrderItem(
                    order_id=order.id,
                    product_id=line.product_id,
                    product_name=line.name,
                    quantity=line.quantity,
                    unit_price=line.price,
                    subtotal=line.subtotal,
                )
                for line in cart.items
            ])

            for line in cart.items:
                if not await ProductRepository.decrement_stock(db, line.product_id, line.quantity):
                    available = await ProductRepository.current_stock(db, line.product_id)
                    logger.warning("checkout_stock_conflict", customer=customer_address,
                                   product_id=line.product_id, requested=line.quantity, available=available)
                    raise InsufficientStockError(line.name, available, line.quantity)

            await CartRepository.clear(db, customer_address, commit=False)
            await OrderRepository.upsert_customer(
                db, customer_address, order.customer_name, order.delivery_address, order.city, order.total_amount
            )

        result = CheckoutResult(
            order_id=order.id,
            order_number=order.order_number,
            items=cart.items,
            subtotal=cart.subtotal,
            delivery_fee=cart.delivery_fee,
            total=cart.total,
            payment_method=payment_method,
        )
        return result, order
