from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import ExternalUnavailableError, NotFoundError, ValidationError
from services.notification_service.dispatcher import NotificationDispatcher
from services.notification_service.templates import invoice_message, status_message, tracking_message

from .models import Order
from .repository import OrderRepository
from .schemas import OrderStatus, PaymentStatus, can_transition

logger = structlog.get_logger(__name__)


def order_payload(order: Order, with_items: bool = True) -> dict:
    payload = {
        "order_number": order.order_number,
        "status": order.status,
        "payment_status": order.payment_status,
        "payment_method": order.payment_method,
        "total_amount": order.total_amount,
        "delivery_fee": order.delivery_fee,
        "tracking_id": order.tracking_id,
        "delivery_address": order.delivery_address,
        "city": order.city,
        "created_at": order.created_at.isoformat() if order.created_at else None,
    }
    if with_items:
        payload["items"] = [
            {
                "product_name": item.product_name,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "subtotal": item.subtotal,
            }
            for item in order.items
        ]
    return payload


class OrderService:

    # --- customer-facing reads, always scoped to the caller ---

    @staticmethod
    async def track_order(db: AsyncSession, order_number: str, customer_address: str) -> dict:
        order_number = (order_number or "").strip()
        if not order_number:
            raise ValidationError("Order number required.")
        order = await OrderRepository.get_by_number(db, order_number, customer_address)
        if not order:
            raise NotFoundError(f"Order {order_number} not found.")
        return order_payload(order)

    @staticmethod
    async def customer_orders(db: AsyncSession, customer_address: str, limit: int = 10) -> list[dict]:
        orders = await OrderRepository.list_for_customer(db, customer_address, limit)
        return [order_payload(o, with_items=False) for o in orders]

    @staticmethod
    async def tracking_info(db: AsyncSession, customer_address: str,
                            order_number: Optional[str] = None) -> dict:
        """Tracking for the named order, or the caller's most recent one."""
        if order_number and order_number.strip():
            order = await OrderRepository.get_by_number(db, order_number.strip(), customer_address)
        else:
            latest = await OrderRepository.list_for_customer(db, customer_address, limit=1)
            order = latest[0] if latest else None
        if not order:
            raise NotFoundError("No orders found.")
        return {
            "order_number": order.order_number,
            "status": order.status,
            "tracking_id": order.tracking_id,
            "has_tracking": bool(order.tracking_id),
            "delivery_address": order.delivery_address,
            "city": order.city,
        }

    # --- dashboard administration ---

    @staticmethod
    async def list_orders(db: AsyncSession, limit: int = 100):
        return await OrderRepository.list_recent(db, limit)

    @staticmethod
    async def get_order(db: AsyncSession, order_id: int) -> Order:
        order = await OrderRepository.get_order(db, order_id)
        if not order:
            raise NotFoundError(f"Order {order_id} not found.")
        return order

    @staticmethod
    async def update_status(db: AsyncSession, order_id: int, status: OrderStatus,
                            dispatcher: NotificationDispatcher) -> Order:
        order = await OrderService.get_order(db, order_id)
        current = OrderStatus(order.status)
        if not can_transition(current, status):
            raise ValidationError(f"Cannot move order from {current.value} to {status.value}.")

        order.status = status.value
        order = await OrderRepository.save(db, order)
        logger.info("order_status_updated", order_number=order.order_number,
                    old_status=current.value, new_status=status.value)

        # The status change stands even if the customer can't be reached
        await dispatcher.send_text(order.customer_address, status_message(order, status.value))
        return order

    @staticmethod
    async def set_tracking(db: AsyncSession, order_id: int, tracking_id: str) -> Order:
        order = await OrderService.get_order(db, order_id)
        order.tracking_id = tracking_id.strip()
        return await OrderRepository.save(db, order)

    @staticmethod
    async def set_payment_status(db: AsyncSession, order_id: int, payment_status: PaymentStatus) -> Order:
        order = await OrderService.get_order(db, order_id)
        order.payment_status = payment_status.value
        logger.info("payment_status_updated", order_number=order.order_number,
                    payment_status=payment_status.value)
        return await OrderRepository.save(db, order)

    @staticmethod
    async def send_tracking(db: AsyncSession, order_id: int, dispatcher: NotificationDispatcher):
        order = await OrderService.get_order(db, order_id)
        if not order.tracking_id:
            raise ValidationError("No tracking ID available.")
        if not await dispatcher.send_text(order.customer_address, tracking_message(order)):
            raise ExternalUnavailableError("Failed to send tracking info.")

    @staticmethod
    async def send_invoice(db: AsyncSession, order_id: int, dispatcher: NotificationDispatcher):
        order = await OrderService.get_order(db, order_id)
        if not await dispatcher.send_text(order.customer_address, invoice_message(order)):
            raise ExternalUnavailableError("Failed to send invoice.")
