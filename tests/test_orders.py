import pytest

from shared.errors import ExternalUnavailableError, NotFoundError, ValidationError
from services.cart_service.checkout import CheckoutService
from services.cart_service.service import CartService
from services.order_service.schemas import CustomerInfo, OrderStatus, PaymentStatus, can_transition
from services.order_service.service import OrderService

CUSTOMER = "94771234567@c.us"


@pytest.fixture
async def placed_order(db, make_product):
    product = await make_product(name="Rose Perfume", price=1200, stock=5)
    await CartService.add(db, CUSTOMER, product.id, 2)
    info = CustomerInfo(name="Jane", address="12 Lane", city="Town")
    return await CheckoutService.checkout(db, CUSTOMER, info)


@pytest.mark.parametrize("current,new,allowed", [
    (OrderStatus.PENDING, OrderStatus.CONFIRMED, True),
    (OrderStatus.PENDING, OrderStatus.SHIPPED, True),
    (OrderStatus.SHIPPED, OrderStatus.PROCESSING, False),
    (OrderStatus.DELIVERED, OrderStatus.CANCELLED, False),
    (OrderStatus.DELIVERED, OrderStatus.REFUNDED, True),
    (OrderStatus.CANCELLED, OrderStatus.REFUNDED, True),
    (OrderStatus.CANCELLED, OrderStatus.PENDING, False),
    (OrderStatus.REFUNDED, OrderStatus.CANCELLED, False),
    (OrderStatus.CONFIRMED, OrderStatus.CONFIRMED, False),
])
def test_status_transitions(current, new, allowed):
    assert can_transition(current, new) is allowed


async def test_status_update_notifies_customer(db, placed_order, dispatcher, channel):
    order = await OrderService.update_status(db, placed_order.order_id, OrderStatus.SHIPPED, dispatcher)
    assert order.status == "shipped"
    address, text = channel.texts[-1]
    assert address == CUSTOMER
    assert "Order Shipped" in text and placed_order.order_number in text


async def test_status_update_survives_unreachable_customer(db, placed_order, dispatcher, channel):
    channel.fail_text = True
    order = await OrderService.update_status(db, placed_order.order_id, OrderStatus.CONFIRMED, dispatcher)
    assert order.status == "confirmed"


async def test_backward_transition_is_rejected(db, placed_order, dispatcher, channel):
    await OrderService.update_status(db, placed_order.order_id, OrderStatus.SHIPPED, dispatcher)
    with pytest.raises(ValidationError):
        await OrderService.update_status(db, placed_order.order_id, OrderStatus.CONFIRMED, dispatcher)
    assert len(channel.texts) == 1


async def test_unknown_order(db, dispatcher):
    with pytest.raises(NotFoundError):
        await OrderService.update_status(db, 999, OrderStatus.CONFIRMED, dispatcher)


async def test_send_tracking_requires_tracking_id(db, placed_order, dispatcher, channel):
    with pytest.raises(ValidationError):
        await OrderService.send_tracking(db, placed_order.order_id, dispatcher)

    await OrderService.set_tracking(db, placed_order.order_id, "  TRK-42 ")
    await OrderService.send_tracking(db, placed_order.order_id, dispatcher)
    assert "*Tracking ID:* TRK-42" in channel.texts[-1][1]


async def test_send_invoice(db, placed_order, dispatcher, channel):
    await OrderService.set_payment_status(db, placed_order.order_id, PaymentStatus.PAID)
    await OrderService.send_invoice(db, placed_order.order_id, dispatcher)
    text = channel.texts[-1][1]
    assert placed_order.order_number in text
    assert "Rose Perfume" in text
    assert "Qty: 2" in text
    assert "*Status:* paid" in text


async def test_send_invoice_reports_channel_failure(db, placed_order, dispatcher, channel):
    channel.fail_text = True
    with pytest.raises(ExternalUnavailableError):
        await OrderService.send_invoice(db, placed_order.order_id, dispatcher)


async def test_tracking_info_defaults_to_latest_order(db, placed_order):
    info = await OrderService.tracking_info(db, CUSTOMER)
    assert info["order_number"] == placed_order.order_number
    assert info["has_tracking"] is False

    with pytest.raises(NotFoundError):
        await OrderService.tracking_info(db, "94770000999@c.us")
