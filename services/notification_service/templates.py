"""Customer-facing texts for order lifecycle notifications."""
from shared.config import settings


def _money(amount) -> str:
    return f"Rs. {float(amount or 0):.2f}"


def status_message(order, status: str, store_name: str = settings.STORE_NAME) -> str:
    name = order.customer_name or "Customer"
    number = order.order_number
    total = _money(order.total_amount)

    if status == "confirmed":
        return (f"✅ *Order Confirmed!*\n\nHello {name},\n\nYour order {number} has been confirmed "
                f"and is being prepared.\n\n*Order Total:* {total}\n\nWe'll notify you once it's "
                f"ready for delivery.\n\nThank you for shopping with {store_name}! 🛍️")
    if status == "processing":
        return (f"📦 *Order Processing*\n\nHello {name},\n\nYour order {number} is now being processed.\n\n"
                f"We're carefully preparing your items for delivery.\n\nTrack your order anytime by "
                f"asking about order {number}.\n\n{store_name}")
    if status == "shipped":
        return (f"🚚 *Order Shipped!*\n\nHello {name},\n\nGreat news! Your order {number} is on its way!\n\n"
                f"*Order Total:* {total}\n\nExpected delivery: 1-2 business days\n\n{store_name}")
    if status == "delivered":
        return (f"✅ *Order Delivered!*\n\nHello {name},\n\nYour order {number} has been delivered "
                f"successfully!\n\n*Order Total:* {total}\n\nWe hope you enjoy your purchase! 😊\n\n"
                f"Thank you for choosing {store_name}! 🎉")
    if status == "cancelled":
        return (f"❌ *Order Cancelled*\n\nHello {name},\n\nYour order {number} has been cancelled.\n\n"
                f"*Order Total:* {total}\n\nIf this was a mistake or you have questions, please "
                f"contact us.\n\n{store_name}")
    if status == "refunded":
        return (f"💰 *Refund Processed*\n\nHello {name},\n\nYour refund for order {number} has been "
                f"processed.\n\n*Refund Amount:* {total}\n\nPlease allow 3-5 business days for the "
                f"refund to reflect in your account.\n\n{store_name}")
    return (f"📋 *Order Status Update*\n\nHello {name},\n\nYour order {number} status has been "
            f"updated to: *{status}*\n\n*Order Total:* {total}\n\n{store_name}")


def tracking_message(order) -> str:
    lines = [
        "📦 *TRACKING INFORMATION*",
        "",
        f"Hello {order.customer_name or 'Customer'},",
        "",
        f"Your order *{order.order_number}* is on the way! 🚚",
        "",
        f"*Tracking ID:* {order.tracking_id}",
    ]
    if order.delivery_address:
        lines += ["", "*Delivery Address:*", order.delivery_address]
    lines += ["", "You can track your package using the tracking ID provided above."]
    return "\n".join(lines)


def invoice_message(order) -> str:
    items = "".join(
        f"{i}. {item.product_name}\n   Qty: {item.quantity} × {_money(item.unit_price)} = {_money(item.subtotal)}\n\n"
        for i, item in enumerate(order.items, start=1)
    )
    subtotal = float(order.total_amount) - float(order.delivery_fee or 0)
    date = order.created_at.strftime("%b %d, %Y") if order.created_at else ""
    text = (
        f"🧾 *INVOICE*\n\nHello {order.customer_name or 'Customer'},\n\nThank you for your order!\n\n"
        f"*Order #:* {order.order_number}\n*Date:* {date}\n"
        f"*Payment:* {order.payment_method or settings.DEFAULT_PAYMENT_METHOD}\n"
        f"*Status:* {order.payment_status}\n\n"
        f"*ORDER ITEMS:*\n\n{items}"
        f"*Subtotal:* {_money(subtotal)}\n*Delivery:* {_money(order.delivery_fee)}\n"
        f"*TOTAL:* {_money(order.total_amount)}"
    )
    if order.delivery_address:
        city = f", {order.city}" if order.city else ""
        text += f"\n\n*Delivery Address:*\n{order.delivery_address}{city}"
    return text
