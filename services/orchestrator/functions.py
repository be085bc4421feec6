"""Customer and admin functions callable from generated text."""
import math
from typing import Optional

import pydantic

from shared.errors import ValidationError
from services.cart_service.checkout import CheckoutService
from services.cart_service.service import CartService
from services.catalog_service.schemas import CategoryCreate, ProductCreate
from services.catalog_service.service import CatalogService, category_payload, parse_id
from services.order_service.schemas import CustomerInfo
from services.order_service.service import OrderService

from .registry import CallContext, FunctionRegistry, FunctionResult


def _arg(args: dict, *keys: str, position: Optional[int] = None, default: str = "") -> str:
    """First non-empty value among `keys`, then the positional token."""
    for key in keys:
        if args.get(key):
            return args[key]
    if position is not None and args.get(f"arg{position}"):
        return args[f"arg{position}"]
    return default


def _require(value: str, message: str) -> str:
    if not value or not value.strip():
        raise ValidationError(message)
    return value.strip()


def _price(raw: str) -> float:
    try:
        price = float(raw.replace(",", "").strip())
    except ValueError:
        raise ValidationError(f"Price must be a number, got '{raw}'.")
    if not math.isfinite(price):
        raise ValidationError(f"Price must be a finite number, got '{raw}'.")
    if price < 0:
        raise ValidationError("Price cannot be negative.")
    return price


def _build(schema, **fields):
    """Construct a request schema, reporting bad fields as a correction."""
    try:
        return schema(**fields)
    except pydantic.ValidationError as e:
        problems = "; ".join(f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors())
        raise ValidationError(f"Invalid {schema.__name__} input: {problems}") from e


# ---------- customer tier ----------

async def browse_categories(ctx: CallContext, args: dict) -> FunctionResult:
    categories = await CatalogService.browse_categories(ctx.db)
    message = f"Found {len(categories)} active categories." if categories else "No categories available right now."
    return FunctionResult.ok("browse_categories", categories, message)


async def search_products(ctx: CallContext, args: dict) -> FunctionResult:
    positional = " ".join(args[k] for k in sorted(
        (k for k in args if k.startswith("arg") and k[3:].isdigit()), key=lambda k: int(k[3:])
    ))
    term = _arg(args, "query", "term", "search") or positional
    products = await CatalogService.search_products(ctx.db, term)
    message = (f"Found {len(products)} product(s) matching \"{term}\"." if products
               else f"No products found matching \"{term}\".")
    return FunctionResult.ok("search_products", products, message)


async def products_by_category(ctx: CallContext, args: dict) -> FunctionResult:
    category_id = _require(_arg(args, "category_id", "id", position=0), "Category ID required.")
    products = await CatalogService.products_by_category(ctx.db, category_id)
    message = (f"Found {len(products)} product(s) in this category." if products
               else "No products available in this category.")
    return FunctionResult.ok("products_by_category", products, message)


async def product_details(ctx: CallContext, args: dict) -> FunctionResult:
    product_id = _require(_arg(args, "product_id", "id", position=0), "Product ID required.")
    product = await CatalogService.product_details(ctx.db, product_id)
    return FunctionResult.ok("product_details", product, f"Details for {product['name']}.")


async def add_to_cart(ctx: CallContext, args: dict) -> FunctionResult:
    product_id = _require(_arg(args, "product_id", "id", position=0), "Product ID required.")
    quantity = _arg(args, "quantity", "qty", position=1, default="1")
    added = await CartService.add(ctx.db, ctx.caller, product_id, quantity)
    return FunctionResult.ok(
        "add_to_cart", added, f"Added {added['quantity']} x {added['product_name']} to the cart."
    )


async def view_cart(ctx: CallContext, args: dict) -> FunctionResult:
    cart = await CartService.view(ctx.db, ctx.caller)
    message = f"Cart has {cart.item_count} item(s)." if cart.item_count else "Your cart is currently empty."
    return FunctionResult.ok("view_cart", cart.model_dump(), message)


async def remove_from_cart(ctx: CallContext, args: dict) -> FunctionResult:
    cart_item_id = _require(_arg(args, "cart_item_id", "id", position=0), "Cart item ID required.")
    await CartService.remove(ctx.db, ctx.caller, cart_item_id)
    cart = await CartService.view(ctx.db, ctx.caller)
    return FunctionResult.ok("remove_from_cart", cart.model_dump(), "Item removed from the cart.")


async def clear_cart(ctx: CallContext, args: dict) -> FunctionResult:
    await CartService.clear(ctx.db, ctx.caller)
    return FunctionResult.ok("clear_cart", {"items": []}, "Cart cleared.")


async def checkout(ctx: CallContext, args: dict) -> FunctionResult:
    info = CustomerInfo(
        name=_arg(args, "name", "customer_name"),
        address=_arg(args, "address", "delivery_address"),
        city=_arg(args, "city"),
        payment_method=_arg(args, "payment", "payment_method", "method"),
    )
    if info.missing_fields():
        raise ValidationError("Missing customer information. Require name, address, and city before checkout.")
    result = await CheckoutService.checkout(ctx.db, ctx.caller, info, ctx.events)
    return FunctionResult.ok(
        "checkout", result.model_dump(), f"Order {result.order_number} placed successfully."
    )


async def track_order(ctx: CallContext, args: dict) -> FunctionResult:
    order_number = _require(_arg(args, "order_number", position=0), "Order number required.")
    order = await OrderService.track_order(ctx.db, order_number, ctx.caller)
    return FunctionResult.ok("track_order", order, f"Retrieved status for order {order['order_number']}.")


async def get_customer_orders(ctx: CallContext, args: dict) -> FunctionResult:
    orders = await OrderService.customer_orders(ctx.db, ctx.caller)
    message = f"Found {len(orders)} order(s) for this customer." if orders else "No recent orders found."
    return FunctionResult.ok("get_customer_orders", orders, message)


async def get_tracking(ctx: CallContext, args: dict) -> FunctionResult:
    order_number = _arg(args, "order_number", "order_id", position=0)
    info = await OrderService.tracking_info(ctx.db, ctx.caller, order_number or None)
    if info["has_tracking"]:
        message = f"Tracking info retrieved for order {info['order_number']}."
    else:
        message = (f"Order {info['order_number']} is {info['status']}. "
                   f"Tracking ID will be provided once shipped.")
    return FunctionResult.ok("get_tracking", info, message)


# ---------- admin tier ----------

async def create_category(ctx: CallContext, args: dict) -> FunctionResult:
    name = _require(
        _arg(args, "name", position=0),
        "Category name required. Usage: [FUNCTION:create_category:name=Category Name]",
    )
    category = await CatalogService.create_category(ctx.db, _build(
        CategoryCreate,
        name=name,
        description=_arg(args, "description") or None,
        icon=_arg(args, "icon") or None,
    ))
    return FunctionResult.ok(
        "create_category", category_payload(category),
        f"Category \"{category.name}\" created with ID {category.id}.",
    )


async def add_product(ctx: CallContext, args: dict) -> FunctionResult:
    name = _arg(args, "name")
    category_id = _arg(args, "category_id", "category")
    price = _arg(args, "price")
    if not (name and category_id and price):
        raise ValidationError(
            "Required: name, category_id, and price. Usage: [FUNCTION:add_product:name=Product Name:"
            "category_id=1:price=1500:description=Product description:stock=10]"
        )
    stock = parse_id(_arg(args, "stock", "stock_quantity", "quantity", default="10"), "Stock")
    if stock < 0:
        raise ValidationError("Stock cannot be negative.")
    product = await CatalogService.create_product(ctx.db, _build(
        ProductCreate,
        name=name,
        category_id=parse_id(category_id, "Category ID"),
        price=_price(price),
        description=_arg(args, "description"),
        stock_quantity=stock,
    ))
    product = await CatalogService.product_details(ctx.db, product.id)
    return FunctionResult.ok("add_product", product, f"Product \"{product['name']}\" added with ID {product['id']}.")


async def list_all_categories(ctx: CallContext, args: dict) -> FunctionResult:
    categories = await CatalogService.list_all_categories(ctx.db)
    return FunctionResult.ok("list_all_categories", categories, f"Found {len(categories)} categories.")


async def update_product_image(ctx: CallContext, args: dict) -> FunctionResult:
    usage = ("Required: product_id and image_url. Usage: "
             "[FUNCTION:update_product_image:product_id=1:image_url=/uploads/products/xyz.jpg]")
    product_id = _require(_arg(args, "product_id", "id", position=0), usage)
    image_url = _require(_arg(args, "image_url", "url", position=1), usage)
    updated = await CatalogService.update_product_image(ctx.db, product_id, image_url)
    return FunctionResult.ok(
        "update_product_image", updated, f"Product {updated['product_id']} image updated."
    )


def build_registry() -> FunctionRegistry:
    registry = FunctionRegistry()
    (registry
        .add("browse_categories", browse_categories, "[FUNCTION:browse_categories]",
             "Show all active product categories",
             aliases=("list_categories", "show_categories"))
        .add("search_products", search_products, "[FUNCTION:search_products:query=TERM]",
             "Search active products by name, description or category",
             aliases=("find_products", "product_search"))
        .add("products_by_category", products_by_category, "[FUNCTION:products_by_category:CATEGORY_ID]",
             "List products in a category; use the category's \"id\" from browse_categories",
             aliases=("list_category_products", "category_products"))
        .add("product_details", product_details, "[FUNCTION:product_details:PRODUCT_ID]",
             "Full details for one product",
             aliases=("get_product", "product_info"))
        .add("add_to_cart", add_to_cart, "[FUNCTION:add_to_cart:product_id=ID:quantity=QTY]",
             "Add item(s) to the cart",
             aliases=("cart_add", "addcart"))
        .add("view_cart", view_cart, "[FUNCTION:view_cart]",
             "Show cart items (each with its cart item \"id\") and totals",
             aliases=("show_cart", "cart"))
        .add("remove_from_cart", remove_from_cart, "[FUNCTION:remove_from_cart:cart_item_id=ID]",
             "Remove one cart line; use the cart item \"id\", not the product id",
             aliases=("cart_remove", "delete_cart_item"))
        .add("clear_cart", clear_cart, "[FUNCTION:clear_cart]", "Empty the cart",
             aliases=("empty_cart",))
        .add("checkout", checkout,
             "[FUNCTION:checkout:name=FULL NAME:address=ADDRESS:city=CITY:payment=METHOD]",
             "Place the order once name, address and city are known",
             aliases=("place_order", "confirm_order"))
        .add("track_order", track_order, "[FUNCTION:track_order:order_number=ORD-123]",
             "Current status of one of the customer's orders",
             aliases=("order_status",))
        .add("get_customer_orders", get_customer_orders, "[FUNCTION:get_customer_orders]",
             "The customer's recent orders",
             aliases=("my_orders", "list_orders"))
        .add("get_tracking", get_tracking, "[FUNCTION:get_tracking:order_number=ORD-123]",
             "Tracking ID and shipment status; without an order number, the most recent order",
             aliases=("track_shipment", "tracking_info", "where_is_my_order"))
        .add("create_category", create_category, "[FUNCTION:create_category:name=Category Name]",
             "Create a product category", admin=True,
             aliases=("add_category", "new_category"))
        .add("add_product", add_product,
             "[FUNCTION:add_product:name=NAME:category_id=ID:price=PRICE:description=DESC:stock=QTY]",
             "Add a product (stock defaults to 10)", admin=True,
             aliases=("create_product", "new_product"))
        .add("list_all_categories", list_all_categories, "[FUNCTION:list_all_categories]",
             "All categories including inactive ones", admin=True,
             aliases=("get_all_categories", "admin_categories"))
        .add("update_product_image", update_product_image,
             "[FUNCTION:update_product_image:product_id=ID:image_url=/uploads/products/xyz.jpg]",
             "Set a product's image", admin=True,
             aliases=("set_product_image",)))
    return registry
