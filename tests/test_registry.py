import pytest

from sqlalchemy import func, select

from shared.errors import ErrorKind
from services.catalog_service.models import Category, Product
from services.orchestrator.registry import CallContext, FunctionRegistry, FunctionResult
from services.settings_service.service import SettingsService

ADMIN = "94770000001"


async def _count(db, model):
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


async def test_unknown_function_is_not_found(registry, ctx):
    result = await registry.execute(ctx, "launch_rockets", {})
    assert not result.success
    assert result.error_kind == ErrorKind.NOT_FOUND


async def test_aliases_resolve_case_insensitively(registry, ctx, make_category):
    await make_category("Perfumes")
    result = await registry.execute(ctx, "SHOW_CATEGORIES", {})
    assert result.success
    assert result.name == "browse_categories"
    assert [c["name"] for c in result.data] == ["Perfumes"]


async def test_non_admin_cannot_create_category(db, registry, ctx):
    await SettingsService.update(db, {"admin_phone_number": ADMIN})
    result = await registry.execute(ctx, "create_category", {"name": "Watches"})
    assert not result.success
    assert result.error_kind == ErrorKind.AUTHORIZATION
    assert "Admin access required" in result.error
    assert await _count(db, Category) == 0


async def test_non_admin_cannot_add_product(db, registry, ctx, make_category):
    category = await make_category()
    result = await registry.execute(ctx, "add_product", {"name": "Ring", "category_id": str(category.id), "price": "10"})
    assert result.error_kind == ErrorKind.AUTHORIZATION
    assert await _count(db, Product) == 0


async def test_admin_handler_never_runs_for_non_admin(db, ctx):
    ran = []

    async def handler(ctx, args):
        ran.append(True)
        return FunctionResult.ok("secret")

    registry = FunctionRegistry().add("secret", handler, "[FUNCTION:secret]", "", admin=True)
    result = await registry.execute(ctx, "secret", {})
    assert result.error_kind == ErrorKind.AUTHORIZATION
    assert ran == []


async def test_admin_creates_category_and_product(db, registry, events):
    await SettingsService.update(db, {"admin_phone_number": "0770000001"})
    admin_ctx = CallContext(db=db, caller=f"{ADMIN}@c.us", events=events)

    created = await registry.execute(admin_ctx, "add_category", {"name": "Gemstones"})
    assert created.success
    product = await registry.execute(admin_ctx, "add_product", {
        "name": "Blue Sapphire", "category_id": str(created.data["id"]),
        "price": "15,000", "description": "Natural Ceylon sapphire",
    })
    assert product.success
    assert product.data["stock_quantity"] == 10
    assert product.data["price"] == 15000
    assert product.data["category_name"] == "Gemstones"


async def test_add_product_requires_fields(db, registry):
    await SettingsService.update(db, {"admin_phone_number": ADMIN})
    admin_ctx = CallContext(db=db, caller=ADMIN)
    result = await registry.execute(admin_ctx, "add_product", {"name": "Ring"})
    assert result.error_kind == ErrorKind.VALIDATION
    assert "Usage" in result.error


@pytest.mark.parametrize("price", ["nan", "inf", "-inf"])
async def test_non_finite_price_is_rejected(db, registry, make_category, price):
    await SettingsService.update(db, {"admin_phone_number": ADMIN})
    category = await make_category("Rings")
    admin_ctx = CallContext(db=db, caller=ADMIN)
    result = await registry.execute(admin_ctx, "add_product", {
        "name": "Ring", "category_id": str(category.id), "price": price,
    })
    assert result.error_kind == ErrorKind.VALIDATION
    assert "finite" in result.error
    assert await _count(db, Product) == 0


async def test_schema_violation_is_reported_as_validation(db, registry):
    await SettingsService.update(db, {"admin_phone_number": ADMIN})
    admin_ctx = CallContext(db=db, caller=ADMIN)
    result = await registry.execute(admin_ctx, "create_category", {"name": "x" * 300})
    assert result.error_kind == ErrorKind.VALIDATION
    assert "name" in result.error
    assert await _count(db, Category) == 0


async def test_update_product_image_for_unknown_product(db, registry):
    await SettingsService.update(db, {"admin_phone_number": ADMIN})
    admin_ctx = CallContext(db=db, caller=ADMIN)
    result = await registry.execute(admin_ctx, "update_product_image", {"product_id": "42", "image_url": "/uploads/x.jpg"})
    assert result.error_kind == ErrorKind.NOT_FOUND


async def test_missing_argument_is_validation(registry, ctx):
    result = await registry.execute(ctx, "product_details", {})
    assert result.error_kind == ErrorKind.VALIDATION


async def test_unexpected_error_becomes_generic_internal_failure(ctx):
    async def broken(ctx, args):
        raise RuntimeError("connection reset by peer at 10.0.0.3")

    registry = FunctionRegistry().add("broken", broken, "[FUNCTION:broken]", "")
    result = await registry.execute(ctx, "broken", {})
    assert result.error_kind == ErrorKind.INTERNAL
    assert "10.0.0.3" not in result.error


async def test_cart_functions_are_scoped_to_caller(db, registry, ctx, make_product):
    product = await make_product(name="Rose", price=1000, stock=5)
    added = await registry.execute(ctx, "add_to_cart", {"arg0": str(product.id), "arg1": "2"})
    assert added.success

    other = CallContext(db=db, caller="94777654321@c.us")
    assert (await registry.execute(other, "view_cart", {})).data["items"] == []
    mine = await registry.execute(ctx, "view_cart", {})
    assert mine.data["items"][0]["quantity"] == 2


async def test_checkout_function_requires_details(registry, ctx, make_product):
    product = await make_product()
    await registry.execute(ctx, "add_to_cart", {"product_id": str(product.id)})
    result = await registry.execute(ctx, "place_order", {"name": "Jane"})
    assert result.error_kind == ErrorKind.VALIDATION


async def test_checkout_function_places_order(registry, ctx, make_product):
    product = await make_product(price=1000)
    await registry.execute(ctx, "add_to_cart", {"product_id": str(product.id)})
    result = await registry.execute(ctx, "checkout", {"name": "Jane", "address": "12 Lane", "city": "Town", "payment": "Card"})
    assert result.success
    assert result.data["payment_method"] == "Card"

    tracked = await registry.execute(ctx, "track_order", {"order_number": result.data["order_number"]})
    assert tracked.success and tracked.data["status"] == "pending"
    tracking = await registry.execute(ctx, "get_tracking", {})
    assert tracking.data["order_number"] == result.data["order_number"]
    assert not tracking.data["has_tracking"]


async def test_track_order_of_another_customer_is_not_found(db, registry, ctx, make_product):
    product = await make_product()
    other = CallContext(db=db, caller="94777654321@c.us")
    await registry.execute(other, "add_to_cart", {"product_id": str(product.id)})
    placed = await registry.execute(other, "checkout", {"name": "Sam", "address": "1 Road", "city": "Kandy"})

    result = await registry.execute(ctx, "track_order", {"order_number": placed.data["order_number"]})
    assert result.error_kind == ErrorKind.NOT_FOUND


async def test_search_requires_a_term(registry, ctx):
    result = await registry.execute(ctx, "search_products", {})
    assert result.error_kind == ErrorKind.VALIDATION


async def test_search_finds_active_products_only(registry, ctx, make_product):
    await make_product(name="Rose Perfume")
    await make_product(name="Rose Soap", status="inactive")
    result = await registry.execute(ctx, "find_products", {"query": "rose"})
    assert [p["name"] for p in result.data] == ["Rose Perfume"]


async def test_positional_search_terms_keep_their_order(registry, ctx, make_product):
    words = "a b c d e f g h i j k l".split()
    await make_product(name=" ".join(words))
    args = {f"arg{i}": word for i, word in enumerate(words)}
    result = await registry.execute(ctx, "search_products", args)
    assert [p["name"] for p in result.data] == [" ".join(words)]


async def test_search_wildcards_match_literally(registry, ctx, make_product):
    await make_product(name="50% Off Soap")
    await make_product(name="500 ml Oil")
    await make_product(name="Rose_Water")
    await make_product(name="Rose Water")

    percent = await registry.execute(ctx, "search_products", {"query": "50%"})
    underscore = await registry.execute(ctx, "search_products", {"query": "rose_"})

    assert [p["name"] for p in percent.data] == ["50% Off Soap"]
    assert [p["name"] for p in underscore.data] == ["Rose_Water"]
