import pytest
from sqlalchemy import func, select

from shared.errors import InsufficientStockError, NotFoundError, ValidationError
from services.cart_service.models import CartItem
from services.cart_service.repository import CartRepository
from services.cart_service.service import CartService
from services.settings_service.service import SettingsService

CUSTOMER = "94771234567@c.us"
OTHER = "94777654321@c.us"


async def _rows(db, customer=CUSTOMER):
    result = await db.execute(select(func.count(CartItem.id)).where(CartItem.customer_address == customer))
    return result.scalar_one()


async def test_adding_same_product_twice_increments_one_row(db, make_product):
    product = await make_product(stock=10)
    await CartService.add(db, CUSTOMER, product.id, 2)
    await CartService.add(db, CUSTOMER, product.id, 3)

    cart = await CartService.view(db, CUSTOMER)
    assert await _rows(db) == 1
    assert cart.items[0].quantity == 5


async def test_add_defaults_to_one(db, make_product):
    product = await make_product()
    added = await CartService.add(db, CUSTOMER, str(product.id))
    assert added["quantity"] == 1


async def test_add_more_than_stock_fails(db, make_product):
    product = await make_product(name="Oud", stock=2)
    with pytest.raises(InsufficientStockError) as exc:
        await CartService.add(db, CUSTOMER, product.id, 3)
    assert exc.value.available == 2
    assert await _rows(db) == 0


async def test_stock_check_counts_what_is_already_in_cart(db, make_product):
    product = await make_product(stock=4)
    await CartService.add(db, CUSTOMER, product.id, 3)
    with pytest.raises(InsufficientStockError):
        await CartService.add(db, CUSTOMER, product.id, 2)


async def test_inactive_or_unknown_product_is_not_found(db, make_product):
    inactive = await make_product(status="inactive")
    with pytest.raises(NotFoundError):
        await CartService.add(db, CUSTOMER, inactive.id, 1)
    with pytest.raises(NotFoundError):
        await CartService.add(db, CUSTOMER, 999, 1)


@pytest.mark.parametrize("quantity", [0, -2, "two"])
async def test_invalid_quantity_is_rejected(db, make_product, quantity):
    product = await make_product()
    with pytest.raises(ValidationError):
        await CartService.add(db, CUSTOMER, product.id, quantity)


async def test_view_totals_with_delivery_fee(db, make_product):
    await SettingsService.update(db, {"delivery_fee": "500", "free_delivery_above": "3000"})
    a = await make_product(name="A", price=1000)
    b = await make_product(name="B", price=500)
    await CartService.add(db, CUSTOMER, a.id, 2)
    await CartService.add(db, CUSTOMER, b.id, 1)

    cart = await CartService.view(db, CUSTOMER)
    assert [line.subtotal for line in cart.items] == [2000, 500]
    assert cart.subtotal == 2500
    assert cart.delivery_fee == 500
    assert cart.total == 3000
    assert cart.item_count == 2


async def test_delivery_is_free_at_threshold(db, make_product):
    await SettingsService.update(db, {"delivery_fee": "500", "free_delivery_above": "3000"})
    product = await make_product(price=1500)
    await CartService.add(db, CUSTOMER, product.id, 2)

    cart = await CartService.view(db, CUSTOMER)
    assert cart.delivery_fee == 0
    assert cart.total == 3000


async def test_empty_cart_view(db):
    cart = await CartService.view(db, CUSTOMER)
    assert cart.is_empty
    assert cart.total == 0 and cart.delivery_fee == 0 and cart.item_count == 0


async def test_view_uses_absolute_image_urls(db, make_product):
    product = await make_product(image_url="/uploads/products/rose.jpg")
    await CartService.add(db, CUSTOMER, product.id, 1)
    cart = await CartService.view(db, CUSTOMER)
    assert cart.items[0].image_url.startswith("http")
    assert cart.items[0].image_url.endswith("/uploads/products/rose.jpg")


async def test_remove_by_cart_row_id(db, make_product):
    a = await make_product(name="A")
    b = await make_product(name="B")
    await CartService.add(db, CUSTOMER, a.id, 1)
    await CartService.add(db, CUSTOMER, b.id, 1)
    line = (await CartService.view(db, CUSTOMER)).items[0]

    assert await CartService.remove(db, CUSTOMER, line.id)
    assert [i.name for i in (await CartService.view(db, CUSTOMER)).items] == ["B"]


async def test_removing_missing_or_foreign_row_is_a_no_op(db, make_product):
    product = await make_product()
    await CartService.add(db, OTHER, product.id, 1)
    foreign = (await CartService.view(db, OTHER)).items[0]

    assert not await CartService.remove(db, CUSTOMER, foreign.id)
    assert not await CartService.remove(db, CUSTOMER, 12345)
    assert await _rows(db, OTHER) == 1


async def test_clear_only_touches_callers_cart(db, make_product):
    product = await make_product()
    await CartService.add(db, CUSTOMER, product.id, 1)
    await CartService.add(db, OTHER, product.id, 1)

    assert await CartService.clear(db, CUSTOMER) == 1
    assert await _rows(db) == 0
    assert await _rows(db, OTHER) == 1


async def test_add_recovers_when_row_appears_between_check_and_insert(db, make_product, monkeypatch):
    product = await make_product(name="Oud", price=750, stock=10)
    product_id = product.id
    await CartService.add(db, CUSTOMER, product_id, 1)

    # Existence check misses the row, so the insert hits the unique constraint
    async def stale_lookup(db, customer_address, product_id):
        return None

    monkeypatch.setattr(CartRepository, "get_item", staticmethod(stale_lookup))
    added = await CartService.add(db, CUSTOMER, product_id, 2)

    assert added["product_name"] == "Oud"
    assert added["price"] == 750
    result = await db.execute(
        select(CartItem.quantity).where(CartItem.customer_address == CUSTOMER, CartItem.product_id == product_id)
    )
    assert result.scalars().all() == [3]
