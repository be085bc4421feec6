import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("INTERNAL_API_KEY", "test-internal-key")

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from shared.config.database import Base
from shared.errors import ExternalUnavailableError
from services.catalog_service.models import Category, Product
from services.cart_service import models as cart_models  # noqa: F401
from services.conversation_service import models as conversation_models  # noqa: F401
from services.notification_service.dispatcher import NotificationDispatcher
from services.notification_service.events import OrderEventBus
from services.order_service import models as order_models  # noqa: F401
from services.orchestrator.composer import ResponseComposer
from services.orchestrator.functions import build_registry
from services.orchestrator.registry import CallContext
from services.settings_service import models as settings_models  # noqa: F401

CUSTOMER = "94771234567@c.us"


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db(engine):
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
def make_category(db):
    async def _make(name="Perfumes", active=True):
        category = Category(name=name, active=active, sort_order=0)
        db.add(category)
        await db.commit()
        return category
    return _make


@pytest.fixture
def make_product(db):
    async def _make(name="Rose Perfume", price=1000.0, stock=10, category=None,
                    status="active", image_url=None, description=""):
        product = Product(
            name=name, price=price, stock_quantity=stock, status=status, image_url=image_url,
            description=description, category_id=category.id if category else None,
        )
        db.add(product)
        await db.commit()
        return product
    return _make


class FakeChannelClient:
    def __init__(self, fail_text=False, failing_media=()):
        self.texts = []
        self.media = []
        self.fail_text = fail_text
        self.failing_media = set(failing_media)

    async def send_text(self, address, text):
        if self.fail_text:
            raise ExternalUnavailableError("channel down")
        self.texts.append((address, text))

    async def send_media(self, address, media_url, caption=""):
        if media_url in self.failing_media:
            raise ExternalUnavailableError("media fetch failed")
        self.media.append((address, media_url, caption))


class FakeGenerator:
    """Returns scripted replies in order; an exception in the script is raised instead."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    async def generate(self, system_prompt, message, history=(), round_label="1"):
        self.calls.append({
            "system_prompt": system_prompt,
            "message": message,
            "history": list(history),
            "round": round_label,
        })
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def channel():
    return FakeChannelClient()


@pytest.fixture
def dispatcher(channel):
    return NotificationDispatcher(channel, max_media=5, media_delay=0)


@pytest.fixture
def events():
    return OrderEventBus()


@pytest.fixture
def registry():
    return build_registry()


@pytest.fixture
def ctx(db, events):
    return CallContext(db=db, caller=CUSTOMER, events=events)


@pytest.fixture
def composer_for(registry):
    def _build(*replies):
        generator = FakeGenerator(*replies)
        return ResponseComposer(registry, generator), generator
    return _build
