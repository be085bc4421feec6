from fastapi import FastAPI

from shared.config.database import AsyncSessionLocal, Base, engine
from shared.observability import configure_logging

# IMPORTANT: import models so they register with Base
from services.catalog_service import models as catalog_models  # noqa: F401
from services.cart_service import models as cart_models  # noqa: F401
from services.order_service import models as order_models  # noqa: F401
from services.settings_service import models as settings_models  # noqa: F401
from services.conversation_service import models as conversation_models  # noqa: F401

from services.catalog_service.main import catalog_app
from services.order_service.main import order_app
from services.settings_service.main import settings_app
from services.orchestrator.main import app as orchestrator_app
from services.settings_service.service import SettingsService

configure_logging()

app = FastAPI(title="Conversational Commerce Cluster")


@app.on_event("startup")
async def startup_event():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # Settings and keyword replies an operator hasn't set yet
    async with AsyncSessionLocal() as db:
        await SettingsService.seed_defaults(db)


app.mount("/catalog", catalog_app)
app.mount("/orders", order_app)
app.mount("/settings", settings_app)
app.mount("/orchestrator", orchestrator_app)
