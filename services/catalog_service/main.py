from fastapi import FastAPI

from shared.observability import setup_observability

from .models import Category, Product  # noqa: F401 - registers models with Base
from .router import router, public_router

catalog_app = FastAPI(
    title="Catalog Service",
    version="1.0.0"
)

# --- OBSERVABILITY BOOTSTRAP ---
setup_observability(catalog_app, "catalog_service")

catalog_app.include_router(public_router)
catalog_app.include_router(router)
