from fastapi import FastAPI

from shared.observability import setup_observability

from .models import AutoReply, Setting  # noqa: F401 - registers models with Base
from .router import router, public_router

settings_app = FastAPI(title="Settings Service", version="1.0.0")

setup_observability(settings_app, "settings_service")

settings_app.include_router(public_router)
settings_app.include_router(router)
