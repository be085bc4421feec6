from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.security import limiter, verify_internal_api_key
from services.notification_service.dispatcher import NotificationDispatcher, get_dispatcher
from services.notification_service.events import order_events

from .composer import ResponseComposer
from .functions import build_registry
from .generation import GenerationService
from .mode_router import ModeRouter
from .schemas import InboundMessage, InboundResult
from .service import ChatService

router = APIRouter(dependencies=[Depends(verify_internal_api_key)])
public_router = APIRouter()  # For any public endpoints (e.g. health check)

_composer: ResponseComposer | None = None


def get_composer() -> ResponseComposer:
    # Built on first use so importing the app doesn't require model credentials
    global _composer
    if _composer is None:
        _composer = ResponseComposer(build_registry(), GenerationService())
    return _composer


def get_chat_service(
    composer: ResponseComposer = Depends(get_composer),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> ChatService:
    return ChatService(ModeRouter(composer), dispatcher, order_events)


@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "orchestrator", "status": "running"}


# --- CHANNEL WEBHOOK ---
@router.post("/messages/inbound", response_model=InboundResult)
@limiter.limit("30/minute")  # per gateway id, else per IP
async def inbound_message(
    request: Request,                          # REQUIRED: slowapi needs this to check IP/Headers
    payload: InboundMessage,
    db: AsyncSession = Depends(get_db),
    chat_service: ChatService = Depends(get_chat_service),
):
    return await chat_service.handle_inbound(db, payload)
