"""
Order administration for the dashboard collaborator. It may only move
status, payment status and tracking id; totals and item snapshots are
written once, at checkout.
"""
import asyncio
import json

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.errors import ExternalUnavailableError, NotFoundError, ValidationError
from shared.security.dependencies import verify_internal_api_key
from services.notification_service.dispatcher import NotificationDispatcher, get_dispatcher
from services.notification_service.events import order_events

from .schemas import OrderResponse, PaymentStatusUpdate, StatusUpdate, TrackingUpdate
from .service import OrderService

router = APIRouter(dependencies=[Depends(verify_internal_api_key)])
public_router = APIRouter()  # For any public endpoints (e.g. health check)

KEEPALIVE_SECONDS = 15


@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "order", "status": "running"}


@router.get("/", response_model=list[OrderResponse])
async def list_orders(db: AsyncSession = Depends(get_db)):
    return await OrderService.list_orders(db)


@router.get("/events")
async def order_event_stream(request: Request):
    """Server-sent events: one `new_order` event per successful checkout."""
    queue = order_events.subscribe()

    async def stream():
        try:
            while not await request.is_disconnected():
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=KEEPALIVE_SECONDS)
                except asyncio.TimeoutError:
                    yield ": keepalive\n\n"
                    continue
                yield f"event: new_order\ndata: {json.dumps(event.model_dump(mode='json'))}\n\n"
        finally:
            order_events.unsubscribe(queue)

    return StreamingResponse(stream(), media_type="text/event-stream")


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: int, db: AsyncSession = Depends(get_db)):
    try:
        return await OrderService.get_order(db, order_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.put("/{order_id}/status", response_model=OrderResponse)
async def update_status(
    order_id: int,
    data: StatusUpdate,
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    try:
        return await OrderService.update_status(db, order_id, data.status, dispatcher)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)


@router.put("/{order_id}/tracking", response_model=OrderResponse)
async def set_tracking(order_id: int, data: TrackingUpdate, db: AsyncSession = Depends(get_db)):
    try:
        return await OrderService.set_tracking(db, order_id, data.tracking_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.put("/{order_id}/payment-status", response_model=OrderResponse)
async def set_payment_status(order_id: int, data: PaymentStatusUpdate, db: AsyncSession = Depends(get_db)):
    try:
        return await OrderService.set_payment_status(db, order_id, data.payment_status)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.post("/{order_id}/send-tracking")
async def send_tracking(
    order_id: int,
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    try:
        await OrderService.send_tracking(db, order_id, dispatcher)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except ExternalUnavailableError as e:
        raise HTTPException(status_code=502, detail=e.message)
    return {"message": "Tracking info sent to customer"}


@router.post("/{order_id}/send-invoice")
async def send_invoice(
    order_id: int,
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    try:
        await OrderService.send_invoice(db, order_id, dispatcher)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except ExternalUnavailableError as e:
        raise HTTPException(status_code=502, detail=e.message)
    return {"message": "Invoice sent to customer"}
