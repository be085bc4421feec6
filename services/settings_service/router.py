from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.errors import NotFoundError
from shared.security.dependencies import verify_internal_api_key

from .schemas import AutoReplyCreate, AutoReplyResponse, AutoReplyUpdate
from .service import KeywordService, SettingsService

router = APIRouter(dependencies=[Depends(verify_internal_api_key)])
public_router = APIRouter()  # For any public endpoints (e.g. health check)


@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "settings", "status": "running"}


@router.get("/")
async def get_settings(db: AsyncSession = Depends(get_db)):
    return await SettingsService.get_all(db)


@router.put("/")
async def update_settings(values: dict[str, str], db: AsyncSession = Depends(get_db)):
    await SettingsService.update(db, values)
    return await SettingsService.get_all(db)


@router.get("/auto-replies", response_model=list[AutoReplyResponse])
async def list_auto_replies(db: AsyncSession = Depends(get_db)):
    return await KeywordService.list_replies(db)


@router.post("/auto-replies", response_model=AutoReplyResponse)
async def create_auto_reply(data: AutoReplyCreate, db: AsyncSession = Depends(get_db)):
    return await KeywordService.create_reply(db, data)


@router.put("/auto-replies/{reply_id}", response_model=AutoReplyResponse)
async def update_auto_reply(reply_id: int, data: AutoReplyUpdate, db: AsyncSession = Depends(get_db)):
    try:
        return await KeywordService.update_reply(db, reply_id, data)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.delete("/auto-replies/{reply_id}", status_code=204)
async def delete_auto_reply(reply_id: int, db: AsyncSession = Depends(get_db)):
    try:
        await KeywordService.delete_reply(db, reply_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
