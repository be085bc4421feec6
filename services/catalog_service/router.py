"""
Read and maintenance endpoints for the dashboard collaborator.
Customer-facing catalog access goes through the function registry instead.
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.errors import NotFoundError, ValidationError
from shared.security.dependencies import verify_internal_api_key

from .schemas import CategoryCreate, CategoryResponse, ProductCreate, ProductResponse
from .service import CatalogService

router = APIRouter(dependencies=[Depends(verify_internal_api_key)])
public_router = APIRouter()  # For any public endpoints (e.g. health check)


@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "catalog", "status": "running"}


@router.get("/categories")
async def list_categories(db: AsyncSession = Depends(get_db)):
    return await CatalogService.list_all_categories(db)


@router.post("/categories", response_model=CategoryResponse)
async def create_category(data: CategoryCreate, db: AsyncSession = Depends(get_db)):
    return await CatalogService.create_category(db, data)


@router.patch("/categories/{category_id}/deactivate", status_code=204)
async def deactivate_category(category_id: int, db: AsyncSession = Depends(get_db)):
    try:
        await CatalogService.deactivate_category(db, category_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.delete("/categories/{category_id}", status_code=204)
async def delete_category(category_id: int, db: AsyncSession = Depends(get_db)):
    try:
        await CatalogService.delete_category(db, category_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except ValidationError as e:
        raise HTTPException(status_code=409, detail=e.message)


@router.get("/products", response_model=list[ProductResponse])
async def list_products(db: AsyncSession = Depends(get_db)):
    return await CatalogService.list_products(db)


@router.post("/products", response_model=ProductResponse)
async def create_product(data: ProductCreate, db: AsyncSession = Depends(get_db)):
    try:
        return await CatalogService.create_product(db, data)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.get("/products/{product_id}")
async def get_product(product_id: int, db: AsyncSession = Depends(get_db)):
    try:
        return await CatalogService.product_details(db, product_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
