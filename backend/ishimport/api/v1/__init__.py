"""API v1 router aggregation."""

from fastapi import APIRouter

from ishimport.api.v1.imports import router as imports_router
from ishimport.api.v1.scraper import router as scraper_router

router = APIRouter(prefix="/api/v1")

router.include_router(imports_router)
router.include_router(scraper_router)
