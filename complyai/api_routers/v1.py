from fastapi import APIRouter

from complyai.features.indexing.routes.indexing import router as indexing_router
from complyai.features.search.routes.search import router as search_router

api_router = APIRouter()

api_router.include_router(indexing_router)
api_router.include_router(search_router)
