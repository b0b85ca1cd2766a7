from fastapi import APIRouter

from zenex_ai.api.v1.generate import router as generate_router

api_v1_router = APIRouter(prefix="/api/v1")
api_v1_router.include_router(generate_router)
