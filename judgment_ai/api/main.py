from fastapi import APIRouter

from judgment_ai.api.routes import extractions

api_router = APIRouter()

api_router.include_router(extractions.router, prefix="", tags=["Extraction"])
