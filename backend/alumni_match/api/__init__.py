from fastapi import APIRouter
from alumni_match.api import match, stats

api_router = APIRouter(prefix="/api")
api_router.include_router(match.router, prefix="/match", tags=["match"])
api_router.include_router(stats.router, prefix="/stats", tags=["stats"])
