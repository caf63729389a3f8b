from fastapi import APIRouter, Depends

from alumni_match.api.dependencies import get_engine
from alumni_match.services.ranking import MatchingEngine

router = APIRouter()


@router.get("")
async def get_stats(engine: MatchingEngine = Depends(get_engine)):
    return {
        "embedding_provider": engine.provider.name,
        "embedding_dimensions": engine.provider.dimensions,
        "insights_enabled": engine.insights is not None,
        "vector_cache": engine.cache.get_stats(),
    }
