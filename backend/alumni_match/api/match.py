from fastapi import APIRouter, Depends

from alumni_match.api.dependencies import get_engine
from alumni_match.schemas import MatchRequest, MatchResponse
from alumni_match.services.ranking import MatchingEngine

router = APIRouter()


@router.post("", response_model=MatchResponse)
async def find_matches(
    request: MatchRequest,
    engine: MatchingEngine = Depends(get_engine),
):
    criteria = engine.resolve_criteria(request.criteria)
    matches = await engine.rank(
        request.seeker,
        request.candidates,
        criteria=criteria,
        limit=request.limit,
    )
    return MatchResponse(matches=matches, total_count=len(matches), criteria=criteria)
