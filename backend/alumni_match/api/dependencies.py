from fastapi import Request

from alumni_match.services.ranking import MatchingEngine


def get_engine(request: Request) -> MatchingEngine:
    """Engine built in the application lifespan."""
    return request.app.state.engine
