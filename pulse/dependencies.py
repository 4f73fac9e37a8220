"""FastAPI dependencies resolving collaborators built in the app lifespan."""

from fastapi import Request

from pulse.services.numbers import NumberAggregator
from pulse.services.ranking import RankEngine


def get_number_aggregator(request: Request) -> NumberAggregator:
    """Number aggregator bound to the process-wide window store."""
    return request.app.state.number_aggregator


def get_rank_engine(request: Request) -> RankEngine:
    """Rank engine bound to the process-wide ranking cache."""
    return request.app.state.rank_engine
