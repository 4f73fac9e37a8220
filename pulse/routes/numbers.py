"""Number window endpoint.

GET /numbers/{category} - Fetch fresh numbers and report the sliding window.

Routers are thin: call services for business logic.
"""

from fastapi import APIRouter, Depends, Path

from pulse.dependencies import get_number_aggregator
from pulse.schemas import ErrorResponse, NumbersResponse
from pulse.services.numbers import NumberAggregator

router = APIRouter()


@router.get(
    "/{category}",
    response_model=NumbersResponse,
    responses={400: {"model": ErrorResponse}},
)
async def get_numbers(
    category: str = Path(
        description="Number category: p (prime), f (fibonacci), e (even), r (random)",
        examples=["p", "f", "e", "r"],
    ),
    aggregator: NumberAggregator = Depends(get_number_aggregator),
) -> NumbersResponse:
    """Merge freshly fetched numbers into the category window.

    Returns:
        NumbersResponse with previous/current window, fetched numbers and average.

    Raises:
        InvalidCategory (400): If category is not one of p, f, e, r.
    """
    return await aggregator.handle(category)
