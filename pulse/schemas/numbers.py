"""Schemas for the number window endpoint (/numbers/{category})."""

from pydantic import BaseModel, Field


class NumbersResponse(BaseModel):
    """Window state before and after merging freshly fetched numbers."""

    window_prev_state: list[int | float] = Field(alias="windowPrevState")
    window_curr_state: list[int | float] = Field(alias="windowCurrState")
    numbers: list[int | float]
    avg: float

    model_config = {"populate_by_name": True}
