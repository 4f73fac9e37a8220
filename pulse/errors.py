"""Error taxonomy shared by stores, services and routes.

Every error carries a stable machine code and the HTTP status it maps to.
The app renders them as { "error": { "code", "message", "detail" } }.
"""

from typing import Any


class PulseError(Exception):
    """Base class for errors surfaced to API callers."""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str, detail: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class InvalidCategory(PulseError):
    """Caller asked for a number category outside the enumerated set."""

    code = "INVALID_CATEGORY"
    status_code = 400

    def __init__(self, category: object):
        super().__init__(
            f"Invalid number type: {category!r}",
            detail={"category": str(category)},
        )
        self.category = category


class InvalidQueryType(PulseError):
    """Caller asked for a post query type other than popular/latest."""

    code = "INVALID_QUERY_TYPE"
    status_code = 400

    def __init__(self, query_type: object):
        super().__init__(
            'Invalid type parameter. Use "popular" or "latest"',
            detail={"type": None if query_type is None else str(query_type)},
        )
        self.query_type = query_type


class FetchError(PulseError):
    """Transport, timeout or payload failure while fetching a resource."""

    code = "FETCH_ERROR"
    status_code = 502

    def __init__(self, resource_id: str, cause: BaseException | str):
        super().__init__(
            f"Failed to fetch {resource_id}: {cause}",
            detail={"resource_id": resource_id},
        )
        self.resource_id = resource_id
        self.cause = cause


class DataSourceError(PulseError):
    """A ranking fan-out failed; no partial result is returned."""

    code = "DATA_SOURCE_ERROR"
    status_code = 502

    def __init__(self, message: str, resource_id: str | None = None):
        super().__init__(
            message,
            detail={"resource_id": resource_id} if resource_id else None,
        )
        self.resource_id = resource_id
