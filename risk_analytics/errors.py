"""Exceptions raised by the analytics layer.

Bad data is never an error: validators and aggregations report it as
data. Only malformed requests and lookups of absent ids raise.
"""


class RiskAnalyticsError(Exception):
    """Base class for all analytics errors."""


class NotFoundError(RiskAnalyticsError, LookupError):
    """A specific record id was requested and does not exist."""

    def __init__(self, entity: str, record_id) -> None:
        super().__init__(f"{entity} with id {record_id!r} not found")
        self.entity = entity
        self.record_id = record_id


class InvalidRequestError(RiskAnalyticsError, ValueError):
    """Unknown entity type, unknown field, or an out-of-range parameter."""
