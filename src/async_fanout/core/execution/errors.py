"""Errors surfaced by aggregation policies."""


class AggregationError(Exception):
    """Base class for errors raised by an aggregation policy."""


class ArgumentMismatchError(AggregationError, ValueError):
    """Services and messages lists have different lengths.

    Detected before any dispatch; never wraps an underlying cause.
    """

    def __init__(self, services_count: int, messages_count: int) -> None:
        super().__init__(
            f"Services and messages must match: got {services_count} services "
            f"and {messages_count} messages"
        )
        self.services_count = services_count
        self.messages_count = messages_count


class ServiceFailureError(AggregationError):
    """A dispatched service call failed.

    Raised ``from`` the service's own exception, which is also kept on
    ``cause``.
    """

    def __init__(self, service_id: str, index: int, cause: BaseException) -> None:
        super().__init__(f"Service '{service_id}' (index {index}) failed: {cause}")
        self.service_id = service_id
        self.index = index
        self.cause = cause
