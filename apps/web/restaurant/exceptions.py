"""Order lifecycle exceptions."""


class OrderError(Exception):
    """Base exception for order lifecycle errors."""

    def __init__(self, message: str, order_id: str | None = None) -> None:
        self.message = message
        self.order_id = order_id
        super().__init__(message)


class OrderNotFound(OrderError):
    """No order with this id exists for the tenant."""


class InvalidTransition(OrderError):
    """The requested status change is not allowed from the current status."""

    def __init__(
        self,
        message: str,
        order_id: str | None = None,
        current_status: str | None = None,
        requested_status: str | None = None,
    ) -> None:
        super().__init__(message, order_id)
        self.current_status = current_status
        self.requested_status = requested_status


class OrderSubmissionError(OrderError):
    """An order submission was rejected before anything was persisted."""

    def __init__(
        self,
        message: str,
        errors: list[tuple[str, str]] | None = None,
    ) -> None:
        super().__init__(message)
        # (field, message) pairs for validation responses
        self.errors = errors or []
