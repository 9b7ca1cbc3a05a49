"""Domain errors raised by the workflow services."""


class WorkflowError(ValueError):
    """A requested status transition or business rule was violated.

    Routers translate this into ``400 Bad Request``.
    """
