"""
Groundwork - Domain Errors

Business rule violations. The HTTP layer reports these as 400 Bad Request;
every other exception is treated as an internal error.
"""


class DomainError(Exception):
    """A business rule was violated by the caller's input."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
