class RouterError(Exception):
    """Base exception for router-related errors."""
    pass

class PatternError(RouterError, ValueError):
    """Exception raised when a route specifier cannot be compiled."""

    def __init__(self, source, message: str):
        self.source = source
        self.message = message
        super().__init__(f"Invalid route pattern {source!r}: {message}")
