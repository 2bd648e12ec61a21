"""Custom exceptions for authguard."""


class StoreUnavailableError(Exception):
    """Raised when the shared counter store cannot be reached or times out."""

    def __init__(self, reason: str = "unknown"):
        self.reason = reason
        super().__init__(f"Counter store unavailable: {reason}")
