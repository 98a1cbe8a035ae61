class ArtMarketError(Exception):
    """Base exception for the commissions backend."""

    status_code = 500

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


class NotFoundError(ArtMarketError):
    """Raised when a commission, artist or milestone does not exist."""

    status_code = 404


class ForbiddenError(ArtMarketError):
    """Raised when the caller is not the party an operation requires."""

    status_code = 403


class ValidationError(ArtMarketError):
    """Raised for malformed budget, price, milestone or rating input."""

    status_code = 422


class InvalidTransitionError(ValidationError):
    """Raised when an operation is not legal from the commission's current status."""

    status_code = 409

    def __init__(self, current_status: str, detail: str):
        self.current_status = current_status
        super().__init__(detail)
