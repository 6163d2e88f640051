"""
Error taxonomy shared by the catalog, order and sample operations.

Each error carries a tag (rendered as ``error`` in responses) and the HTTP
status the API layer maps it to.
"""


class MarketplaceError(Exception):
    tag = "MarketplaceError"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(MarketplaceError):
    tag = "NotFound"
    status_code = 404


class InvalidState(MarketplaceError):
    tag = "InvalidState"
    status_code = 409


class OwnershipMismatch(MarketplaceError):
    tag = "OwnershipMismatch"
    status_code = 403


class ValidationFailure(MarketplaceError):
    tag = "ValidationFailure"
    status_code = 400
