"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class NotAuthenticatedError(DomainException):
    """No user could be resolved for the current call"""

    def __init__(self, message: str = "User not authenticated"):
        super().__init__(message)


class SemanticParserError(DomainException):
    """Semantic parsing service failed or returned a malformed payload"""

    pass


class MessageSourceError(DomainException):
    """Raw messages could not be read (e.g. permission denied)"""

    pass


class InvalidTransactionDataError(DomainException):
    """Transaction data is malformed or violates the sign invariant"""

    pass


class NotFoundError(DomainException):
    """Requested record does not exist or belongs to another user"""

    pass
