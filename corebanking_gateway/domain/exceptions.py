"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidRequestError(DomainException):
    """Operation payload is missing required fields or has ill-typed values"""

    pass


class ReconciliationError(DomainException):
    """Local records could not be brought in line with a confirmed core-banking result"""

    pass
