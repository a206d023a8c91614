"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class NotFoundError(DomainException):
    """Requested entity does not exist"""

    pass


class InstallmentNotFoundError(NotFoundError):
    """Installment does not exist"""

    pass


class IssuanceRecordNotFoundError(NotFoundError):
    """Installment has no issuance record"""

    pass


class IssuanceAlreadyExistsError(DomainException):
    """An issuance record already exists for the installment"""

    pass


class IssuanceConflictError(DomainException):
    """Retry requested for a record that did not fail"""

    pass


class InvalidInstallmentError(DomainException):
    """Installment data cannot be sent to a bank"""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class InvalidStatusTransitionError(DomainException):
    """Installment status change not allowed by the status machine"""

    pass


class UnsupportedProviderError(DomainException):
    """No issuance strategy is registered for the provider"""

    pass


class BankAPIError(DomainException):
    """Bank API returned an error or is unavailable"""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class AuthenticationError(BankAPIError):
    """OAuth2 token exchange with the bank failed"""

    pass
