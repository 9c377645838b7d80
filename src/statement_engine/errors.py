"""Exception types raised by the statement engine."""


class StatementError(Exception):
    """Base class for all statement generation failures."""


class PeriodValidationError(StatementError, ValueError):
    """Raised when a billing period is malformed or out of range."""


class CustomerNotFoundError(StatementError):
    """Raised when the account master record does not exist."""

    def __init__(self, account_number: str):
        self.account_number = account_number
        super().__init__(f"Customer not found: {account_number}")

    @property
    def user_message(self) -> str:
        return "Customer not found"


class SourceError(StatementError):
    """Base class for document store read failures."""

    def __init__(self, collection: str, key: str, message: str = ""):
        self.collection = collection
        self.key = key
        super().__init__(message or f"{collection}/{key}")


class SourceNotFoundError(SourceError):
    """Raised by a document store when a record does not exist."""


class SourcePermissionError(SourceError):
    """Raised by a document store when a read is not permitted."""
