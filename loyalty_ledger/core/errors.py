"""Exception hierarchy for the loyalty ledger."""


class LedgerError(Exception):
    """Base exception for all ledger errors."""


class ValidationError(LedgerError):
    """Raised when a transaction request must be rejected before commit."""


class InsufficientPaymentError(ValidationError):
    """Raised when the cash tendered is below the amount payable."""


class InvalidPinError(ValidationError):
    """Raised when the PIN does not match the stored one."""


class CustomerNotFoundError(LedgerError):
    """Raised when a customer key is missing from the collection being updated."""


class StaleLedgerError(LedgerError):
    """Raised when another writer committed the tenant's ledger first."""


class NotificationFailure(LedgerError):
    """Raised when the notifier reports a failure or raises.

    The ledger state is already committed when this is raised; callers
    report it as a retryable action.
    """

    retryable = True
