"""Custom exception hierarchy for emi-engine."""


class EmiEngineError(Exception):
    """Base exception for all emi-engine errors."""

    invoice_id: str | None = None

    def for_invoice(self, invoice_id: str) -> "EmiEngineError":
        """Attach the invoice id and prefix it to the message."""
        self.invoice_id = invoice_id
        if self.args:
            self.args = (f"Invoice {invoice_id}: {self.args[0]}",) + self.args[1:]
        return self


class ValidationError(EmiEngineError):
    """Raised when input to a schedule or payment operation is malformed.

    Parameters
    ----------
    message : str
        Human readable description.
    field : str | None
        Name of the offending input field, when there is one.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class NotFoundError(EmiEngineError):
    """Raised when a referenced installment or invoice does not exist."""


class InvoiceNotFoundError(NotFoundError):
    """Raised when an invoice id is unknown to the store."""


class InvalidStateError(EmiEngineError):
    """Raised when a record is in an invalid state for the operation."""


class AlreadySettledError(InvalidStateError):
    """Raised when paying or rescheduling an installment that is settled."""


class ConcurrencyError(EmiEngineError):
    """Raised when a document changed between read and write."""


class ConfigurationError(EmiEngineError):
    """Raised when configuration is invalid or missing."""


class StoreError(EmiEngineError):
    """Raised when a store operation fails."""


class PartialBatchFailure(EmiEngineError):
    """Some notifications could not be created during fallback creation.

    Reported on the generation result rather than raised; the run as a
    whole still succeeds.
    """

    def __init__(self, skipped: int, errors: list[str] | None = None) -> None:
        super().__init__(f"{skipped} notification(s) skipped after batch fallback")
        self.skipped = skipped
        self.errors = errors or []


class UnappliedCreditWarning(UserWarning):
    """Surplus payment remained after the last installment was settled."""
